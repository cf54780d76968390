from __future__ import annotations

import argparse

import pytest

from acmectl.cli.config import DEFAULT_SERVER
from acmectl.cli.options import (
    ACCOUNT_VALIDATION_RULES,
    AccountAction,
    AccountOptions,
    parse_account_action,
    parse_account_options,
    validate_account_options,
)
from acmectl.errors import ConfigurationError


def _namespace(**overrides) -> argparse.Namespace:
    values = {
        "command": "account",
        "action": AccountAction.INFO,
        "email": None,
        "agree_tos": False,
        "server": None,
        "key": None,
        "force": False,
        "verbose": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("info", AccountAction.INFO),
        ("NEW", AccountAction.NEW),
        ("Up-date", AccountAction.UPDATE),
        ("set-", AccountAction.SET),
    ],
)
def test_parse_account_action_ignores_case_and_hyphens(raw: str, expected: AccountAction) -> None:
    assert parse_account_action(raw) is expected


def test_parse_account_action_rejects_unknown_action() -> None:
    with pytest.raises(ValueError, match="invalid account action"):
        parse_account_action("delete")


def test_rule_table_covers_new_update_set_only() -> None:
    actions = [rule.action for rule in ACCOUNT_VALIDATION_RULES]
    assert actions == [AccountAction.NEW, AccountAction.UPDATE, AccountAction.SET]


def test_info_passes_without_any_input() -> None:
    validate_account_options(AccountOptions(action=AccountAction.INFO))


@pytest.mark.parametrize("email", [None, "", "   "])
def test_new_requires_email(email: str | None) -> None:
    with pytest.raises(ConfigurationError, match="Please enter the admin email."):
        validate_account_options(AccountOptions(action=AccountAction.NEW, email=email))


def test_new_with_email_passes() -> None:
    validate_account_options(AccountOptions(action=AccountAction.NEW, email="a@b.com"))


def test_update_requires_email_or_agreement() -> None:
    with pytest.raises(ConfigurationError, match="Please enter the data to update."):
        validate_account_options(AccountOptions(action=AccountAction.UPDATE))

    validate_account_options(AccountOptions(action=AccountAction.UPDATE, agree_tos=True))
    validate_account_options(AccountOptions(action=AccountAction.UPDATE, email="a@b.com"))


def test_set_requires_key_path() -> None:
    with pytest.raises(ConfigurationError, match="Please enter the key file path."):
        validate_account_options(AccountOptions(action=AccountAction.SET, path=" "))

    validate_account_options(AccountOptions(action=AccountAction.SET, path="./account.pem"))


def test_custom_rule_table_is_honoured() -> None:
    # An empty table accepts everything, including a new account without email.
    validate_account_options(AccountOptions(action=AccountAction.NEW), rules=())


def test_parse_account_options_returns_none_for_other_commands() -> None:
    parser = argparse.ArgumentParser(prog="acmectl")
    result = parse_account_options(argparse.Namespace(command="order"), parser=parser)
    assert result is None


def test_parse_account_options_falls_back_to_default_server() -> None:
    parser = argparse.ArgumentParser(prog="acmectl")

    options = parse_account_options(_namespace(key="./k.pem"), parser=parser)

    assert options is not None
    assert options.server == DEFAULT_SERVER
    assert options.path == "./k.pem"


def test_parse_account_options_prefers_explicit_server() -> None:
    parser = argparse.ArgumentParser(prog="acmectl")
    options = parse_account_options(_namespace(server="https://other.example/dir"), parser=parser)
    assert options is not None
    assert options.server == "https://other.example/dir"


def test_parse_account_options_reports_rule_failure_through_parser(capsys) -> None:
    parser = argparse.ArgumentParser(prog="acmectl account")

    with pytest.raises(SystemExit) as exc_info:
        parse_account_options(_namespace(action=AccountAction.NEW), parser=parser)

    assert exc_info.value.code == 2
    err = capsys.readouterr().err
    assert "usage: acmectl account" in err
    assert "Please enter the admin email." in err


def test_parse_account_options_uses_given_rule_table() -> None:
    parser = argparse.ArgumentParser(prog="acmectl account")
    options = parse_account_options(_namespace(action=AccountAction.NEW), parser=parser, rules=())
    assert options is not None
    assert options.email is None
