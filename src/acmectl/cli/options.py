"""Account command options and their validation rules."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from acmectl.cli.config import DEFAULT_SERVER
from acmectl.errors import ConfigurationError


class AccountAction(str, Enum):
    INFO = "info"
    NEW = "new"
    UPDATE = "update"
    SET = "set"


def parse_account_action(value: str) -> AccountAction:
    """Parse an action name; case-insensitive, hyphens ignored (``New-`` is ``new``)."""
    normalized = value.replace("-", "").strip().lower()
    try:
        return AccountAction(normalized)
    except ValueError as exc:
        choices = ", ".join(action.value for action in AccountAction)
        raise ValueError(f"invalid account action {value!r} (choose from {choices})") from exc


@dataclass(frozen=True)
class AccountOptions:
    action: AccountAction
    email: str | None = None
    agree_tos: bool = False
    server: str = DEFAULT_SERVER
    path: str | None = None
    force: bool = False
    verbose: bool = False


def _has_text(value: str | None) -> bool:
    return value is not None and bool(value.strip())


@dataclass(frozen=True)
class ValidationRule:
    action: AccountAction
    is_valid: Callable[[AccountOptions], bool]
    message: str


ACCOUNT_VALIDATION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule(
        AccountAction.NEW,
        lambda options: _has_text(options.email),
        "Please enter the admin email.",
    ),
    ValidationRule(
        AccountAction.UPDATE,
        lambda options: _has_text(options.email) or options.agree_tos,
        "Please enter the data to update.",
    ),
    ValidationRule(
        AccountAction.SET,
        lambda options: _has_text(options.path),
        "Please enter the key file path.",
    ),
)


def validate_account_options(
    options: AccountOptions,
    rules: tuple[ValidationRule, ...] = ACCOUNT_VALIDATION_RULES,
) -> None:
    for rule in rules:
        if rule.action is options.action and not rule.is_valid(options):
            raise ConfigurationError(rule.message)


def parse_account_options(
    args: argparse.Namespace,
    *,
    parser: argparse.ArgumentParser,
    rules: tuple[ValidationRule, ...] = ACCOUNT_VALIDATION_RULES,
) -> AccountOptions | None:
    """Build validated options for the ``account`` command.

    Returns ``None`` when another command was invoked. A failed rule is
    reported through ``parser.error``, which exits before anything runs.
    Without ``--server`` the options carry :data:`DEFAULT_SERVER`; callers
    substitute the configured server once config has been loaded.
    """
    if args.command != "account":
        return None

    options = AccountOptions(
        action=args.action,
        email=args.email,
        agree_tos=args.agree_tos,
        server=args.server or DEFAULT_SERVER,
        path=args.key,
        force=args.force,
        verbose=args.verbose,
    )
    try:
        validate_account_options(options, rules)
    except ConfigurationError as exc:
        parser.error(str(exc))
    return options
