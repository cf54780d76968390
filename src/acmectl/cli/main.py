"""Command-line interface for acmectl."""

from __future__ import annotations

import argparse
import dataclasses
import functools
import json
import logging
import re
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Sequence

from acmectl.cli.account import AccountCommand
from acmectl.cli.config import CLIConfig, ConfigError, is_directory_url, load_cli_config
from acmectl.cli.keystore import KeyStore, KeyStoreError, resolve_key_path
from acmectl.cli.options import (
    ACCOUNT_VALIDATION_RULES,
    AccountOptions,
    parse_account_action,
    parse_account_options,
)
from acmectl.context import open_directory_session
from acmectl.errors import (
    AccountKeyError,
    DirectoryRequestError,
    DirectoryUnavailableError,
    KeyConflictError,
    MissingKeyError,
    UnsupportedActionError,
)

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2
EXIT_UNSUPPORTED_ACTION = 3

LOG_HANDLER_NAME = "acmectl-cli"

_SENSITIVE_FIELDS = (
    "private_key",
    "hmac_key",
    "secret",
    "token",
    "authorization",
)
_PEM_BLOCK_RE = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----",
    re.DOTALL,
)


def _cli_version() -> str:
    try:
        return pkg_version("acmectl")
    except PackageNotFoundError:
        return "0.0.0+local"


def _account_action_arg(value: str):
    try:
        return parse_account_action(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _server_arg(value: str) -> str:
    server = value.strip()
    if not is_directory_url(server):
        raise argparse.ArgumentTypeError(f"invalid directory URL: {value!r}")
    return server


def _build_parser() -> tuple[argparse.ArgumentParser, argparse.ArgumentParser]:
    parser = argparse.ArgumentParser(prog="acmectl")
    parser.add_argument(
        "--version",
        action="version",
        version=f"acmectl {_cli_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.acmectl/config.toml)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    account = sub.add_parser("account", help="Manage ACME account")
    account.add_argument(
        "action",
        type=_account_action_arg,
        help="Account action: info, new, update or set",
    )
    account.add_argument(
        "--email",
        default=None,
        help="Email used for registration and recovery contact (default: None)",
    )
    account.add_argument(
        "--agree-tos",
        action="store_true",
        help="Agree to the ACME Subscriber Agreement (default: False)",
    )
    account.add_argument(
        "--server",
        type=_server_arg,
        default=None,
        help="ACME directory resource URI (default: configured server)",
    )
    account.add_argument(
        "--key",
        default=None,
        help="File path to the account key to use (default: ~/.acmectl/account.pem)",
    )
    account.add_argument("--verbose", action="store_true", help="Print process log")
    account.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing account key when creating an account",
    )
    account.add_argument("--json", action="store_true", help="Print the account as JSON")

    return parser, account


def _configure_logging(*, verbose: bool, stream) -> None:
    logger = logging.getLogger("acmectl")
    for handler in list(logger.handlers):
        if handler.get_name() == LOG_HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.set_name(LOG_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _sanitize_error_text(value: str) -> str:
    redacted = _PEM_BLOCK_RE.sub("[REDACTED PRIVATE KEY]", value)
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _print_directory_request_error(stderr, exc: DirectoryRequestError) -> int:
    if exc.subproblems:
        details = "; ".join(
            str(item.get("detail", item)) if isinstance(item, dict) else str(item)
            for item in exc.subproblems
        )
        return _print_error(
            stderr,
            "directory error",
            f"{exc} (subproblems: {details})",
            code=EXIT_NETWORK_ERROR,
        )
    return _print_error(stderr, "directory error", str(exc), code=EXIT_NETWORK_ERROR)


def _run_account(*, options: AccountOptions, config: CLIConfig, as_json: bool, stdout, stderr) -> int:
    key_store = KeyStore(resolve_key_path(options.path, default=config.key_path))
    session_factory = functools.partial(
        open_directory_session,
        key_algorithm=config.key_algorithm,
        timeout=config.timeout,
        retries=config.retries,
    )
    command = AccountCommand(options, key_store=key_store, session_factory=session_factory)

    try:
        resource = command.process()
    except (KeyConflictError, MissingKeyError) as exc:
        return _print_error(stderr, "account error", str(exc), code=EXIT_VALIDATION_ERROR)
    except UnsupportedActionError as exc:
        return _print_error(stderr, "account error", str(exc), code=EXIT_UNSUPPORTED_ACTION)
    except (AccountKeyError, KeyStoreError) as exc:
        return _print_error(stderr, "key error", str(exc), code=EXIT_VALIDATION_ERROR)
    except DirectoryRequestError as exc:
        return _print_directory_request_error(stderr, exc)
    except DirectoryUnavailableError as exc:
        return _print_error(stderr, "directory error", str(exc), code=EXIT_NETWORK_ERROR)

    payload = {
        "action": options.action.value,
        "server": options.server,
        "key_file": str(key_store.path),
        "account": resource.to_payload(),
    }
    if as_json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"location: {resource.location}", file=stdout)
    print(f"status: {resource.status}", file=stdout)
    print(f"contact: {','.join(resource.contact or [])}", file=stdout)
    if resource.terms_of_service_agreed is not None:
        print(
            f"terms_of_service_agreed: {str(resource.terms_of_service_agreed).lower()}",
            file=stdout,
        )
    if resource.orders:
        print(f"orders: {resource.orders}", file=stdout)
    print(f"server: {payload['server']}", file=stdout)
    print(f"key_file: {payload['key_file']}", file=stdout)
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser, account_parser = _build_parser()
    args = parser.parse_args(argv)

    # Rules read only the command line; nothing else is touched until they pass.
    options = parse_account_options(args, parser=account_parser, rules=ACCOUNT_VALIDATION_RULES)
    if options is None:
        print("unknown command", file=stderr)
        return EXIT_VALIDATION_ERROR

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    if args.server is None:
        options = dataclasses.replace(options, server=config.server)

    _configure_logging(verbose=options.verbose, stream=stderr)
    return _run_account(
        options=options,
        config=config,
        as_json=args.json,
        stdout=stdout,
        stderr=stderr,
    )


if __name__ == "__main__":
    raise SystemExit(main())
