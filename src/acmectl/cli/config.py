"""Configuration helpers for the acmectl CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from acmectl.crypto.account_key import DEFAULT_KEY_ALGORITHM, SUPPORTED_KEY_ALGORITHMS

DEFAULT_CONFIG_PATH = Path.home() / ".acmectl" / "config.toml"
DEFAULT_SERVER = "https://acme-staging-v02.api.letsencrypt.org/directory"
DEFAULT_KEY_PATH = Path.home() / ".acmectl" / "account.pem"
SERVER_ENV_VAR = "ACMECTL_SERVER"
KEY_PATH_ENV_VAR = "ACMECTL_KEY_PATH"


@dataclass(frozen=True)
class CLIConfig:
    server: str = DEFAULT_SERVER
    key_path: str = str(DEFAULT_KEY_PATH)
    key_algorithm: str = DEFAULT_KEY_ALGORITHM
    timeout: float = 10.0
    retries: int = 2


class ConfigError(ValueError):
    """Raised when CLI config is invalid."""


def is_directory_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _to_positive_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a number")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be a number") from exc
    if parsed <= 0:
        raise ConfigError(f"{field_name} must be greater than zero")
    return parsed


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer")
    if value < 0:
        raise ConfigError(f"{field_name} must be >= 0")
    return value


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    parsed = _load_toml(config_path) if config_path.exists() else {}

    section = parsed.get("acmectl")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[acmectl] must be a table")

    env_server = os.getenv(SERVER_ENV_VAR)
    configured_server = str(source.get("server", DEFAULT_SERVER)).strip()
    server = env_server.strip() if env_server else configured_server
    if not is_directory_url(server):
        raise ConfigError(f"server must be an http(s) directory URL: {server!r}")

    env_key_path = os.getenv(KEY_PATH_ENV_VAR)
    configured_key_path = str(source.get("key_path", DEFAULT_KEY_PATH)).strip()
    key_path = env_key_path.strip() if env_key_path else configured_key_path
    if not key_path:
        raise ConfigError("key_path must not be empty")

    key_algorithm = str(source.get("key_algorithm", DEFAULT_KEY_ALGORITHM)).strip().upper()
    if key_algorithm not in SUPPORTED_KEY_ALGORITHMS:
        raise ConfigError(
            "key_algorithm must be one of: " + ", ".join(SUPPORTED_KEY_ALGORITHMS)
        )

    timeout = _to_positive_float(source.get("timeout", 10.0), "timeout")
    retries = _to_non_negative_int(source.get("retries", 2), "retries")

    return CLIConfig(
        server=server,
        key_path=str(Path(key_path).expanduser()),
        key_algorithm=key_algorithm,
        timeout=timeout,
        retries=retries,
    )
