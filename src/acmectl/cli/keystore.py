"""Account key file storage for the acmectl CLI."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class KeyStoreError(ValueError):
    """Raised when the account key file cannot be read or written."""


def _chmod_owner_only(path: Path) -> None:
    if os.name != "posix":
        return
    path.chmod(0o600)


def resolve_key_path(path: str | None, *, default: str | Path) -> Path:
    if path is not None and path.strip():
        return Path(path.strip()).expanduser()
    return Path(default).expanduser()


@dataclass(frozen=True)
class KeyStore:
    path: Path

    def load(self) -> str | None:
        """Return the PEM text stored at :attr:`path`, or ``None`` if there is none."""
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise KeyStoreError(f"failed to read key file: {self.path}") from exc
        if not text.strip():
            logger.warning("Ignoring empty key file %s.", self.path)
            return None
        return text

    def save(self, pem: str) -> Path:
        """Replace the key file with *pem*.

        The text is written to a temporary file next to the target and renamed
        over it, so readers see either the old key or the complete new one.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        except OSError as exc:
            raise KeyStoreError(f"failed to write key file: {self.path}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(pem)
            _chmod_owner_only(tmp_path)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise KeyStoreError(f"failed to write key file: {self.path}") from exc
        return self.path
