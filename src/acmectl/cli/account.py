"""Account lifecycle command processor."""

from __future__ import annotations

import logging
from contextlib import closing
from typing import Callable, Optional

from acmectl.cli.config import DEFAULT_KEY_PATH
from acmectl.cli.keystore import KeyStore, resolve_key_path
from acmectl.cli.options import AccountAction, AccountOptions
from acmectl.context import DirectorySession, open_directory_session
from acmectl.errors import KeyConflictError, MissingKeyError, UnsupportedActionError
from acmectl.resources import AccountResource

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, Optional[str]], DirectorySession]


class AccountCommand:
    """Run one ``account`` action against the configured directory.

    Options must already have passed :func:`~acmectl.cli.options.validate_account_options`.
    Key material is read from and written to *key_store*; directory access
    goes through *session_factory* (``open_directory_session`` signature).
    """

    def __init__(
        self,
        options: AccountOptions,
        *,
        key_store: KeyStore | None = None,
        session_factory: SessionFactory = open_directory_session,
    ) -> None:
        self.options = options
        self.key_store = key_store or KeyStore(resolve_key_path(options.path, default=DEFAULT_KEY_PATH))
        self._session_factory = session_factory

    def process(self) -> AccountResource:
        action = self.options.action
        if action is AccountAction.INFO:
            return self._load_account_info()
        if action is AccountAction.NEW:
            return self._new_account()
        # update/set pass validation but have no handler yet.
        raise UnsupportedActionError(f"account action '{action.value}' is not supported yet")

    def _new_account(self) -> AccountResource:
        if self.key_store.load() is not None and not self.options.force:
            raise KeyConflictError(
                "An account key already exists, use '--force' option to overwrite the existing key."
            )

        logger.debug("Using ACME server %s.", self.options.server)
        with closing(self._session_factory(self.options.server, None)) as session:
            logger.debug(
                "Creating new account, email='%s', agree='%s'",
                self.options.email,
                self.options.agree_tos,
            )
            account = session.new_account(self.options.email, self.options.agree_tos)
            logger.debug("Created new account at %s", account.location)

            self.key_store.save(session.account_key.to_pem())
            logger.debug("Saved account key to %s", self.key_store.path)
            return account.resource()

    def _load_account_info(self) -> AccountResource:
        key_pem = self.key_store.load()
        if key_pem is None:
            raise MissingKeyError("No account key is available.")

        logger.debug("Using ACME server %s.", self.options.server)
        with closing(self._session_factory(self.options.server, key_pem)) as session:
            account = session.account()
            logger.debug("Retrieve account at %s", account.location)
            return account.resource()
