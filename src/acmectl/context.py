"""Directory sessions: an account key bound to one ACME directory."""

from __future__ import annotations

import logging

from acmectl.client import DirectoryClient, DirectoryResponse
from acmectl.crypto.account_key import DEFAULT_KEY_ALGORITHM, AccountKey
from acmectl.errors import DirectoryRequestError, DirectoryUnavailableError
from acmectl.resources import AccountResource, Directory, RenewalInfo

logger = logging.getLogger(__name__)


def contact_uris(email: str | None) -> list[str]:
    if email is None or not email.strip():
        return []
    address = email.strip()
    if address.lower().startswith("mailto:"):
        return [address]
    return [f"mailto:{address}"]


def _require_location(response: DirectoryResponse) -> str:
    if not response.location:
        raise DirectoryRequestError(
            "directory response is missing the account Location header",
            status_code=response.status_code,
            body=response.payload,
        )
    return response.location


class AccountContext:
    """Handle to a registered account, identified by its URL."""

    def __init__(self, session: "DirectorySession", location: str) -> None:
        self._session = session
        self._location = location

    @property
    def location(self) -> str:
        return self._location

    def resource(self) -> AccountResource:
        response = self._session.post_as_get(self._location)
        resource = AccountResource.model_validate(response.payload)
        return resource.model_copy(update={"location": self._location})


class DirectorySession:
    def __init__(self, server: str, account_key: AccountKey, *, client: DirectoryClient) -> None:
        self._server = server
        self._account_key = account_key
        self._client = client
        self._account_location: str | None = None

    @property
    def server(self) -> str:
        return self._server

    @property
    def account_key(self) -> AccountKey:
        return self._account_key

    def close(self) -> None:
        self._client.close()

    def directory(self) -> Directory:
        return self._client.get_directory()

    def new_account(self, email: str | None, agree_tos: bool) -> AccountContext:
        payload: dict[str, object] = {"termsOfServiceAgreed": bool(agree_tos)}
        contact = contact_uris(email)
        if contact:
            payload["contact"] = contact

        response = self._client.post(self.directory().new_account, payload, self._account_key)
        self._account_location = _require_location(response)
        return AccountContext(self, self._account_location)

    def account(self) -> AccountContext:
        if self._account_location is None:
            response = self._client.post(
                self.directory().new_account,
                {"onlyReturnExisting": True},
                self._account_key,
            )
            self._account_location = _require_location(response)
        return AccountContext(self, self._account_location)

    def post_as_get(self, url: str) -> DirectoryResponse:
        kid = self.account().location
        return self._client.post(url, None, self._account_key, kid=kid)

    def renewal_info(self, cert_id: str) -> RenewalInfo:
        base = self.directory().renewal_info
        if not base:
            raise DirectoryUnavailableError(
                f"directory {self._server} does not advertise renewalInfo"
            )
        url = f"{base.rstrip('/')}/{cert_id}"
        logger.debug("Fetching renewal info at %s.", url)
        try:
            return RenewalInfo.model_validate(self._client.get_json(url))
        except ValueError as exc:
            raise DirectoryRequestError(f"invalid renewal info document at {url}") from exc


def open_directory_session(
    server: str,
    key_pem: str | None,
    *,
    key_algorithm: str = DEFAULT_KEY_ALGORITHM,
    timeout: float = 10.0,
    retries: int = 2,
) -> DirectorySession:
    """Bind to the directory at *server*.

    Without *key_pem* a fresh account key is generated with *key_algorithm*.
    """
    if key_pem is None:
        account_key = AccountKey.generate(key_algorithm)
    else:
        account_key = AccountKey.from_pem(key_pem)
    client = DirectoryClient(directory_url=server, timeout=timeout, retries=retries)
    return DirectorySession(server, account_key, client=client)


__all__ = ["AccountContext", "DirectorySession", "contact_uris", "open_directory_session"]
