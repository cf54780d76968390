"""ACME directory transport: directory document, nonces and signed requests."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Any

from acmectl.crypto.account_key import AccountKey
from acmectl.errors import DirectoryRequestError, DirectoryUnavailableError
from acmectl.resources import Directory

logger = logging.getLogger(__name__)

ACME_ERROR_NAMESPACE = "urn:ietf:params:acme:error:"
BAD_NONCE = ACME_ERROR_NAMESPACE + "badNonce"
BAD_NONCE_RETRIES = 1
JOSE_CONTENT_TYPE = "application/jose+json"


def _user_agent() -> str:
    try:
        return f"acmectl/{pkg_version('acmectl')}"
    except PackageNotFoundError:
        return "acmectl/0.0.0+local"


@dataclass(frozen=True)
class DirectoryResponse:
    status_code: int
    location: str | None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class DirectoryClient:
    directory_url: str
    timeout: float = 10.0
    retries: int = 2

    def __post_init__(self) -> None:
        try:
            import requests
            from requests.adapters import HTTPAdapter
            from urllib3.util.retry import Retry
        except Exception as exc:  # pragma: no cover
            raise DirectoryUnavailableError(f"requests stack unavailable: {exc}") from exc

        self._requests = requests
        self._session = requests.Session()
        # Signed POSTs carry single-use nonces and are never replayed here.
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 500, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("GET", "HEAD"),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)
        self._session.headers["User-Agent"] = _user_agent()
        self._directory: Directory | None = None
        self._nonce: str | None = None

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except self._requests.RequestException as exc:
            raise DirectoryUnavailableError(f"{method} {url} failed: {exc}") from exc

    def _remember_nonce(self, response: Any) -> None:
        nonce = response.headers.get("Replay-Nonce")
        if nonce:
            self._nonce = nonce

    @staticmethod
    def _json_body(response: Any) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _raise_for_problem(response: Any) -> None:
        if response.status_code < 400:
            return
        body: object | None
        try:
            body = response.json()
        except ValueError:
            body = None

        problem_type: str | None = None
        detail: object | None = None
        subproblems: list | None = None
        if isinstance(body, dict):
            raw_type = body.get("type")
            problem_type = raw_type if isinstance(raw_type, str) else None
            detail = body.get("detail")
            raw_subproblems = body.get("subproblems")
            subproblems = raw_subproblems if isinstance(raw_subproblems, list) else None

        if isinstance(detail, str) and problem_type:
            message = f"directory request failed: {response.status_code} {problem_type}: {detail}"
        elif isinstance(detail, str):
            message = f"directory request failed: {response.status_code} {detail}"
        else:
            message = f"directory request failed: {response.status_code} {response.text}"
        raise DirectoryRequestError(
            message,
            status_code=response.status_code,
            problem_type=problem_type,
            detail=detail,
            subproblems=subproblems,
            body=body,
        )

    def get_directory(self) -> Directory:
        if self._directory is None:
            logger.debug("Fetching ACME directory %s.", self.directory_url)
            response = self._send("GET", self.directory_url)
            self._raise_for_problem(response)
            self._remember_nonce(response)
            try:
                self._directory = Directory.model_validate(response.json())
            except ValueError as exc:
                raise DirectoryRequestError(
                    f"invalid ACME directory document at {self.directory_url}",
                    status_code=response.status_code,
                ) from exc
        return self._directory

    def _take_nonce(self) -> str:
        if self._nonce is None:
            directory = self.get_directory()
            if self._nonce is None:
                logger.debug("Requesting new nonce from %s.", directory.new_nonce)
                response = self._send("HEAD", directory.new_nonce)
                self._raise_for_problem(response)
                self._remember_nonce(response)
        nonce, self._nonce = self._nonce, None
        if not nonce:
            raise DirectoryRequestError("directory did not return a Replay-Nonce header")
        return nonce

    def post(
        self,
        url: str,
        payload: dict[str, Any] | None,
        key: AccountKey,
        *,
        kid: str | None = None,
    ) -> DirectoryResponse:
        """Send a JWS-signed POST; ``payload=None`` is a POST-as-GET."""
        body = "" if payload is None else json.dumps(payload, separators=(",", ":"))
        attempt = 0
        while True:
            protected: dict[str, Any] = {
                "alg": key.algorithm,
                "nonce": self._take_nonce(),
                "url": url,
            }
            if kid:
                protected["kid"] = kid
            else:
                protected["jwk"] = key.public_jwk()

            response = self._send(
                "POST",
                url,
                json=key.sign(protected, body),
                headers={"Content-Type": JOSE_CONTENT_TYPE},
                allow_redirects=False,
            )
            self._remember_nonce(response)
            try:
                self._raise_for_problem(response)
            except DirectoryRequestError as exc:
                if exc.problem_type == BAD_NONCE and attempt < BAD_NONCE_RETRIES:
                    attempt += 1
                    logger.debug("Nonce rejected by %s, retrying.", url)
                    continue
                raise
            return DirectoryResponse(
                status_code=response.status_code,
                location=response.headers.get("Location"),
                payload=self._json_body(response),
            )

    def get_json(self, url: str) -> dict[str, Any]:
        response = self._send("GET", url)
        self._raise_for_problem(response)
        body = self._json_body(response)
        if not body:
            raise DirectoryRequestError(f"empty response from {url}", status_code=response.status_code)
        return body


__all__ = ["DirectoryClient", "DirectoryResponse"]
