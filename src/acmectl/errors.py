"""acmectl error types."""

from __future__ import annotations


class AcmeCtlError(RuntimeError):
    """Base acmectl error."""


class ConfigurationError(AcmeCtlError):
    """Account options failed a validation rule."""


class KeyConflictError(AcmeCtlError):
    """An account key already exists and overwriting it was not requested."""


class MissingKeyError(AcmeCtlError):
    """No account key is available for an operation requiring it."""


class UnsupportedActionError(AcmeCtlError):
    """Account action is accepted by the parser but has no handler."""


class AccountKeyError(AcmeCtlError):
    """Key material is not a supported private key."""


class DirectoryUnavailableError(AcmeCtlError):
    """ACME directory could not be reached."""


class DirectoryRequestError(DirectoryUnavailableError):
    """ACME directory returned a problem document or an unusable response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        problem_type: str | None = None,
        detail: object | None = None,
        subproblems: list | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.problem_type = problem_type
        self.detail = detail
        self.subproblems = subproblems or []
        self.body = body
