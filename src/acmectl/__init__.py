"""acmectl public surface."""

from acmectl.client import DirectoryClient, DirectoryResponse
from acmectl.context import AccountContext, DirectorySession, open_directory_session
from acmectl.crypto.account_key import (
    DEFAULT_KEY_ALGORITHM,
    SUPPORTED_KEY_ALGORITHMS,
    AccountKey,
)
from acmectl.errors import (
    AccountKeyError,
    AcmeCtlError,
    ConfigurationError,
    DirectoryRequestError,
    DirectoryUnavailableError,
    KeyConflictError,
    MissingKeyError,
    UnsupportedActionError,
)
from acmectl.resources import (
    AccountResource,
    Directory,
    DirectoryMeta,
    RenewalInfo,
    SuggestedWindow,
)

__all__ = [
    "AcmeCtlError",
    "ConfigurationError",
    "KeyConflictError",
    "MissingKeyError",
    "UnsupportedActionError",
    "AccountKeyError",
    "DirectoryUnavailableError",
    "DirectoryRequestError",
    "AccountKey",
    "DEFAULT_KEY_ALGORITHM",
    "SUPPORTED_KEY_ALGORITHMS",
    "DirectoryClient",
    "DirectoryResponse",
    "DirectorySession",
    "AccountContext",
    "open_directory_session",
    "AccountResource",
    "Directory",
    "DirectoryMeta",
    "RenewalInfo",
    "SuggestedWindow",
]
