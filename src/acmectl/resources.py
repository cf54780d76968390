"""ACME resource records (RFC 8555, RFC 9773)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

ACCOUNT_STATUS_VALID = "valid"
ACCOUNT_STATUS_DEACTIVATED = "deactivated"
ACCOUNT_STATUS_REVOKED = "revoked"


class AcmeResource(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DirectoryMeta(AcmeResource):
    terms_of_service: Optional[str] = Field(None, alias="termsOfService")
    website: Optional[str] = None
    caa_identities: Optional[List[str]] = Field(None, alias="caaIdentities")
    external_account_required: Optional[bool] = Field(None, alias="externalAccountRequired")


class Directory(AcmeResource):
    new_nonce: str = Field(..., alias="newNonce")
    new_account: str = Field(..., alias="newAccount")
    new_order: Optional[str] = Field(None, alias="newOrder")
    new_authz: Optional[str] = Field(None, alias="newAuthz")
    revoke_cert: Optional[str] = Field(None, alias="revokeCert")
    key_change: Optional[str] = Field(None, alias="keyChange")
    renewal_info: Optional[str] = Field(None, alias="renewalInfo")
    meta: Optional[DirectoryMeta] = None


class AccountResource(AcmeResource):
    status: Optional[str] = None
    contact: Optional[List[str]] = None
    terms_of_service_agreed: Optional[bool] = Field(None, alias="termsOfServiceAgreed")
    orders: Optional[str] = None
    external_account_binding: Optional[Dict[str, Any]] = Field(
        None, alias="externalAccountBinding"
    )
    # Not part of the account object; taken from the Location header.
    location: Optional[str] = None


class SuggestedWindow(AcmeResource):
    """Recommended renewal period for a certificate."""

    start: datetime
    end: datetime


class RenewalInfo(AcmeResource):
    """Renewal information published by the directory for one certificate."""

    suggested_window: SuggestedWindow = Field(..., alias="suggestedWindow")
    explanation_url: Optional[str] = Field(None, alias="explanationURL")
