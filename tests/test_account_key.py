from __future__ import annotations

import base64
import json

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat

from acmectl.crypto.account_key import AccountKey, normalize_key_algorithm
from acmectl.errors import AccountKeyError


def _b64url_json(value: str) -> dict:
    padded = value + "=" * (-len(value) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def test_generated_key_defaults_to_es256() -> None:
    key = AccountKey.generate()
    assert key.algorithm == "ES256"
    jwk = key.public_jwk()
    assert jwk["kty"] == "EC"
    assert jwk["crv"] == "P-256"
    assert "d" not in jwk


def test_pem_round_trip_preserves_identity() -> None:
    key = AccountKey.generate("ES384")
    restored = AccountKey.from_pem(key.to_pem())

    assert restored.algorithm == "ES384"
    assert restored.thumbprint() == key.thumbprint()
    assert restored.public_jwk() == key.public_jwk()


def test_rsa_key_uses_rs256() -> None:
    key = AccountKey.generate("rs256")
    assert key.algorithm == "RS256"
    assert key.public_jwk()["kty"] == "RSA"
    assert AccountKey.from_pem(key.to_pem()).algorithm == "RS256"


def test_from_pem_rejects_garbage() -> None:
    with pytest.raises(AccountKeyError, match="not a valid"):
        AccountKey.from_pem("not a key")


def test_from_pem_rejects_unsupported_key_type() -> None:
    pem = (
        Ed25519PrivateKey.generate()
        .private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())
        .decode("ascii")
    )
    with pytest.raises(AccountKeyError, match="EC .* or RSA"):
        AccountKey.from_pem(pem)


def test_unknown_algorithm_is_rejected() -> None:
    with pytest.raises(AccountKeyError, match="key algorithm must be one of"):
        normalize_key_algorithm("HS256")


def test_sign_produces_flattened_jws_with_acme_header() -> None:
    key = AccountKey.generate()
    protected = {
        "nonce": "nonce-1",
        "url": "https://acme.test/new-acct",
        "jwk": key.public_jwk(),
    }

    signed = key.sign(protected, '{"termsOfServiceAgreed":true}')

    assert {"protected", "payload", "signature"} <= set(signed)
    assert "signatures" not in signed
    header = _b64url_json(signed["protected"])
    assert header["alg"] == "ES256"
    assert header["nonce"] == "nonce-1"
    assert header["url"] == "https://acme.test/new-acct"
    assert header["jwk"] == key.public_jwk()
    assert _b64url_json(signed["payload"]) == {"termsOfServiceAgreed": True}
    # ES256 signatures are the raw 64-byte r || s concatenation.
    signature = signed["signature"] + "=" * (-len(signed["signature"]) % 4)
    assert len(base64.urlsafe_b64decode(signature)) == 64


def test_sign_empty_payload_for_post_as_get() -> None:
    key = AccountKey.generate()
    signed = key.sign({"nonce": "n", "url": "https://acme.test/acct/1", "kid": "k"}, "")
    assert signed["payload"] == ""
