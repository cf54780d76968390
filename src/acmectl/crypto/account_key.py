"""ACME account key: generation, PEM round-trips and JWS signing."""

from __future__ import annotations

from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    load_pem_private_key,
)
from joserfc import jws
from joserfc.errors import JoseError
from joserfc.jwk import ECKey, RSAKey

from acmectl.errors import AccountKeyError

DEFAULT_KEY_ALGORITHM = "ES256"
SUPPORTED_KEY_ALGORITHMS = ("ES256", "ES384", "RS256")
RSA_KEY_SIZE = 2048

_EC_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
}
_CURVE_ALGORITHMS = {
    "secp256r1": "ES256",
    "secp384r1": "ES384",
}


def normalize_key_algorithm(value: str) -> str:
    normalized = value.strip().upper()
    if normalized not in SUPPORTED_KEY_ALGORITHMS:
        raise AccountKeyError(
            "key algorithm must be one of: " + ", ".join(SUPPORTED_KEY_ALGORITHMS)
        )
    return normalized


class AccountKey:
    """Private key authenticating requests made on behalf of an ACME account."""

    def __init__(self, private_key: Any, algorithm: str) -> None:
        self._private_key = private_key
        self._algorithm = algorithm
        pem = self.to_pem()
        if algorithm == "RS256":
            self._jwk = RSAKey.import_key(pem)
        else:
            self._jwk = ECKey.import_key(pem)

    @classmethod
    def generate(cls, algorithm: str = DEFAULT_KEY_ALGORITHM) -> "AccountKey":
        normalized = normalize_key_algorithm(algorithm)
        if normalized == "RS256":
            private = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
        else:
            private = ec.generate_private_key(_EC_CURVES[normalized]())
        return cls(private, normalized)

    @classmethod
    def from_pem(cls, pem: str) -> "AccountKey":
        try:
            private = load_pem_private_key(pem.encode("utf-8"), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise AccountKeyError("account key is not a valid unencrypted PEM private key") from exc

        if isinstance(private, rsa.RSAPrivateKey):
            return cls(private, "RS256")
        if isinstance(private, ec.EllipticCurvePrivateKey):
            algorithm = _CURVE_ALGORITHMS.get(private.curve.name)
            if algorithm is None:
                raise AccountKeyError(f"unsupported account key curve: {private.curve.name}")
            return cls(private, algorithm)
        raise AccountKeyError("account key must be an EC (P-256, P-384) or RSA private key")

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def to_pem(self) -> str:
        return self._private_key.private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        ).decode("ascii")

    def public_jwk(self) -> dict[str, Any]:
        return self._jwk.as_dict(private=False)

    def thumbprint(self) -> str:
        return self._jwk.thumbprint()

    def sign(self, protected: dict[str, Any], payload: str | bytes) -> dict[str, Any]:
        """Return a flattened JWS JSON serialization of *payload*.

        ``alg`` defaults to the key's algorithm. Header members outside the
        JOSE registry (``nonce``, ``url``) are passed through unchecked.
        """
        header = dict(protected)
        header.setdefault("alg", self._algorithm)
        registry = jws.JWSRegistry(algorithms=[header["alg"]], strict_check_header=False)
        try:
            return jws.serialize_json(
                {"protected": header},
                payload=payload,
                private_key=self._jwk,
                registry=registry,
            )
        except JoseError as exc:
            raise AccountKeyError(f"failed to sign request: {exc}") from exc
