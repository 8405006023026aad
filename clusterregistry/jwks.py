"""Build a JSON Web Key Set from an RSA certificate, for a local OIDC issuer."""

from __future__ import annotations

import argparse
import base64
import hashlib
import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding

DEFAULT_CERTIFICATE = "../../test/testdata/dummycertificate.pem"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _int_bytes(value: int) -> bytes:
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def rsa_thumbprint(public_key: rsa.RSAPublicKey) -> bytes:
    """Return the SHA-256 JWK thumbprint of an RSA public key."""
    numbers = public_key.public_numbers()
    canonical = (
        f'{{"e":"{_b64url(_int_bytes(numbers.e))}","kty":"RSA",'
        f'"n":"{_b64url(_int_bytes(numbers.n))}"}}'
    )
    return hashlib.sha256(canonical.encode("ascii")).digest()


@dataclass
class JWK:
    """One key of a key set; empty members are left out of the JSON."""

    use: str = field(default="", metadata={"json": "use"})
    kty: str = field(default="", metadata={"json": "kty"})
    kid: str = field(default="", metadata={"json": "kid"})
    alg: str = field(default="", metadata={"json": "alg"})
    n: str = field(default="", metadata={"json": "n"})
    e: str = field(default="", metadata={"json": "e"})
    x5c: list[str] = field(default_factory=list, metadata={"json": "x5c"})
    x5t: str = field(default="", metadata={"json": "x5t"})

    def _as_dict(self) -> dict[str, Any]:
        return {
            f.metadata["json"]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name)
        }


@dataclass
class JWKSet:
    """A set of JSON Web Keys."""

    keys: list[JWK] = field(default_factory=list)

    def to_json(self) -> str:
        doc: dict[str, Any] = {}
        if self.keys:
            doc["keys"] = [key._as_dict() for key in self.keys]
        return json.dumps(doc, separators=(",", ":"))


def build_jwks(cert_pem: bytes | str) -> JWKSet:
    """Describe the RSA public key of a PEM certificate as a key set."""
    if isinstance(cert_pem, str):
        cert_pem = cert_pem.encode("ascii")
    cert = x509.load_pem_x509_certificate(cert_pem)
    public_key = cert.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise ValueError("certificate does not hold an RSA public key")

    raw = cert.public_bytes(Encoding.DER)
    numbers = public_key.public_numbers()
    fingerprint = hashlib.sha1(raw).hexdigest().upper()  # noqa: S324 - x5t is SHA-1 by definition

    key = JWK(
        alg="RS256",
        use="sig",
        kty="RSA",
        n=_b64url(_int_bytes(numbers.n)),
        # The exponent is kept as a full 8-byte big-endian value.
        e=_b64url(numbers.e.to_bytes(8, "big")),
        kid=rsa_thumbprint(public_key).hex(),
        x5t=_b64url(fingerprint.encode("ascii")),
        x5c=[base64.b64encode(raw).decode("ascii")],
    )
    return JWKSet(keys=[key])


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print the JSON Web Key Set of an RSA certificate."
    )
    parser.add_argument("certificate", nargs="?", default=DEFAULT_CERTIFICATE,
                        help="path of the PEM certificate")
    args = parser.parse_args(argv)

    try:
        with open(args.certificate, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        print(f"Failed to read file: {exc}", file=sys.stderr)
        return 1
    try:
        jwks = build_jwks(data)
    except ValueError as exc:
        print(f"Failed to parse certificate: {exc}", file=sys.stderr)
        return 1

    print(jwks.to_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())