"""
Compact JWS (signed token) codec.

Signing goes through python-jose; verification parses the token here so
that malformed input, a disallowed algorithm and a bad signature raise
distinct errors.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jws
from jose.exceptions import JOSEError

from .compact import b64url_decode, decode_header, split_compact
from .exceptions import KeyMismatchError, SignatureInvalidError
from .registry import SigningAlgorithm


@dataclass(frozen=True)
class SignedToken:
    header: Dict[str, Any]
    payload: bytes
    signing_input: bytes
    signature: bytes


def sign_compact(
    payload: bytes,
    key: rsa.RSAPrivateKey,
    algorithm: SigningAlgorithm,
    headers: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Produce a compact JWS over raw payload bytes.

    Raises:
        KeyMismatchError: If the key is not an RSA private key
    """
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyMismatchError(f"{algorithm.name} requires an RSA private key")

    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    try:
        return jws.sign(payload, pem, headers=headers, algorithm=algorithm.name)
    except JOSEError as e:
        raise KeyMismatchError(f"Signing with {algorithm.name} failed: {e}") from e


def parse_compact(token: Any) -> SignedToken:
    """
    Split a compact JWS without verifying it.

    Raises:
        MalformedTokenError: On wrong structure or encoding
    """
    header_b64, payload_b64, signature_b64 = split_compact(token, 3)
    return SignedToken(
        header=decode_header(header_b64),
        payload=b64url_decode(payload_b64),
        signing_input=f"{header_b64}.{payload_b64}".encode("ascii"),
        signature=b64url_decode(signature_b64),
    )


def verify_signature(
    token: SignedToken,
    key: rsa.RSAPublicKey,
    algorithm: SigningAlgorithm,
) -> None:
    """
    Raises:
        KeyMismatchError: If the key is not an RSA public key
        SignatureInvalidError: If the signature does not match
    """
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyMismatchError(f"{algorithm.name} requires an RSA public key")

    pem = key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    try:
        verified = jwk.construct(pem, algorithm.name).verify(token.signing_input, token.signature)
    except JOSEError as e:
        raise SignatureInvalidError("Signature verification failed") from e

    if not verified:
        raise SignatureInvalidError("Signature verification failed")


__all__ = ["SignedToken", "sign_compact", "parse_compact", "verify_signature"]
