"""
Compact JWE (encrypted token) codec.

Token layout: header.encrypted_key.iv.ciphertext.tag, each segment base64url.
The encoded protected header is the additional authenticated data, so any
change to the header also fails tag verification.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import rsa

from .compact import b64url_decode, b64url_encode, canonical_json, decode_header, split_compact
from .exceptions import (
    AuthenticationFailedError,
    KeyMismatchError,
    KeyUnwrapError,
    MalformedTokenError,
)
from .registry import ContentEncryptionAlgorithm, KeyManagementAlgorithm
from .rsa_oaep import rsa_unwrap_key, rsa_wrap_key
from .secure_random import generate_content_key

# Same message for every unwrap failure
UNWRAP_FAILED = "Unable to recover content encryption key"


@dataclass(frozen=True)
class EncryptedToken:
    header: Dict[str, Any]
    protected: str
    encrypted_key: bytes
    iv: bytes
    ciphertext: bytes
    tag: bytes


def encrypt_compact(
    plaintext: bytes,
    key: rsa.RSAPublicKey,
    key_management: KeyManagementAlgorithm,
    content_encryption: ContentEncryptionAlgorithm,
    kid: Optional[str] = None,
    cty: Optional[str] = "JWT",
) -> str:
    """
    Encrypt plaintext for the holder of the private half of ``key``.

    Raises:
        KeyMismatchError: If the key is not an RSA public key
    """
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyMismatchError(f"{key_management.name} requires an RSA public key")

    header: Dict[str, Any] = {"alg": key_management.name, "enc": content_encryption.name}
    if kid:
        header["kid"] = kid
    if cty:
        header["cty"] = cty

    protected = b64url_encode(canonical_json(header))

    cek = generate_content_key(content_encryption.key_size)
    encrypted_key = rsa_wrap_key(cek, key, key_management.hash_cls)
    iv, ciphertext, tag = content_encryption.encrypt(plaintext, cek, protected.encode("ascii"))

    return ".".join([
        protected,
        b64url_encode(encrypted_key),
        b64url_encode(iv),
        b64url_encode(ciphertext),
        b64url_encode(tag),
    ])


def parse_compact(token: Any) -> EncryptedToken:
    """
    Split and decode a compact JWE.

    Raises:
        MalformedTokenError: On wrong segment count, bad encoding or header
    """
    protected, encrypted_key, iv, ciphertext, tag = split_compact(token, 5)
    return EncryptedToken(
        header=decode_header(protected),
        protected=protected,
        encrypted_key=b64url_decode(encrypted_key),
        iv=b64url_decode(iv),
        ciphertext=b64url_decode(ciphertext),
        tag=b64url_decode(tag),
    )


def decrypt_parts(
    token: EncryptedToken,
    key: rsa.RSAPrivateKey,
    key_management: KeyManagementAlgorithm,
    content_encryption: ContentEncryptionAlgorithm,
) -> bytes:
    """
    Unwrap the content key and decrypt.

    Raises:
        KeyMismatchError: If the key is not an RSA private key
        MalformedTokenError: If the IV has the wrong size
        KeyUnwrapError: If the content key cannot be recovered
        AuthenticationFailedError: If the tag does not verify
    """
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyMismatchError(f"{key_management.name} requires an RSA private key")

    if len(token.iv) != content_encryption.iv_size:
        raise MalformedTokenError(
            f"IV must be {content_encryption.iv_size} bytes for {content_encryption.name}"
        )

    try:
        cek = rsa_unwrap_key(token.encrypted_key, key, key_management.hash_cls)
    except ValueError:
        raise KeyUnwrapError(UNWRAP_FAILED) from None

    if len(cek) != content_encryption.key_size:
        raise KeyUnwrapError(UNWRAP_FAILED)

    try:
        return content_encryption.decrypt(
            token.ciphertext, cek, token.iv, token.tag, token.protected.encode("ascii")
        )
    except InvalidTag:
        raise AuthenticationFailedError("Authentication tag verification failed") from None
