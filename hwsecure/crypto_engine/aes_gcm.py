"""
AES-256-GCM Content Encryption

Authenticated encryption for the "A256GCM" content-encryption algorithm.

AES-256 in Galois/Counter Mode (GCM) provides:
- Confidentiality (encryption)
- Integrity (authentication tag)
- Authentication of the protected header (AEAD associated data)

The content-encryption key is generated fresh for every message and is
delivered to the recipient wrapped with RSA-OAEP.
"""

from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .secure_random import generate_nonce


NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32


def aes_encrypt(
    plaintext: bytes,
    key: bytes,
    associated_data: bytes = b"",
) -> Tuple[bytes, bytes, bytes]:
    """
    Encrypt data using AES-256-GCM.

    Args:
        plaintext: Data to encrypt
        key: 256-bit (32 byte) encryption key
        associated_data: Additional authenticated data (the encoded JWE header)

    Returns:
        Tuple of (iv, ciphertext, tag)
        - iv: 12-byte random nonce (must be sent with the ciphertext)
        - ciphertext: The encrypted data (same length as plaintext)
        - tag: 16-byte authentication tag
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")

    nonce = generate_nonce(NONCE_SIZE)

    aesgcm = AESGCM(key)

    ciphertext_with_tag = aesgcm.encrypt(nonce, plaintext, associated_data)

    ciphertext = ciphertext_with_tag[:-TAG_SIZE]
    tag = ciphertext_with_tag[-TAG_SIZE:]

    return nonce, ciphertext, tag


def aes_decrypt(
    ciphertext: bytes,
    key: bytes,
    nonce: bytes,
    tag: bytes,
    associated_data: bytes = b"",
) -> bytes:
    """
    Decrypt data using AES-256-GCM.

    Args:
        ciphertext: Encrypted data
        key: 256-bit encryption key (same as used for encryption)
        nonce: 12-byte nonce used during encryption
        tag: 16-byte authentication tag
        associated_data: Additional authenticated data

    Returns:
        Decrypted plaintext

    Raises:
        ValueError: If key or nonce have the wrong size
        cryptography.exceptions.InvalidTag: If authentication fails
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")

    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")

    # A short tag is an authentication failure, not a usage error
    if len(tag) != TAG_SIZE:
        raise InvalidTag()

    aesgcm = AESGCM(key)

    return aesgcm.decrypt(nonce, ciphertext + tag, associated_data)
