"""
AES-256-CBC with HMAC-SHA-512

Composite authenticated encryption for the "A256CBC-HS512" content-encryption
algorithm (RFC 7518, section 5.2.5). The 64-byte content key is split into a
MAC key (first half) and an encryption key (second half); the tag is the
leading 32 bytes of HMAC-SHA-512 over AAD || IV || ciphertext || AAD bit length.
"""

import struct
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .secure_random import generate_nonce, secure_compare


KEY_SIZE = 64
IV_SIZE = 16
TAG_SIZE = 32


def _split_key(key: bytes) -> Tuple[bytes, bytes]:
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    return key[:KEY_SIZE // 2], key[KEY_SIZE // 2:]


def _compute_tag(mac_key: bytes, associated_data: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    al = struct.pack(">Q", len(associated_data) * 8)
    mac = hmac.HMAC(mac_key, hashes.SHA512())
    mac.update(associated_data + iv + ciphertext + al)
    return mac.finalize()[:TAG_SIZE]


def cbc_hmac_encrypt(
    plaintext: bytes,
    key: bytes,
    associated_data: bytes = b"",
) -> Tuple[bytes, bytes, bytes]:
    """
    Encrypt data using AES-256-CBC-HMAC-SHA-512.

    Returns:
        Tuple of (iv, ciphertext, tag)
    """
    mac_key, enc_key = _split_key(key)
    iv = generate_nonce(IV_SIZE)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()

    encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return iv, ciphertext, _compute_tag(mac_key, associated_data, iv, ciphertext)


def cbc_hmac_decrypt(
    ciphertext: bytes,
    key: bytes,
    iv: bytes,
    tag: bytes,
    associated_data: bytes = b"",
) -> bytes:
    """
    Verify the tag, then decrypt.

    The tag is checked before any decryption so a forged message never
    reaches the padding oracle.

    Raises:
        ValueError: If key or IV have the wrong size
        cryptography.exceptions.InvalidTag: If authentication fails
    """
    mac_key, enc_key = _split_key(key)

    if len(iv) != IV_SIZE:
        raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")

    expected = _compute_tag(mac_key, associated_data, iv, ciphertext)
    if not secure_compare(expected, tag):
        raise InvalidTag()

    if not ciphertext or len(ciphertext) % IV_SIZE:
        raise InvalidTag()

    decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise InvalidTag() from e
