"""
RSA-OAEP Key Wrapping

Wraps the per-message content-encryption key for the recipient's RSA
public key ("RSA-OAEP" with SHA-1, "RSA-OAEP-256" with SHA-256).
"""

from typing import Type

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa


def _oaep(hash_cls: Type[hashes.HashAlgorithm]) -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hash_cls()),
        algorithm=hash_cls(),
        label=None,
    )


def rsa_wrap_key(
    cek: bytes,
    public_key: rsa.RSAPublicKey,
    hash_cls: Type[hashes.HashAlgorithm],
) -> bytes:
    """Encrypt a content key for the holder of the matching private key."""
    return public_key.encrypt(cek, _oaep(hash_cls))


def rsa_unwrap_key(
    encrypted_key: bytes,
    private_key: rsa.RSAPrivateKey,
    hash_cls: Type[hashes.HashAlgorithm],
) -> bytes:
    """
    Recover a content key.

    Raises:
        ValueError: If decryption fails for any reason
    """
    return private_key.decrypt(encrypted_key, _oaep(hash_cls))
