"""Algorithm registry for payload protection.

Supported algorithms:
  signing:            RS256, RS384, RS512 (RSASSA-PKCS1-v1_5)
  key management:     RSA-OAEP-256, RSA-OAEP
  content encryption: A256GCM, A256CBC-HS512

The tables are fixed at import time. Every identifier a policy references
must exist here; nothing is registered at runtime.

The registry exposes:
  get_signing_algorithm(name), get_key_management_algorithm(name),
  get_content_encryption_algorithm(name) -> registry entry or
  UnsupportedAlgorithmError
  AlgorithmPolicy -> the triple used for outgoing payloads plus the
  allow-list applied to incoming ones
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Tuple, Type

from cryptography.hazmat.primitives import hashes

from .aes_cbc_hmac import cbc_hmac_decrypt, cbc_hmac_encrypt
from .aes_gcm import aes_decrypt, aes_encrypt
from .exceptions import UnsupportedAlgorithmError

RSA_MIN_KEY_SIZE = 2048


@dataclass(frozen=True)
class SigningAlgorithm:
    name: str
    key_type: str
    min_key_size: int


@dataclass(frozen=True)
class KeyManagementAlgorithm:
    name: str
    key_type: str
    min_key_size: int
    hash_cls: Type[hashes.HashAlgorithm]


@dataclass(frozen=True)
class ContentEncryptionAlgorithm:
    name: str
    key_size: int
    iv_size: int
    encrypt: Callable[[bytes, bytes, bytes], Tuple[bytes, bytes, bytes]]
    decrypt: Callable[[bytes, bytes, bytes, bytes, bytes], bytes]


SIGNING_ALGORITHMS: Dict[str, SigningAlgorithm] = {
    alg.name: alg
    for alg in (
        SigningAlgorithm("RS256", "RSA", RSA_MIN_KEY_SIZE),
        SigningAlgorithm("RS384", "RSA", RSA_MIN_KEY_SIZE),
        SigningAlgorithm("RS512", "RSA", RSA_MIN_KEY_SIZE),
    )
}

KEY_MANAGEMENT_ALGORITHMS: Dict[str, KeyManagementAlgorithm] = {
    alg.name: alg
    for alg in (
        KeyManagementAlgorithm("RSA-OAEP-256", "RSA", RSA_MIN_KEY_SIZE, hashes.SHA256),
        KeyManagementAlgorithm("RSA-OAEP", "RSA", RSA_MIN_KEY_SIZE, hashes.SHA1),
    )
}

CONTENT_ENCRYPTION_ALGORITHMS: Dict[str, ContentEncryptionAlgorithm] = {
    alg.name: alg
    for alg in (
        ContentEncryptionAlgorithm("A256GCM", 32, 12, aes_encrypt, aes_decrypt),
        ContentEncryptionAlgorithm("A256CBC-HS512", 64, 16, cbc_hmac_encrypt, cbc_hmac_decrypt),
    )
}


def _lookup(table: Dict, family: str, name) -> object:
    if not isinstance(name, str) or name not in table:
        raise UnsupportedAlgorithmError(f"Unsupported {family} algorithm: {name!r}")
    return table[name]


def get_signing_algorithm(name: str) -> SigningAlgorithm:
    return _lookup(SIGNING_ALGORITHMS, "signing", name)


def get_key_management_algorithm(name: str) -> KeyManagementAlgorithm:
    return _lookup(KEY_MANAGEMENT_ALGORITHMS, "key management", name)


def get_content_encryption_algorithm(name: str) -> ContentEncryptionAlgorithm:
    return _lookup(CONTENT_ENCRYPTION_ALGORITHMS, "content encryption", name)


def _allowed(configured: str, extra: Iterable[str], table: Dict, family: str) -> FrozenSet[str]:
    names = frozenset(extra) | {configured}
    for name in names:
        _lookup(table, family, name)
    return names


@dataclass(frozen=True)
class AlgorithmPolicy:
    """
    Algorithms used to protect outgoing payloads and accepted on incoming ones.

    The allow-lists always contain the configured triple; extra entries let a
    client accept a peer that is migrating algorithms. Header-declared
    algorithms outside the allow-lists are rejected.
    """
    signing: str = "RS256"
    key_management: str = "RSA-OAEP-256"
    content_encryption: str = "A256GCM"
    allowed_signing: FrozenSet[str] = field(default_factory=frozenset)
    allowed_key_management: FrozenSet[str] = field(default_factory=frozenset)
    allowed_content_encryption: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(
            self, "allowed_signing",
            _allowed(self.signing, self.allowed_signing, SIGNING_ALGORITHMS, "signing"),
        )
        object.__setattr__(
            self, "allowed_key_management",
            _allowed(self.key_management, self.allowed_key_management,
                     KEY_MANAGEMENT_ALGORITHMS, "key management"),
        )
        object.__setattr__(
            self, "allowed_content_encryption",
            _allowed(self.content_encryption, self.allowed_content_encryption,
                     CONTENT_ENCRYPTION_ALGORITHMS, "content encryption"),
        )

    def accept_signing(self, name) -> SigningAlgorithm:
        if not isinstance(name, str) or name not in self.allowed_signing:
            raise UnsupportedAlgorithmError(f"Signing algorithm not allowed: {name!r}")
        return get_signing_algorithm(name)

    def accept_key_management(self, name) -> KeyManagementAlgorithm:
        if not isinstance(name, str) or name not in self.allowed_key_management:
            raise UnsupportedAlgorithmError(f"Key management algorithm not allowed: {name!r}")
        return get_key_management_algorithm(name)

    def accept_content_encryption(self, name) -> ContentEncryptionAlgorithm:
        if not isinstance(name, str) or name not in self.allowed_content_encryption:
            raise UnsupportedAlgorithmError(f"Content encryption algorithm not allowed: {name!r}")
        return get_content_encryption_algorithm(name)

    def min_key_size(self) -> int:
        """Largest minimum key size across every allowed RSA algorithm."""
        sizes = [SIGNING_ALGORITHMS[n].min_key_size for n in self.allowed_signing]
        sizes += [KEY_MANAGEMENT_ALGORITHMS[n].min_key_size for n in self.allowed_key_management]
        return max(sizes)


__all__ = [
    "AlgorithmPolicy",
    "SigningAlgorithm",
    "KeyManagementAlgorithm",
    "ContentEncryptionAlgorithm",
    "get_signing_algorithm",
    "get_key_management_algorithm",
    "get_content_encryption_algorithm",
]
