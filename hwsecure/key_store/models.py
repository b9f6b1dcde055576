"""
Key Store Data Models
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import rsa


class KeyRole(str, Enum):
    """What a key is used for in the exchange."""
    OWN_SIGNING = "own-signing"
    OWN_ENCRYPTION = "own-encryption"
    PEER_ENCRYPTION = "peer-encryption"
    PEER_VERIFICATION = "peer-verification"

    @property
    def is_own(self) -> bool:
        return self in (KeyRole.OWN_SIGNING, KeyRole.OWN_ENCRYPTION)

    @property
    def jwk_use(self) -> str:
        if self in (KeyRole.OWN_SIGNING, KeyRole.PEER_VERIFICATION):
            return "sig"
        return "enc"


RSAKey = Union[rsa.RSAPrivateKey, rsa.RSAPublicKey]


@dataclass(frozen=True)
class KeyMaterial:
    """A loaded key tagged with its role."""
    role: KeyRole
    key: RSAKey
    algorithm: str
    key_size: int
    key_id: Optional[str] = None

    @property
    def is_private(self) -> bool:
        return isinstance(self.key, rsa.RSAPrivateKey)

    def public_key(self) -> rsa.RSAPublicKey:
        if self.is_private:
            return self.key.public_key()
        return self.key

    def __repr__(self) -> str:
        return (
            f"KeyMaterial(role={self.role.value!r}, algorithm={self.algorithm!r}, "
            f"key_size={self.key_size}, key_id={self.key_id!r})"
        )


@dataclass(frozen=True)
class KeySet:
    """The four keys needed for an end-to-end protected exchange."""
    own_signing: KeyMaterial
    own_encryption: KeyMaterial
    peer_encryption: KeyMaterial
    peer_verification: KeyMaterial

    def __iter__(self):
        yield self.own_signing
        yield self.own_encryption
        yield self.peer_encryption
        yield self.peer_verification
