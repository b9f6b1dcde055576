"""
Payload Protection

Signs then encrypts outgoing JSON documents, and decrypts then verifies
incoming ones.

Outgoing:  JSON -> canonical bytes -> JWS (own signing key)
                -> JWE (fresh CEK wrapped for the peer encryption key)
Incoming:  JWE -> CEK unwrapped with own encryption key -> tag verified
                -> JWS verified with peer verification key -> JSON

Every algorithm read from a token header is checked against the policy's
allow-list before it is used. Operations are pure: no I/O and no shared
mutable state, so one protector may serve concurrent calls.
"""

import json
import logging
import time
from typing import Any, Callable, Optional

from ..key_store.models import KeySet
from . import jwe, jws
from .compact import canonical_json
from .exceptions import MalformedTokenError, SignatureExpiredError, SignatureInvalidError
from .registry import AlgorithmPolicy

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/jose+json"

DEFAULT_SIGNATURE_TTL = 300
DEFAULT_LEEWAY = 30


class PayloadProtector:
    """
    Two-layer (signature + encryption) payload protection.

    Args:
        keys: Loaded key set
        policy: Algorithms for outgoing tokens and allow-list for incoming ones
        signature_ttl: Seconds until an outgoing signature expires; None for no expiry
        leeway: Clock skew tolerated when checking incoming expiry, in seconds
        clock: Returns the current Unix time
    """

    def __init__(
        self,
        keys: KeySet,
        policy: Optional[AlgorithmPolicy] = None,
        signature_ttl: Optional[int] = DEFAULT_SIGNATURE_TTL,
        leeway: int = DEFAULT_LEEWAY,
        clock: Callable[[], float] = time.time,
    ):
        self.keys = keys
        self.policy = policy or AlgorithmPolicy()
        self.signature_ttl = signature_ttl
        self.leeway = leeway
        self._clock = clock

    @classmethod
    def from_settings(cls, config) -> "PayloadProtector":
        """
        Load keys and policy from EncryptionSettings.

        Raises:
            KeyLoadError: If any key cannot be loaded
        """
        from ..key_store.loader import KeyStore

        return cls(
            keys=KeyStore.load(config),
            policy=KeyStore.policy_for(config),
            signature_ttl=config.signature_ttl,
            leeway=config.leeway,
        )

    def protect(self, payload: Any, algorithms: Optional[AlgorithmPolicy] = None) -> str:
        """
        Sign and encrypt a JSON document.

        Args:
            payload: JSON-serializable document
            algorithms: Override for the configured policy

        Returns:
            Compact five-segment token

        Raises:
            UnsupportedAlgorithmError: If an algorithm is not registered
            KeyMismatchError: If a key does not fit its algorithm
            MalformedTokenError: If payload is not JSON serializable
        """
        policy = algorithms or self.policy
        signing = policy.accept_signing(policy.signing)
        key_management = policy.accept_key_management(policy.key_management)
        content_encryption = policy.accept_content_encryption(policy.content_encryption)

        headers = {"typ": "JOSE"}
        if self.keys.own_signing.key_id:
            headers["kid"] = self.keys.own_signing.key_id
        if self.signature_ttl is not None:
            headers["exp"] = int(self._clock()) + self.signature_ttl

        signed = jws.sign_compact(
            canonical_json(payload), self.keys.own_signing.key, signing, headers
        )

        token = jwe.encrypt_compact(
            signed.encode("ascii"),
            self.keys.peer_encryption.key,
            key_management,
            content_encryption,
            kid=self.keys.peer_encryption.key_id,
        )
        logger.debug(
            "Protected payload (%s, %s, %s), %d bytes",
            signing.name, key_management.name, content_encryption.name, len(token),
        )
        return token

    def unprotect(self, token: Any, algorithms: Optional[AlgorithmPolicy] = None) -> Any:
        """
        Decrypt and verify a protected token.

        Args:
            token: Compact five-segment token (str or ASCII bytes)
            algorithms: Override for the configured policy

        Returns:
            The verified JSON document

        Raises:
            MalformedTokenError: On bad structure, encoding or payload
            UnsupportedAlgorithmError: If a header algorithm is not allowed
            KeyUnwrapError: If the content key cannot be recovered
            AuthenticationFailedError: If the ciphertext or tag was altered
            SignatureInvalidError: If the inner signature does not verify
            SignatureExpiredError: If the inner signature has expired
        """
        policy = algorithms or self.policy

        encrypted = jwe.parse_compact(token)
        key_management = policy.accept_key_management(encrypted.header.get("alg"))
        content_encryption = policy.accept_content_encryption(encrypted.header.get("enc"))

        inner = jwe.decrypt_parts(
            encrypted, self.keys.own_encryption.key, key_management, content_encryption
        )

        signed = jws.parse_compact(inner)
        signing = policy.accept_signing(signed.header.get("alg"))

        expected_kid = self.keys.peer_verification.key_id
        kid = signed.header.get("kid")
        if expected_kid and kid and kid != expected_kid:
            raise SignatureInvalidError(f"Unknown signing key id: {kid!r}")

        jws.verify_signature(signed, self.keys.peer_verification.key, signing)
        self._check_expiry(signed.header)

        try:
            return json.loads(signed.payload.decode("utf-8"))
        except ValueError as e:
            raise MalformedTokenError("Verified payload is not JSON") from e

    def _check_expiry(self, header: dict) -> None:
        exp = header.get("exp")
        if exp is None:
            return
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise MalformedTokenError("Signature expiry must be a number")
        if exp + self.leeway < self._clock():
            raise SignatureExpiredError("Signature has expired")
