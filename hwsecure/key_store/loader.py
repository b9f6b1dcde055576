"""
Key Loading

Reads the four RSA keys used for payload protection from their configured
sources (file path, inline PEM/JWK text or raw bytes) and validates them
against the configured algorithms. All checks run once at client
construction so a bad key never surfaces on first use.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk
from jose.exceptions import JOSEError

from ..crypto_engine.exceptions import UnsupportedAlgorithmError
from ..crypto_engine.registry import AlgorithmPolicy
from .exceptions import AmbiguousKeySourceError, IncompatibleKeyError, MissingKeyError
from .models import KeyMaterial, KeyRole, KeySet

if TYPE_CHECKING:
    from ..config import EncryptionSettings, KeySource

logger = logging.getLogger(__name__)


def read_source(role: KeyRole, source: Optional[KeySource]) -> bytes:
    """
    Read raw key bytes from exactly one configured source.

    Raises:
        MissingKeyError: If no source is set or the file does not exist
        AmbiguousKeySourceError: If more than one source is set
    """
    if source is None:
        raise MissingKeyError(f"No key configured for {role.value}", role=role.value)

    provided = source.provided()
    if not provided:
        raise MissingKeyError(f"No key source set for {role.value}", role=role.value)
    if len(provided) > 1:
        raise AmbiguousKeySourceError(
            f"Key {role.value} has several sources: {', '.join(provided)}",
            role=role.value,
        )

    if source.path:
        path = source.path.expanduser()
        if not path.is_file():
            raise MissingKeyError(f"Key file for {role.value} not found: {path}", role=role.value)
        return path.read_bytes()
    if source.text:
        return source.text.encode("utf-8")
    return bytes(source.data)


def _select_from_jwk_set(role: KeyRole, keys: Any, key_id: Optional[str]) -> Dict[str, Any]:
    if not isinstance(keys, list):
        raise IncompatibleKeyError(f"Invalid JWK set for {role.value}", role=role.value)

    if key_id:
        candidates = [k for k in keys if isinstance(k, dict) and k.get("kid") == key_id]
    else:
        candidates = [
            k for k in keys
            if isinstance(k, dict) and k.get("use", role.jwk_use) == role.jwk_use
        ]

    if not candidates:
        raise MissingKeyError(
            f"No key in JWK set matches {role.value} (kid={key_id!r})", role=role.value
        )
    if len(candidates) > 1:
        raise AmbiguousKeySourceError(
            f"Several keys in JWK set match {role.value}; set key_id", role=role.value
        )
    return candidates[0]


def _parse_jwk(role: KeyRole, document: Dict[str, Any]):
    if document.get("kty") != "RSA":
        raise IncompatibleKeyError(
            f"Key {role.value} must be RSA, got kty={document.get('kty')!r}", role=role.value
        )
    # "alg" on the JWK would make jose pick its own algorithm class
    document = {k: v for k, v in document.items() if k != "alg"}
    try:
        key = jwk.construct(document, "RS256")
        pem = key.to_pem()
    except (JOSEError, ValueError, TypeError) as e:
        raise IncompatibleKeyError(f"Invalid JWK for {role.value}: {e}", role=role.value) from e

    if "d" in document:
        return serialization.load_pem_private_key(pem, password=None)
    return serialization.load_pem_public_key(pem)


def _parse_pem_or_der(role: KeyRole, raw: bytes, password: Optional[bytes]):
    if b"-----BEGIN CERTIFICATE-----" in raw:
        try:
            return x509.load_pem_x509_certificate(raw).public_key()
        except ValueError as e:
            raise IncompatibleKeyError(f"Invalid certificate for {role.value}", role=role.value) from e

    if b"-----BEGIN" in raw:
        loaders = (
            lambda: serialization.load_pem_private_key(raw, password=password),
            lambda: serialization.load_pem_public_key(raw),
        )
    else:
        loaders = (
            lambda: serialization.load_der_private_key(raw, password=password),
            lambda: serialization.load_der_public_key(raw),
        )

    for load in loaders:
        try:
            return load()
        except (ValueError, TypeError):
            continue

    raise IncompatibleKeyError(f"Could not parse key material for {role.value}", role=role.value)


def parse_key(role: KeyRole, raw: bytes, source: KeySource):
    """
    Parse PEM, DER, JWK or JWK-set bytes into a key object and its kid.

    Returns:
        Tuple of (key, key_id)
    """
    raw = raw.strip()
    key_id = source.key_id

    if raw.startswith(b"{"):
        try:
            document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise IncompatibleKeyError(f"Invalid JWK JSON for {role.value}", role=role.value) from e
        if not isinstance(document, dict):
            raise IncompatibleKeyError(f"Invalid JWK JSON for {role.value}", role=role.value)
        if "keys" in document:
            document = _select_from_jwk_set(role, document["keys"], key_id)
        return _parse_jwk(role, document), key_id or document.get("kid")

    password = source.password.get_secret_value().encode("utf-8") if source.password else None
    return _parse_pem_or_der(role, raw, password), key_id


def load_key(role: KeyRole, source: Optional[KeySource], min_key_size: int) -> KeyMaterial:
    """
    Load and validate the key for one role.

    Raises:
        KeyLoadError: On any missing, ambiguous or incompatible key
    """
    key, key_id = parse_key(role, read_source(role, source), source)

    if not isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
        raise IncompatibleKeyError(
            f"Key {role.value} must be RSA, got {type(key).__name__}", role=role.value
        )

    if role.is_own and not isinstance(key, rsa.RSAPrivateKey):
        raise IncompatibleKeyError(f"Key {role.value} must be a private key", role=role.value)

    if not role.is_own and isinstance(key, rsa.RSAPrivateKey):
        logger.warning("Private key configured for %s; using its public half", role.value)
        key = key.public_key()

    if key.key_size < min_key_size:
        raise IncompatibleKeyError(
            f"Key {role.value} is {key.key_size} bits, at least {min_key_size} required",
            role=role.value,
        )

    return KeyMaterial(
        role=role,
        key=key,
        algorithm="RSA",
        key_size=key.key_size,
        key_id=key_id,
    )


class KeyStore:
    """
    Loads the key material for a client.

    Keys are loaded once and are immutable afterwards; the resulting
    KeySet is safe to share between concurrent calls.
    """

    @staticmethod
    def policy_for(config: EncryptionSettings) -> AlgorithmPolicy:
        try:
            return config.algorithm_policy()
        except UnsupportedAlgorithmError as e:
            raise IncompatibleKeyError(str(e)) from e

    @classmethod
    def load(cls, config: EncryptionSettings) -> KeySet:
        """
        Load all four keys.

        Args:
            config: Encryption settings with one source per key

        Returns:
            KeySet with validated RSA keys

        Raises:
            MissingKeyError: If a key has no source
            AmbiguousKeySourceError: If a key has more than one source
            IncompatibleKeyError: If a key does not fit the algorithms
        """
        policy = cls.policy_for(config)
        min_size = policy.min_key_size()

        keys = KeySet(
            own_signing=load_key(KeyRole.OWN_SIGNING, config.own_signing_key, min_size),
            own_encryption=load_key(KeyRole.OWN_ENCRYPTION, config.own_encryption_key, min_size),
            peer_encryption=load_key(KeyRole.PEER_ENCRYPTION, config.peer_encryption_key, min_size),
            peer_verification=load_key(
                KeyRole.PEER_VERIFICATION, config.peer_verification_key, min_size
            ),
        )

        for material in keys:
            logger.info(
                "Loaded %s key (%s-%d, kid=%s)",
                material.role.value, material.algorithm, material.key_size, material.key_id,
            )
        return keys
