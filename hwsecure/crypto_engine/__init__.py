"""
Crypto Engine Package

Signature + encryption protection for API payloads: compact JWS nested in
compact JWE, with a static algorithm registry and allow-list checks.
"""

from .exceptions import (
    ProtectionError,
    UnsupportedAlgorithmError,
    KeyMismatchError,
    MalformedTokenError,
    KeyUnwrapError,
    AuthenticationFailedError,
    SignatureInvalidError,
    SignatureExpiredError,
)
from .protector import CONTENT_TYPE, PayloadProtector
from .registry import AlgorithmPolicy

__all__ = [
    "PayloadProtector",
    "AlgorithmPolicy",
    "CONTENT_TYPE",
    "ProtectionError",
    "UnsupportedAlgorithmError",
    "KeyMismatchError",
    "MalformedTokenError",
    "KeyUnwrapError",
    "AuthenticationFailedError",
    "SignatureInvalidError",
    "SignatureExpiredError",
]
