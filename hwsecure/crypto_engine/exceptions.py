"""
Payload Protection Exceptions
"""

from ..exceptions import HwSecureError, Phase


class ProtectionError(HwSecureError):
    """Base exception for signing/encryption failures."""
    phase = Phase.PROTECTION


class UnsupportedAlgorithmError(ProtectionError):
    """Algorithm is not registered or not in the configured allow-list."""
    pass


class KeyMismatchError(ProtectionError):
    """Key type does not fit the requested algorithm."""
    pass


class MalformedTokenError(ProtectionError):
    """Token structure, encoding or payload could not be parsed."""
    pass


class KeyUnwrapError(ProtectionError):
    """Content-encryption key could not be recovered."""
    pass


class AuthenticationFailedError(ProtectionError):
    """Ciphertext or authentication tag failed verification."""
    pass


class SignatureInvalidError(ProtectionError):
    """Inner signature did not verify against the peer key."""
    pass


class SignatureExpiredError(SignatureInvalidError):
    """Inner signature carries an expiry in the past."""
    pass
