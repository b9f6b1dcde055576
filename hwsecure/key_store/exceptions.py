"""
Key Store Exceptions
"""

from typing import Optional

from ..exceptions import HwSecureError, Phase


class KeyLoadError(HwSecureError):
    """Base exception for key loading failures."""
    phase = Phase.CONFIGURATION

    def __init__(self, message: str = "", role: Optional[str] = None):
        super().__init__(message)
        self.role = role


class MissingKeyError(KeyLoadError):
    """No source configured for a required key, or the source is absent."""
    pass


class AmbiguousKeySourceError(KeyLoadError):
    """More than one source configured, or several keys match."""
    pass


class IncompatibleKeyError(KeyLoadError):
    """Key cannot be used with the configured algorithms."""
    pass
