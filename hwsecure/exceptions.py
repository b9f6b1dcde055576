"""
Base exceptions shared by every hwsecure component.
"""

from enum import Enum


class Phase(str, Enum):
    """Stage of a call that produced an error."""
    CONFIGURATION = "configuration"
    REQUEST_BUILDING = "request-building"
    PROTECTION = "protection"
    TRANSPORT = "transport"
    RESPONSE_UNPROTECTION = "response-unprotection"


class HwSecureError(Exception):
    """Base exception for all hwsecure failures."""
    phase: Phase = Phase.TRANSPORT

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ArgumentError(HwSecureError, ValueError):
    """Caller contract violation, raised before any network call."""
    phase = Phase.REQUEST_BUILDING
