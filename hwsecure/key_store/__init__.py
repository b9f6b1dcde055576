"""
Key Store Package

Loads and holds the RSA keys used to sign, encrypt, decrypt and verify
protected payloads. Keys are read once from configuration and are
immutable afterwards.
"""

from .exceptions import (
    KeyLoadError,
    MissingKeyError,
    AmbiguousKeySourceError,
    IncompatibleKeyError,
)
from .loader import KeyStore, load_key
from .models import KeyMaterial, KeyRole, KeySet

__all__ = [
    "KeyStore",
    "KeySet",
    "KeyMaterial",
    "KeyRole",
    "load_key",
    "KeyLoadError",
    "MissingKeyError",
    "AmbiguousKeySourceError",
    "IncompatibleKeyError",
]
