"""
hwsecure - secure transport for the payouts REST API

Signs and encrypts request payloads (JWS nested in JWE), verifies and
decrypts responses, tracks rate limit headers and maps failures to typed
errors.
"""

from .exceptions import ArgumentError, HwSecureError, Phase
from .crypto_engine import AlgorithmPolicy, PayloadProtector, ProtectionError
from .key_store import KeySet, KeyStore, KeyLoadError
from .config import SDK_VERSION, ClientSettings, EncryptionSettings, KeySource, get_settings
from .api_client import ApiError, EndpointClient, RateLimitTracker, RequestSpec, TransportClient
from .log import configure_logging

__version__ = SDK_VERSION

__all__ = [
    "HwSecureError",
    "ArgumentError",
    "Phase",
    "PayloadProtector",
    "AlgorithmPolicy",
    "ProtectionError",
    "KeyStore",
    "KeySet",
    "KeyLoadError",
    "ClientSettings",
    "EncryptionSettings",
    "KeySource",
    "get_settings",
    "TransportClient",
    "EndpointClient",
    "RequestSpec",
    "RateLimitTracker",
    "ApiError",
    "configure_logging",
]
