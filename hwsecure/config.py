"""
hwsecure Client Configuration

Typed configuration for the transport layer with environment variable support.
Every recognized option is declared here; credentials and key material are
held as secrets and never logged.

Environment variables use the ``HWSECURE_`` prefix, with ``__`` separating
nested fields, e.g. ``HWSECURE_ENCRYPTION__OWN_SIGNING_KEY__PATH``.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .crypto_engine.registry import AlgorithmPolicy


SDK_VERSION = "1.0.0"

DEFAULT_SERVER = "https://api.sandbox.hyperwallet.com"


class KeySource(BaseModel):
    """
    Where a single key is read from.

    Exactly one of ``path``, ``text`` or ``data`` must be set. ``text`` and
    ``data`` may hold PEM, a JWK object or a JWK set; ``data`` may also hold
    DER bytes.
    """

    path: Optional[Path] = None
    text: Optional[str] = None
    data: Optional[bytes] = None
    key_id: Optional[str] = None
    password: Optional[SecretStr] = None

    def provided(self) -> List[str]:
        """Names of the populated source fields."""
        return [name for name in ("path", "text", "data") if getattr(self, name)]


class EncryptionSettings(BaseModel):
    """Key sources and algorithm choices for payload protection."""

    own_signing_key: Optional[KeySource] = None
    own_encryption_key: Optional[KeySource] = None
    peer_encryption_key: Optional[KeySource] = None
    peer_verification_key: Optional[KeySource] = None

    signing_algorithm: str = "RS256"
    key_management_algorithm: str = "RSA-OAEP-256"
    content_encryption_algorithm: str = "A256GCM"

    # Extra algorithms accepted on incoming tokens
    allowed_signing_algorithms: List[str] = Field(default_factory=list)
    allowed_key_management_algorithms: List[str] = Field(default_factory=list)
    allowed_content_encryption_algorithms: List[str] = Field(default_factory=list)

    signature_ttl: Optional[int] = 300
    leeway: int = 30

    @field_validator("signature_ttl")
    @classmethod
    def validate_signature_ttl(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("signature_ttl must be positive or None")
        return v

    @field_validator("leeway")
    @classmethod
    def validate_leeway(cls, v: int) -> int:
        if v < 0:
            raise ValueError("leeway must not be negative")
        return v

    def algorithm_policy(self) -> AlgorithmPolicy:
        """
        Build the algorithm policy.

        Raises:
            UnsupportedAlgorithmError: If an identifier is not registered
        """
        return AlgorithmPolicy(
            signing=self.signing_algorithm,
            key_management=self.key_management_algorithm,
            content_encryption=self.content_encryption_algorithm,
            allowed_signing=frozenset(self.allowed_signing_algorithms),
            allowed_key_management=frozenset(self.allowed_key_management_algorithms),
            allowed_content_encryption=frozenset(self.allowed_content_encryption_algorithms),
        )


class ClientSettings(BaseSettings):
    """Client settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="HWSECURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    username: str = ""
    password: SecretStr = SecretStr("")

    # API
    server: str = DEFAULT_SERVER
    api_version: str = "v4"
    program_token: Optional[str] = None
    timeout: float = 30.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Payload protection, disabled when unset
    encryption: Optional[EncryptionSettings] = None

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        """Require an http(s) base URL without a trailing slash."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("server must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @property
    def encryption_enabled(self) -> bool:
        return self.encryption is not None


@lru_cache
def get_settings() -> ClientSettings:
    """Get cached settings instance read from the environment."""
    return ClientSettings()
