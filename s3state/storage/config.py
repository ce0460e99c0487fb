"""
Backend Configuration Module
============================

Type-safe, immutable configuration dataclasses for the record store and
its object-storage backend. All configurations use frozen dataclasses so a
store's settings cannot change after construction.

Design Principles:
------------------
1. **Immutability**: All configs are frozen to prevent runtime mutation
2. **Validation**: Pre-conditions checked at construction time
3. **Defaults**: Sensible defaults for development; explicit for production
4. **Environment**: ``from_env`` builds a value, it never mutates globals
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional

from s3state.core.constants import (
    DEFAULT_CONNECT_TIMEOUT_S,
    DEFAULT_MAX_POOL_CONNECTIONS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_READ_TIMEOUT_S,
    DEFAULT_REGION,
    DEFAULT_VERSION_FIELD,
    ENV_PREFIX,
    MAX_BUCKET_NAME_LENGTH,
    MIN_BUCKET_NAME_LENGTH,
    S3_ENV_PREFIX,
)
from s3state.core.errors import ConfigurationError


# =============================================================================
# ENUMERATIONS
# =============================================================================

class BackendType(Enum):
    """
    Object-storage backend type.

    Used for factory dispatch and configuration validation.
    """
    IN_MEMORY = auto()  # Development/testing only
    S3 = auto()         # AWS S3, MinIO, R2 and other S3-compatible services


_BACKEND_NAMES: Dict[str, BackendType] = {
    "in_memory": BackendType.IN_MEMORY,
    "memory": BackendType.IN_MEMORY,
    "s3": BackendType.S3,
    "minio": BackendType.S3,
}

_ADDRESSING_STYLES = ("auto", "path", "virtual")


def _env_reader(prefix: str):
    """Build the (_get, _get_int, _get_bool) helpers for one prefix."""

    def _get(key: str, default: str = "") -> str:
        return os.environ.get(f"{prefix}_{key}", default)

    def _get_int(key: str, default: int) -> int:
        val = _get(key)
        if not val:
            return default
        try:
            return int(val)
        except ValueError as e:
            raise ConfigurationError.invalid(f"{prefix}_{key}", f"not an integer: {val!r}") from e

    def _get_bool(key: str, default: bool) -> bool:
        val = _get(key).lower()
        if val in ("true", "1", "yes"):
            return True
        if val in ("false", "0", "no"):
            return False
        return default

    return _get, _get_int, _get_bool


# =============================================================================
# S3 CONFIGURATION
# =============================================================================

@dataclass(frozen=True, slots=True)
class S3Config:
    """
    S3-compatible object store configuration.

    Supports AWS S3, MinIO, Cloudflare R2, and other S3-compatible stores.

    Attributes:
        bucket_name: S3 bucket name (required, 3-63 characters).
        region: AWS region.
        endpoint_url: Custom endpoint for MinIO/R2 (None for AWS).
        access_key_id: AWS access key (None for IAM role / default chain).
        secret_access_key: AWS secret key (None for IAM role / default chain).
        session_token: Temporary session token for STS.
        max_pool_connections: HTTP connection pool size.
        connect_timeout_seconds: TCP connect timeout.
        read_timeout_seconds: Read operation timeout.
        max_retries: Max botocore retry attempts for transient failures.
        use_ssl: Use HTTPS for connections.
        verify_ssl: Verify SSL certificates (disable for self-signed).
        addressing_style: "auto", "path" (MinIO) or "virtual".
    """
    bucket_name: str
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None

    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS
    connect_timeout_seconds: int = DEFAULT_CONNECT_TIMEOUT_S
    read_timeout_seconds: int = DEFAULT_READ_TIMEOUT_S
    max_retries: int = DEFAULT_MAX_RETRIES

    use_ssl: bool = True
    verify_ssl: bool = True
    addressing_style: str = "auto"

    def __post_init__(self) -> None:
        """
        Validate configuration invariants.

        Pre-conditions (enforced):
        - bucket_name length in [3, 63]
        - max_pool_connections > 0
        - timeouts > 0
        - max_retries >= 0
        - addressing_style is auto|path|virtual

        Raises:
            ConfigurationError: If any invariant is violated.
        """
        if not (MIN_BUCKET_NAME_LENGTH <= len(self.bucket_name or "") <= MAX_BUCKET_NAME_LENGTH):
            raise ConfigurationError.invalid(
                "bucket_name",
                f"must be {MIN_BUCKET_NAME_LENGTH}-{MAX_BUCKET_NAME_LENGTH} characters",
            )

        if self.max_pool_connections <= 0:
            raise ConfigurationError.invalid(
                "max_pool_connections", f"must be > 0, got {self.max_pool_connections}"
            )

        if self.connect_timeout_seconds <= 0:
            raise ConfigurationError.invalid("connect_timeout_seconds", "must be > 0")
        if self.read_timeout_seconds <= 0:
            raise ConfigurationError.invalid("read_timeout_seconds", "must be > 0")

        if self.max_retries < 0:
            raise ConfigurationError.invalid("max_retries", "must be >= 0")

        if self.addressing_style not in _ADDRESSING_STYLES:
            raise ConfigurationError.invalid(
                "addressing_style", f"must be one of {', '.join(_ADDRESSING_STYLES)}"
            )

    @classmethod
    def from_env(cls, prefix: str = S3_ENV_PREFIX) -> "S3Config":
        """
        Construct configuration from environment variables.

        Environment Variables:
        - {prefix}_BUCKET: Bucket name (required)
        - {prefix}_REGION: AWS region (default: us-east-1)
        - {prefix}_ENDPOINT_URL: Custom endpoint URL
        - {prefix}_ACCESS_KEY_ID / AWS_ACCESS_KEY_ID: Access key ID
        - {prefix}_SECRET_ACCESS_KEY / AWS_SECRET_ACCESS_KEY: Secret key
        - AWS_SESSION_TOKEN: STS session token
        - {prefix}_MAX_POOL_CONNECTIONS: Pool size (default: 10)
        - {prefix}_CONNECT_TIMEOUT / {prefix}_READ_TIMEOUT: Seconds
        - {prefix}_MAX_RETRIES: Retry attempts (default: 3)
        - {prefix}_USE_SSL / {prefix}_VERIFY_SSL: true|false
        - {prefix}_ADDRESSING_STYLE: auto|path|virtual

        Raises:
            ConfigurationError: If the bucket is missing or a value is invalid.
        """
        _get, _get_int, _get_bool = _env_reader(prefix)

        bucket = _get("BUCKET")
        if not bucket:
            raise ConfigurationError.invalid(f"{prefix}_BUCKET", "environment variable is required")

        return cls(
            bucket_name=bucket,
            region=_get("REGION") or os.environ.get("AWS_DEFAULT_REGION", DEFAULT_REGION),
            endpoint_url=_get("ENDPOINT_URL") or None,
            access_key_id=_get("ACCESS_KEY_ID") or os.environ.get("AWS_ACCESS_KEY_ID"),
            secret_access_key=_get("SECRET_ACCESS_KEY") or os.environ.get("AWS_SECRET_ACCESS_KEY"),
            session_token=os.environ.get("AWS_SESSION_TOKEN"),
            max_pool_connections=_get_int("MAX_POOL_CONNECTIONS", DEFAULT_MAX_POOL_CONNECTIONS),
            connect_timeout_seconds=_get_int("CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_S),
            read_timeout_seconds=_get_int("READ_TIMEOUT", DEFAULT_READ_TIMEOUT_S),
            max_retries=_get_int("MAX_RETRIES", DEFAULT_MAX_RETRIES),
            use_ssl=_get_bool("USE_SSL", True),
            verify_ssl=_get_bool("VERIFY_SSL", True),
            addressing_style=_get("ADDRESSING_STYLE", "auto").lower(),
        )

    def get_session_kwargs(self) -> Dict[str, Any]:
        """
        Credentials for ``aioboto3.Session``.

        Empty when no explicit keys are set, so the default credential
        chain (env, profile, instance role) applies.
        """
        kwargs: Dict[str, Any] = {}
        if self.access_key_id and self.secret_access_key:
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key
        if self.session_token:
            kwargs["aws_session_token"] = self.session_token
        return kwargs

    def get_client_kwargs(self) -> Dict[str, Any]:
        """
        Keyword arguments for ``session.client("s3", ...)``.

        The ``config`` entry is a botocore ``Config`` carrying pool size,
        timeouts, retries and addressing style.
        """
        from botocore.config import Config

        kwargs: Dict[str, Any] = {
            "region_name": self.region,
            "use_ssl": self.use_ssl,
            "config": Config(
                max_pool_connections=self.max_pool_connections,
                connect_timeout=self.connect_timeout_seconds,
                read_timeout=self.read_timeout_seconds,
                retries={"max_attempts": self.max_retries},
                s3={"addressing_style": self.addressing_style},
            ),
        }

        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url

        if not self.verify_ssl:
            kwargs["verify"] = False

        return kwargs

    def __repr__(self) -> str:
        # Secrets stay out of logs and tracebacks.
        return (
            f"S3Config(bucket_name={self.bucket_name!r}, region={self.region!r}, "
            f"endpoint_url={self.endpoint_url!r})"
        )


# =============================================================================
# STORE CONFIGURATION
# =============================================================================

@dataclass(frozen=True, slots=True)
class StoreConfig:
    """
    Configuration for a record store.

    Attributes:
        backend: Object-storage backend type.
        s3: S3 configuration (required when backend == S3).
        version_field: Name of the reserved record field holding the
            version token ("version"; bot frameworks often use "eTag").
        conditional_writes: Use backend conditional writes (If-Match /
            If-None-Match) instead of the plain read-check-write.
    """
    backend: BackendType = BackendType.IN_MEMORY
    s3: Optional[S3Config] = None
    version_field: str = DEFAULT_VERSION_FIELD
    conditional_writes: bool = False

    def __post_init__(self) -> None:
        if self.backend == BackendType.S3 and self.s3 is None:
            raise ConfigurationError.invalid("s3", "required when backend=S3")
        if not self.version_field:
            raise ConfigurationError.invalid("version_field", "must be non-empty")

    @property
    def bucket_name(self) -> str:
        """Bucket the store targets ("memory" for the in-memory backend)."""
        return self.s3.bucket_name if self.s3 is not None else "memory"

    @classmethod
    def for_s3(cls, bucket_name: str, **s3_options: Any) -> "StoreConfig":
        """Shorthand for an S3-backed store with default record settings."""
        return cls(backend=BackendType.S3, s3=S3Config(bucket_name=bucket_name, **s3_options))

    @classmethod
    def for_development(cls) -> "StoreConfig":
        """In-memory backend, zero external dependencies."""
        return cls(backend=BackendType.IN_MEMORY)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "StoreConfig":
        """
        Construct full configuration from environment.

        Environment Variables:
        - {prefix}_BACKEND: in_memory|s3|minio (default: s3 when
          {prefix}_S3_BUCKET is set, otherwise in_memory)
        - {prefix}_VERSION_FIELD: reserved field name (default: version)
        - {prefix}_CONDITIONAL_WRITES: true|false

        Plus the S3 variables read by ``S3Config.from_env``.
        """
        _get, _, _get_bool = _env_reader(prefix)
        s3_prefix = f"{prefix}_S3"

        default_backend = "s3" if os.environ.get(f"{s3_prefix}_BUCKET") else "in_memory"
        backend_name = _get("BACKEND", default_backend).lower()
        backend = _BACKEND_NAMES.get(backend_name)
        if backend is None:
            raise ConfigurationError.invalid(f"{prefix}_BACKEND", f"unknown backend {backend_name!r}")

        s3_config = S3Config.from_env(s3_prefix) if backend == BackendType.S3 else None

        return cls(
            backend=backend,
            s3=s3_config,
            version_field=_get("VERSION_FIELD", DEFAULT_VERSION_FIELD),
            conditional_writes=_get_bool("CONDITIONAL_WRITES", False),
        )


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "BackendType",
    "S3Config",
    "StoreConfig",
]
