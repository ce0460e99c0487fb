"""
Error Hierarchy for s3state

Design Principles:
- Backend failures are values (Result) inside the storage layer
- Only errors the caller must act on are raised at the public boundary
- Carry full error context for debugging and audit trails

Each error type includes:
- Unique error code for programmatic handling
- Human-readable message for logging
- Optional cause for root cause analysis
- Timestamp for correlation with logs

Usage:
    try:
        await store.write(changes)
    except ConflictError as e:
        fresh = await store.read([e.key])
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import uuid4


# =============================================================================
# ERROR CODE ENUMERATION
# =============================================================================
class ErrorCode(Enum):
    """
    Unique error codes for programmatic error handling.

    Codes are grouped by subsystem:
    - 1xxx: Backend (object storage) errors
    - 2xxx: Record errors
    - 9xxx: Internal/configuration errors
    """

    # Backend errors (1xxx)
    OBJECT_NOT_FOUND = 1001
    BACKEND_UNAVAILABLE = 1002
    PRECONDITION_FAILED = 1003
    WRITE_FAILED = 1004

    # Record errors (2xxx)
    VERSION_CONFLICT = 2001
    MALFORMED_RECORD = 2002
    INVALID_RECORD = 2003
    NOT_SERIALIZABLE = 2004
    INVALID_KEY = 2005

    # Internal errors (9xxx)
    CONFIGURATION_ERROR = 9001
    DEPENDENCY_UNAVAILABLE = 9002


# =============================================================================
# BASE ERROR CLASS
# =============================================================================
@dataclass
class S3StateError(Exception):
    """
    Base class for all s3state errors.

    Provides common infrastructure for error handling:
    - Unique error ID for log correlation
    - Error code for programmatic handling
    - Timestamp (nanoseconds since epoch)
    - Cause chain for root cause analysis
    """

    code: ErrorCode
    message: str
    error_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp_ns: int = field(default_factory=time.time_ns)
    cause: Optional[BaseException] = None
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Initialize Exception base class with message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize error to dictionary for logging/CLI output.

        The cause is reported by type name only.
        """
        data: dict[str, Any] = {
            "error_id": self.error_id,
            "code": self.code.name,
            "code_value": self.code.value,
            "message": self.message,
            "timestamp_nanos": self.timestamp_ns,
            "context": self.context,
        }
        if self.cause is not None:
            data["cause"] = type(self.cause).__name__
        return data

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (id={self.error_id[:8]})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code.name}, "
            f"message={self.message!r}, "
            f"error_id={self.error_id!r})"
        )


# =============================================================================
# STORAGE ERRORS
# =============================================================================
@dataclass
class StorageError(S3StateError):
    """
    Errors from the object-storage backend and the record codec.

    Most of these never leave the store: read() and delete() absorb them,
    and write() treats a failed pre-check fetch as "no existing record".
    """

    @property
    def is_not_found(self) -> bool:
        return self.code == ErrorCode.OBJECT_NOT_FOUND

    @property
    def is_precondition_failed(self) -> bool:
        return self.code == ErrorCode.PRECONDITION_FAILED

    @classmethod
    def not_found(cls, bucket: str, name: str) -> StorageError:
        """Object does not exist."""
        return cls(
            code=ErrorCode.OBJECT_NOT_FOUND,
            message=f"Object '{name}' not found in bucket '{bucket}'",
            context={"bucket": bucket, "object": name},
        )

    @classmethod
    def backend_unavailable(
        cls,
        bucket: str,
        operation: str,
        cause: Optional[BaseException] = None,
    ) -> StorageError:
        """Transient or unclassified backend failure."""
        detail = f": {cause}" if cause is not None else ""
        return cls(
            code=ErrorCode.BACKEND_UNAVAILABLE,
            message=f"Backend '{operation}' failed for bucket '{bucket}'{detail}",
            cause=cause,
            context={"bucket": bucket, "operation": operation},
        )

    @classmethod
    def dependency_unavailable(
        cls,
        bucket: str,
        package: str,
        cause: Optional[BaseException] = None,
    ) -> StorageError:
        """Client library for the backend is not installed."""
        return cls(
            code=ErrorCode.DEPENDENCY_UNAVAILABLE,
            message=f"{package} package not installed: pip install {package}",
            cause=cause,
            context={"bucket": bucket, "package": package},
        )

    @classmethod
    def precondition_failed(
        cls,
        bucket: str,
        name: str,
        cause: Optional[BaseException] = None,
    ) -> StorageError:
        """Conditional write rejected by the backend."""
        return cls(
            code=ErrorCode.PRECONDITION_FAILED,
            message=f"Conditional write to '{name}' rejected by bucket '{bucket}'",
            cause=cause,
            context={"bucket": bucket, "object": name},
        )

    @classmethod
    def write_failed(
        cls,
        key: str,
        cause: Optional[BaseException] = None,
    ) -> StorageError:
        """Final store of a record failed; the record was not persisted."""
        return cls(
            code=ErrorCode.WRITE_FAILED,
            message=f'Storage: error writing "{key}"',
            cause=cause,
            context={"key": key},
        )

    @classmethod
    def malformed_record(
        cls,
        name: str,
        reason: str,
        cause: Optional[BaseException] = None,
    ) -> StorageError:
        """Stored body is not a JSON object."""
        return cls(
            code=ErrorCode.MALFORMED_RECORD,
            message=f"Object '{name}' does not hold a JSON record: {reason}",
            cause=cause,
            context={"object": name},
        )

    @classmethod
    def invalid_record(cls, key: str, type_name: str) -> StorageError:
        """Record passed to write() is not a mapping."""
        return cls(
            code=ErrorCode.INVALID_RECORD,
            message=f'Record for "{key}" must be a mapping, got {type_name}',
            context={"key": key, "type": type_name},
        )

    @classmethod
    def not_serializable(
        cls,
        key: str,
        cause: Optional[BaseException] = None,
    ) -> StorageError:
        """Record could not be encoded as JSON."""
        return cls(
            code=ErrorCode.NOT_SERIALIZABLE,
            message=f'Record for "{key}" is not JSON serializable',
            cause=cause,
            context={"key": key},
        )

    @classmethod
    def invalid_key(cls, key: str) -> StorageError:
        """Key maps to an empty object name."""
        return cls(
            code=ErrorCode.INVALID_KEY,
            message=f"Key {key!r} does not name an object",
            context={"key": key},
        )


@dataclass
class ConflictError(StorageError):
    """
    Optimistic concurrency conflict on write.

    Raised when the supplied version does not match the stored version
    (and is not the wildcard). Callers resolve it by reading again.
    """

    @property
    def key(self) -> str:
        return self.context.get("key", "")

    @property
    def expected_version(self) -> Optional[str]:
        return self.context.get("expected_version")

    @property
    def actual_version(self) -> Optional[str]:
        return self.context.get("actual_version")

    @classmethod
    def for_key(
        cls,
        key: str,
        expected_version: Any = None,
        actual_version: Any = None,
        cause: Optional[BaseException] = None,
    ) -> ConflictError:
        return cls(
            code=ErrorCode.VERSION_CONFLICT,
            message=f'Storage: error writing "{key}" due to version conflict',
            cause=cause,
            context={
                "key": key,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================
@dataclass
class ConfigurationError(S3StateError, ValueError):
    """Invalid or incomplete configuration."""

    @classmethod
    def invalid(cls, setting: str, reason: str) -> ConfigurationError:
        return cls(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid configuration '{setting}': {reason}",
            context={"setting": setting},
        )


__all__ = [
    "ErrorCode",
    "S3StateError",
    "StorageError",
    "ConflictError",
    "ConfigurationError",
]
