"""
Storage Protocols: Interfaces on Both Sides of the Adapter
==========================================================

Two contracts meet in this package:

1. ``ObjectClient`` - what the store consumes: a bucket-bound object
   storage client with fetch/store/remove. Implemented by
   ``S3ObjectClient`` (aioboto3) and ``InMemoryObjectClient``.
2. ``Storage`` - what the store exposes to the bot framework:
   read/write/delete over JSON records with optimistic concurrency.

All client methods return Result types; nothing in the client layer
raises for backend failures.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

from s3state.core.errors import StorageError
from s3state.core.types import Result, StoreItems


# =============================================================================
# OBJECT METADATA
# =============================================================================

@dataclass(frozen=True, slots=True)
class ObjectMetadata:
    """
    Immutable metadata for a stored object.

    Attributes:
        name: Object name (path in bucket).
        etag: Opaque version token, kept exactly as the backend sent it.
        size_bytes: Body size in bytes.
        content_type: MIME content type.
        last_modified: Last modification timestamp, if reported.
        version_id: Version ID for versioned buckets.
        metadata: User-defined key-value metadata.
    """
    name: str
    etag: str
    size_bytes: int = 0
    content_type: str = "application/octet-stream"
    last_modified: Optional[datetime] = None
    version_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


# =============================================================================
# CONSUMED INTERFACE
# =============================================================================

@runtime_checkable
class ObjectClient(Protocol):
    """
    Bucket-bound object storage client.

    Timeouts, retries and authentication belong to the implementation.
    """

    @property
    def bucket(self) -> str:
        """Bucket/container every call targets."""
        ...

    @abstractmethod
    async def fetch(
        self,
        name: str,
    ) -> Result[Tuple[bytes, ObjectMetadata], StorageError]:
        """
        Download an object body with its metadata.

        Returns:
            Ok((body, metadata)) on success.
            Err(StorageError) with OBJECT_NOT_FOUND when absent, or
            BACKEND_UNAVAILABLE on any other failure.
        """
        ...

    @abstractmethod
    async def store(
        self,
        name: str,
        body: bytes,
        *,
        content_type: str = "application/octet-stream",
        if_match: Optional[str] = None,
        if_none_match: Optional[str] = None,
    ) -> Result[ObjectMetadata, StorageError]:
        """
        Upload an object body, replacing any existing object.

        ``if_match``/``if_none_match`` turn the upload into a conditional
        write; a rejected condition is Err(PRECONDITION_FAILED).
        """
        ...

    @abstractmethod
    async def remove(self, name: str) -> Result[bool, StorageError]:
        """Delete an object."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the client handle. Safe to call multiple times."""
        ...


# =============================================================================
# EXPOSED INTERFACE
# =============================================================================

@runtime_checkable
class Storage(Protocol):
    """
    Framework-facing record storage.

    Contract:
        read: never raises; missing keys are absent from the result.
        write: raises ConflictError on a version mismatch.
        delete: never raises for missing keys.
    """

    @abstractmethod
    async def read(self, keys: Sequence[str]) -> StoreItems:
        ...

    @abstractmethod
    async def write(self, changes: StoreItems) -> None:
        ...

    @abstractmethod
    async def delete(self, keys: Sequence[str]) -> None:
        ...


__all__ = [
    "ObjectMetadata",
    "ObjectClient",
    "Storage",
]
