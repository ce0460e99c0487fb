"""
In-Memory Object Client: Development and Testing Backend

S3-compatible semantics for the pieces the record store relies on:
    - ETag is the quoted MD5 of the body, as S3 returns for single-part uploads
    - Conditional writes via if_match / if_none_match
    - Deleting a missing object succeeds, as it does on S3

Thread-safe for concurrent coroutines via an asyncio lock.
"""

from __future__ import annotations

import asyncio
import hashlib
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from s3state.core.errors import StorageError
from s3state.core.types import Err, Ok, Result
from s3state.storage.protocols import ObjectMetadata


def compute_etag(body: bytes) -> str:
    """Quoted MD5 hex digest, the S3 ETag of a single-part object."""
    return f'"{hashlib.md5(body).hexdigest()}"'


class InMemoryObjectClient:
    """
    In-memory object client bound to one logical bucket.

    Example:
        client = InMemoryObjectClient()
        await client.store("bots/state", b'{"count":1}')
        result = await client.fetch("bots/state")
    """

    __slots__ = ("_bucket", "_objects", "_metadata", "_lock")

    def __init__(self, bucket: str = "memory") -> None:
        self._bucket = bucket
        self._objects: Dict[str, bytes] = {}
        self._metadata: Dict[str, ObjectMetadata] = {}
        self._lock = asyncio.Lock()

    @property
    def bucket(self) -> str:
        return self._bucket

    async def fetch(
        self,
        name: str,
    ) -> Result[Tuple[bytes, ObjectMetadata], StorageError]:
        """Retrieve object with metadata."""
        async with self._lock:
            if name not in self._objects:
                return Err(StorageError.not_found(self._bucket, name))
            return Ok((self._objects[name], self._metadata[name]))

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
        Store object, honouring conditional headers.

        if_none_match="*" only succeeds when the object is absent;
        if_match only succeeds when the current ETag equals it.
        """
        async with self._lock:
            current = self._metadata.get(name)

            if if_none_match == "*" and current is not None:
                return Err(StorageError.precondition_failed(self._bucket, name))
            if if_match is not None and (current is None or current.etag != if_match):
                return Err(StorageError.precondition_failed(self._bucket, name))

            metadata = ObjectMetadata(
                name=name,
                etag=compute_etag(body),
                size_bytes=len(body),
                content_type=content_type,
                last_modified=datetime.now(timezone.utc),
            )
            self._objects[name] = bytes(body)
            self._metadata[name] = metadata
            return Ok(metadata)

    async def remove(self, name: str) -> Result[bool, StorageError]:
        """Delete object. Ok(False) when it did not exist."""
        async with self._lock:
            if name not in self._objects:
                return Ok(False)
            del self._objects[name]
            del self._metadata[name]
            return Ok(True)

    async def close(self) -> None:
        """Nothing to release; objects survive for the life of the instance."""
        return None

    # -------------------------------------------------------------------------
    # INSPECTION (tests and CLI dry runs)
    # -------------------------------------------------------------------------

    def names(self) -> list[str]:
        return sorted(self._objects)

    def body_of(self, name: str) -> Optional[bytes]:
        return self._objects.get(name)

    def __len__(self) -> int:
        return len(self._objects)


__all__ = [
    "InMemoryObjectClient",
    "compute_etag",
]
