"""
Versioned Object Store: JSON Records with Optimistic Concurrency
================================================================

Adapts a bucket-bound ``ObjectClient`` to the framework ``Storage``
contract: ``read``, ``write`` and ``delete`` over named JSON records, each
record carrying the backend ETag in a reserved version field.

Write Protocol (per key, in input order):
-----------------------------------------
1. Fetch the current record. Any failure means "no existing record".
2. Proceed when there is no existing record, when the supplied version is
   the wildcard ``*``, or when it equals the stored version.
3. Otherwise raise ``ConflictError`` for the key. Remaining keys are not
   processed; keys already written stay written.
4. Store the record exactly as supplied (its version field included).

The check in ``VersionedObjectStore`` is a plain read-then-write: two
writers racing on one key can both pass it. ``ConditionalObjectStore``
closes that window with backend conditional writes and is opt-in.

Known Limitation:
-----------------
A transient backend error during the pre-check fetch is indistinguishable
from an absent object, so an outage can turn an update into an
unconditional overwrite. Such errors are logged at WARNING.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Sequence, Tuple

from s3state.core.constants import (
    BODY_ENCODING,
    DEFAULT_VERSION_FIELD,
    JSON_CONTENT_TYPE,
    JSON_SEPARATORS,
    WILDCARD_VERSION,
)
from s3state.core.errors import ConflictError, ErrorCode, StorageError
from s3state.core.types import Err, Ok, Record, Result, StoreItems, object_name_for
from s3state.observability.logging import log_context
from s3state.storage.protocols import ObjectClient, ObjectMetadata

logger = logging.getLogger(__name__)


class VersionedObjectStore:
    """
    Record store over an object-storage bucket.

    Example:
        >>> store = VersionedObjectStore(S3ObjectClient(S3Config("bot-state")))
        >>> await store.write({"user/42": {"count": 1}})
        >>> items = await store.read(["user/42"])
        >>> items["user/42"]["count"] += 1
        >>> await store.write(items)          # version matches, succeeds
        >>> await store.close()
    """

    __slots__ = ("_client", "_version_field")

    def __init__(
        self,
        client: ObjectClient,
        version_field: str = DEFAULT_VERSION_FIELD,
    ) -> None:
        self._client = client
        self._version_field = version_field

    @property
    def bucket(self) -> str:
        return self._client.bucket

    @property
    def client(self) -> ObjectClient:
        return self._client

    @property
    def version_field(self) -> str:
        return self._version_field

    # -------------------------------------------------------------------------
    # LIFECYCLE
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Release the object client."""
        await self._client.close()

    async def __aenter__(self) -> "VersionedObjectStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # STORAGE CONTRACT
    # -------------------------------------------------------------------------

    async def read(self, keys: Sequence[str]) -> StoreItems:
        """
        Read records by key.

        Keys that cannot be read (absent, backend error, malformed body)
        are left out of the result. Never raises for backend failures.

        Returns:
            Mapping from each readable key, exactly as given, to its record
            with the version field set to the object's current ETag.
        """
        items: StoreItems = {}

        with log_context(bucket=self.bucket, operation="read"):
            for key in keys:
                result = await self._fetch_record(key)
                if result.is_ok():
                    items[key] = result.unwrap()
                else:
                    self._log_absorbed(key, result.error)

            logger.debug("Read %d of %d keys", len(items), len(keys))

        return items

    async def write(self, changes: StoreItems) -> None:
        """
        Write records, checking each supplied version against the store.

        Raises:
            ConflictError: A supplied version is neither ``*`` nor equal
                to the stored version. Earlier keys stay written.
            StorageError: A record is not a JSON-serializable mapping, a
                key names no object, or the backend rejected the upload.
        """
        with log_context(bucket=self.bucket, operation="write"):
            for key, item in changes.items():
                await self._write_one(key, item)

    async def delete(self, keys: Sequence[str]) -> None:
        """
        Delete records by key.

        Missing objects and backend failures are absorbed.
        """
        with log_context(bucket=self.bucket, operation="delete"):
            for key in keys:
                name = object_name_for(key)
                if not name:
                    self._log_absorbed(key, StorageError.invalid_key(key))
                    continue

                result = await self._client.remove(name)
                if result.is_err():
                    self._log_absorbed(key, result.error)
                else:
                    logger.debug("Deleted %s", name)

    # -------------------------------------------------------------------------
    # WRITE PATH
    # -------------------------------------------------------------------------

    async def _write_one(self, key: str, item: Mapping[str, Any]) -> None:
        name = object_name_for(key)
        if not name:
            raise StorageError.invalid_key(key)

        body = self._encode(key, item)
        supplied = item.get(self._version_field)

        current = await self._fetch_record(key)
        if current.is_err() and not current.error.is_not_found:
            logger.warning(
                "Pre-check for %s failed, treating as absent: %s",
                key,
                current.error.message,
            )
        existing: Optional[Record] = current.unwrap_or(None)
        stored = existing.get(self._version_field) if existing is not None else None

        if existing is not None and supplied != WILDCARD_VERSION and supplied != stored:
            logger.warning("Version conflict on %s", key)
            raise ConflictError.for_key(key, supplied, stored)

        await self._store_record(key, name, body, supplied, stored)

    async def _store_record(
        self,
        key: str,
        name: str,
        body: bytes,
        supplied: Any,
        stored: Optional[str],
    ) -> None:
        """Upload a record body that passed the version check."""
        result = await self._client.store(name, body, content_type=JSON_CONTENT_TYPE)
        if result.is_err():
            raise StorageError.write_failed(key, cause=result.error)
        logger.debug("Stored %s (%d bytes)", name, len(body))

    # -------------------------------------------------------------------------
    # RECORD CODEC
    # -------------------------------------------------------------------------

    async def _fetch_record(self, key: str) -> Result[Record, StorageError]:
        name = object_name_for(key)
        if not name:
            return Err(StorageError.invalid_key(key))

        fetched = await self._client.fetch(name)
        return fetched.flat_map(lambda pair: self._decode(name, pair))

    def _decode(
        self,
        name: str,
        pair: Tuple[bytes, ObjectMetadata],
    ) -> Result[Record, StorageError]:
        body, metadata = pair
        try:
            record = json.loads(body.decode(BODY_ENCODING))
        except (UnicodeDecodeError, ValueError) as e:
            return Err(StorageError.malformed_record(name, "invalid JSON", cause=e))

        if not isinstance(record, dict):
            return Err(StorageError.malformed_record(name, f"top-level {type(record).__name__}"))

        record[self._version_field] = metadata.etag
        return Ok(record)

    @staticmethod
    def _encode(key: str, item: Any) -> bytes:
        if not isinstance(item, Mapping):
            raise StorageError.invalid_record(key, type(item).__name__)
        try:
            text = json.dumps(
                dict(item),
                separators=JSON_SEPARATORS,
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as e:
            raise StorageError.not_serializable(key, cause=e) from e
        return text.encode(BODY_ENCODING)

    @staticmethod
    def _log_absorbed(key: str, error: StorageError) -> None:
        if error.code == ErrorCode.INVALID_KEY:
            logger.debug("Skipping key %r (empty object name)", key)
        elif error.is_not_found:
            logger.debug("No object for %s", key)
        else:
            logger.warning("Ignoring backend failure for %s: %s", key, error.message)


class ConditionalObjectStore(VersionedObjectStore):
    """
    Record store that enforces the version check on the backend.

    Same contract as ``VersionedObjectStore``, but uploads carry
    ``If-Match: <stored ETag>`` for updates and ``If-None-Match: *`` for
    creates, so a concurrent change between the pre-check and the upload
    surfaces as ``ConflictError`` instead of a lost update. Requires a
    backend with conditional PutObject support (AWS S3, recent MinIO).

    A malformed stored object can only be replaced with the wildcard
    version, since its ETag is never read.
    """

    __slots__ = ()

    async def _store_record(
        self,
        key: str,
        name: str,
        body: bytes,
        supplied: Any,
        stored: Optional[str],
    ) -> None:
        if supplied == WILDCARD_VERSION:
            await super()._store_record(key, name, body, supplied, stored)
            return

        if stored is None:
            result = await self._client.store(
                name, body, content_type=JSON_CONTENT_TYPE, if_none_match=WILDCARD_VERSION
            )
        else:
            result = await self._client.store(
                name, body, content_type=JSON_CONTENT_TYPE, if_match=stored
            )

        if result.is_err():
            if result.error.is_precondition_failed:
                logger.warning("Conditional write lost the race on %s", key)
                raise ConflictError.for_key(key, supplied, stored, cause=result.error)
            raise StorageError.write_failed(key, cause=result.error)

        logger.debug("Stored %s conditionally (%d bytes)", name, len(body))


__all__ = [
    "VersionedObjectStore",
    "ConditionalObjectStore",
]
