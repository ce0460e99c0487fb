"""
S3-Compatible Object Client
===========================

Bucket-bound object client for AWS S3, MinIO, Cloudflare R2, and other
S3-compatible services, built on aioboto3.

Design Principles:
------------------
1. **Result Monad**: Backend failures are returned, never raised
2. **Lazy Connection**: The aioboto3 client is opened on first use
3. **Client-Owned Resilience**: Timeouts and retries are botocore's job,
   configured through ``S3Config``
4. **Opaque ETags**: Version tokens are passed through exactly as received

Failure Classification:
-----------------------
| botocore error code                          | ErrorCode            |
|----------------------------------------------|----------------------|
| NoSuchKey, 404, NotFound                     | OBJECT_NOT_FOUND     |
| PreconditionFailed, 412, ConditionalRequest… | PRECONDITION_FAILED  |
| anything else, timeouts, connection errors   | BACKEND_UNAVAILABLE  |
| (aioboto3 not importable)                    | DEPENDENCY_UNAVAILABLE |

Thread Safety:
--------------
- aioboto3 clients are safe for concurrent async operations
- Connection setup is serialized by an asyncio lock
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from botocore.exceptions import ClientError

from s3state.core.constants import NOT_FOUND_CODES, PRECONDITION_CODES
from s3state.core.errors import StorageError
from s3state.core.types import Err, Ok, Result
from s3state.storage.config import S3Config
from s3state.storage.protocols import ObjectMetadata

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

logger = logging.getLogger(__name__)


def _client_error_code(error: ClientError) -> str:
    """Error code of a botocore ClientError, falling back to the HTTP status."""
    code = error.response.get("Error", {}).get("Code")
    if code:
        return str(code)
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return str(status) if status is not None else ""


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

@dataclass(slots=True)
class S3Metrics:
    """
    Counters for S3 operations.

    Tracks request counts, transferred bytes and latency.
    """
    fetch_count: int = 0
    store_count: int = 0
    remove_count: int = 0

    bytes_uploaded: int = 0
    bytes_downloaded: int = 0

    # Latency accumulators (nanoseconds)
    fetch_latency_sum_ns: int = 0
    store_latency_sum_ns: int = 0

    not_found_count: int = 0
    precondition_failures: int = 0
    connection_errors: int = 0
    timeout_errors: int = 0

    def record_upload(self, size_bytes: int, latency_ns: int) -> None:
        self.store_count += 1
        self.bytes_uploaded += size_bytes
        self.store_latency_sum_ns += latency_ns

    def record_download(self, size_bytes: int, latency_ns: int) -> None:
        self.fetch_count += 1
        self.bytes_downloaded += size_bytes
        self.fetch_latency_sum_ns += latency_ns

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot for health reports."""
        return {
            "fetch_count": self.fetch_count,
            "store_count": self.store_count,
            "remove_count": self.remove_count,
            "bytes_uploaded": self.bytes_uploaded,
            "bytes_downloaded": self.bytes_downloaded,
            "not_found_count": self.not_found_count,
            "precondition_failures": self.precondition_failures,
            "connection_errors": self.connection_errors,
            "timeout_errors": self.timeout_errors,
        }


# =============================================================================
# S3 OBJECT CLIENT
# =============================================================================

class S3ObjectClient:
    """
    aioboto3-backed object client bound to one bucket.

    Example:
        >>> client = S3ObjectClient(S3Config(bucket_name="bot-state"))
        >>> result = await client.fetch("conversations/abc")
        >>> await client.close()

    An already-open aioboto3 client can be injected; it is then used as-is
    and left open by ``close()``.
    """

    __slots__ = (
        "_config",
        "_client",
        "_client_cm",
        "_owns_client",
        "_connect_lock",
        "_metrics",
    )

    def __init__(self, config: S3Config, client: Optional["S3Client"] = None) -> None:
        self._config = config
        self._client: Optional["S3Client"] = client
        self._client_cm: Any = None
        self._owns_client = client is None
        self._connect_lock = asyncio.Lock()
        self._metrics = S3Metrics()

    @property
    def bucket(self) -> str:
        return self._config.bucket_name

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def metrics(self) -> S3Metrics:
        """Get current metrics snapshot."""
        return self._metrics

    # -------------------------------------------------------------------------
    # CONNECTION MANAGEMENT
    # -------------------------------------------------------------------------

    async def connect(self) -> Result[None, StorageError]:
        """
        Open the aioboto3 session and S3 client.

        Idempotent. Called implicitly by the first operation.

        Returns:
            Ok(None) on success, Err(DEPENDENCY_UNAVAILABLE) without aioboto3,
            Err(BACKEND_UNAVAILABLE) on any other failure.
        """
        async with self._connect_lock:
            if self._client is not None:
                return Ok(None)

            try:
                import aioboto3
            except ImportError as e:
                return Err(StorageError.dependency_unavailable(self.bucket, "aioboto3", cause=e))

            try:
                session = aioboto3.Session(**self._config.get_session_kwargs())
                client_cm = session.client("s3", **self._config.get_client_kwargs())
                self._client = await client_cm.__aenter__()
                self._client_cm = client_cm
            except Exception as e:
                self._metrics.connection_errors += 1
                logger.error("S3 client setup failed for bucket %s: %s", self.bucket, e)
                return Err(StorageError.backend_unavailable(self.bucket, "connect", cause=e))

            logger.debug("Opened S3 client for %r", self._config)
            return Ok(None)

    async def close(self) -> None:
        """
        Close the S3 client and release resources.

        Safe to call multiple times.
        """
        if self._client_cm is not None:
            cm, self._client_cm = self._client_cm, None
            await cm.__aexit__(None, None, None)
        if self._owns_client:
            self._client = None

    async def __aenter__(self) -> "S3ObjectClient":
        result = await self.connect()
        if result.is_err():
            raise result.error
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _ready(self) -> Result[None, StorageError]:
        if self._client is not None:
            return Ok(None)
        return await self.connect()

    def _classify(self, operation: str, name: str, error: Exception) -> StorageError:
        """Map a backend exception to a StorageError and count it."""
        if isinstance(error, ClientError):
            code = _client_error_code(error)
            if code in NOT_FOUND_CODES:
                self._metrics.not_found_count += 1
                return StorageError.not_found(self.bucket, name)
            if code in PRECONDITION_CODES:
                self._metrics.precondition_failures += 1
                return StorageError.precondition_failed(self.bucket, name, cause=error)
        if isinstance(error, asyncio.TimeoutError):
            self._metrics.timeout_errors += 1
        else:
            self._metrics.connection_errors += 1
        return StorageError.backend_unavailable(self.bucket, operation, cause=error)

    # -------------------------------------------------------------------------
    # CORE OPERATIONS
    # -------------------------------------------------------------------------

    async def fetch(
        self,
        name: str,
    ) -> Result[Tuple[bytes, ObjectMetadata], StorageError]:
        """
        Download object from S3.

        Loads the entire body into memory; records are small JSON documents.

        Returns:
            Ok((body, metadata)) on success.
            Err(OBJECT_NOT_FOUND) if the object doesn't exist.
            Err(BACKEND_UNAVAILABLE) on any other failure.
        """
        ready = await self._ready()
        if ready.is_err():
            return ready

        start_ns = time.perf_counter_ns()

        try:
            response = await self._client.get_object(
                Bucket=self.bucket,
                Key=name,
            )

            async with response["Body"] as stream:
                data = await stream.read()

        except Exception as e:
            return Err(self._classify("get_object", name, e))

        self._metrics.record_download(len(data), time.perf_counter_ns() - start_ns)

        return Ok((data, ObjectMetadata(
            name=name,
            etag=response.get("ETag", ""),
            size_bytes=response.get("ContentLength", len(data)),
            content_type=response.get("ContentType", "application/octet-stream"),
            last_modified=response.get("LastModified"),
            version_id=response.get("VersionId"),
            metadata=response.get("Metadata", {}),
        )))

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
        Upload object to S3 with a single PutObject.

        Args:
            name: Object key.
            body: Object body.
            content_type: MIME content type.
            if_match: Only replace the object if its ETag equals this value.
            if_none_match: "*" to only create the object if it is absent.

        Returns:
            Ok(ObjectMetadata) with the backend-assigned ETag.
            Err(PRECONDITION_FAILED) when a condition was rejected.
        """
        ready = await self._ready()
        if ready.is_err():
            return ready

        start_ns = time.perf_counter_ns()

        put_kwargs: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": name,
            "Body": body,
            "ContentType": content_type,
        }
        if if_match is not None:
            put_kwargs["IfMatch"] = if_match
        if if_none_match is not None:
            put_kwargs["IfNoneMatch"] = if_none_match

        try:
            response = await self._client.put_object(**put_kwargs)
        except Exception as e:
            return Err(self._classify("put_object", name, e))

        self._metrics.record_upload(len(body), time.perf_counter_ns() - start_ns)

        return Ok(ObjectMetadata(
            name=name,
            etag=response.get("ETag", ""),
            size_bytes=len(body),
            content_type=content_type,
            version_id=response.get("VersionId"),
        ))

    async def remove(self, name: str) -> Result[bool, StorageError]:
        """
        Delete object from S3.

        Returns:
            Ok(True) on success.
            Ok(False) if the backend reported the object missing.
        """
        ready = await self._ready()
        if ready.is_err():
            return ready

        try:
            await self._client.delete_object(Bucket=self.bucket, Key=name)
        except Exception as e:
            error = self._classify("delete_object", name, e)
            if error.is_not_found:
                return Ok(False)
            return Err(error)

        self._metrics.remove_count += 1
        return Ok(True)

    async def health_check(self) -> Result[Dict[str, Any], StorageError]:
        """
        Check bucket reachability.

        Returns bucket info and current metrics.
        """
        ready = await self._ready()
        if ready.is_err():
            return ready

        try:
            await self._client.head_bucket(Bucket=self.bucket)
        except Exception as e:
            return Err(self._classify("head_bucket", "", e))

        return Ok({
            "connected": True,
            "bucket": self.bucket,
            "region": self._config.region,
            "endpoint_url": self._config.endpoint_url,
            "metrics": self._metrics.to_dict(),
        })


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "S3ObjectClient",
    "S3Metrics",
]
