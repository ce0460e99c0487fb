"""
Shared fixtures and fakes.

- RecordingClient: in-memory object client that logs every backend call
- FakeS3Client: stand-in for an open aioboto3 S3 client
"""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Dict, List, Optional, Tuple

import pytest
from botocore.exceptions import ClientError

from s3state.core.errors import StorageError
from s3state.core.types import Err, Result
from s3state.storage.memory_client import InMemoryObjectClient
from s3state.storage.protocols import ObjectMetadata
from s3state.storage.versioned_store import ConditionalObjectStore, VersionedObjectStore


def run(coro):
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def client_error(code: str, status: int, operation: str) -> ClientError:
    """Build a botocore ClientError the way the S3 client raises it."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} raised by fake"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


# =============================================================================
# RECORDING OBJECT CLIENT
# =============================================================================

class RecordingClient(InMemoryObjectClient):
    """
    In-memory client that records calls and can inject failures.

    ``calls`` holds ("fetch" | "store" | "remove", name) tuples in order.
    ``failures`` maps an operation name to the StorageError it returns.
    """

    def __init__(self, bucket: str = "memory") -> None:
        super().__init__(bucket)
        self.calls: List[Tuple[str, str]] = []
        self.store_kwargs: List[Dict[str, Any]] = []
        self.failures: Dict[str, StorageError] = {}
        self.closed = False

    async def fetch(self, name: str) -> Result[Tuple[bytes, ObjectMetadata], StorageError]:
        self.calls.append(("fetch", name))
        if "fetch" in self.failures:
            return Err(self.failures["fetch"])
        return await super().fetch(name)

    async def store(
        self,
        name: str,
        body: bytes,
        *,
        content_type: str = "application/octet-stream",
        if_match: Optional[str] = None,
        if_none_match: Optional[str] = None,
    ) -> Result[ObjectMetadata, StorageError]:
        self.calls.append(("store", name))
        self.store_kwargs.append({
            "content_type": content_type,
            "if_match": if_match,
            "if_none_match": if_none_match,
        })
        if "store" in self.failures:
            return Err(self.failures["store"])
        return await super().store(
            name,
            body,
            content_type=content_type,
            if_match=if_match,
            if_none_match=if_none_match,
        )

    async def remove(self, name: str) -> Result[bool, StorageError]:
        self.calls.append(("remove", name))
        if "remove" in self.failures:
            return Err(self.failures["remove"])
        return await super().remove(name)

    async def close(self) -> None:
        self.closed = True

    def ops(self, kind: str) -> List[str]:
        return [name for op, name in self.calls if op == kind]


# =============================================================================
# FAKE AIOBOTO3 CLIENT
# =============================================================================

class FakeStreamingBody:
    """Async context-managed body, like aiobotocore's StreamingBody."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    async def __aenter__(self) -> "FakeStreamingBody":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def read(self) -> bytes:
        return self._data


class FakeS3Client:
    """
    Minimal S3 API surface used by S3ObjectClient.

    ETags are quoted MD5 digests, as real S3 returns them. Exceptions put
    in ``failures[operation]`` are raised instead of answering.
    """

    def __init__(self) -> None:
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.failures: Dict[str, Exception] = {}

    def _enter(self, operation: str, kwargs: Dict[str, Any]) -> None:
        self.calls.append((operation, kwargs))
        if operation in self.failures:
            raise self.failures[operation]

    async def get_object(self, **kwargs: Any) -> Dict[str, Any]:
        self._enter("get_object", kwargs)
        if kwargs["Key"] not in self.objects:
            raise client_error("NoSuchKey", 404, "GetObject")
        body, etag = self.objects[kwargs["Key"]]
        return {
            "Body": FakeStreamingBody(body),
            "ETag": etag,
            "ContentLength": len(body),
            "ContentType": "application/json",
        }

    async def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        self._enter("put_object", kwargs)
        key = kwargs["Key"]
        current = self.objects.get(key)
        if kwargs.get("IfNoneMatch") == "*" and current is not None:
            raise client_error("PreconditionFailed", 412, "PutObject")
        if "IfMatch" in kwargs and (current is None or current[1] != kwargs["IfMatch"]):
            raise client_error("PreconditionFailed", 412, "PutObject")
        etag = f'"{hashlib.md5(kwargs["Body"]).hexdigest()}"'
        self.objects[key] = (kwargs["Body"], etag)
        return {"ETag": etag}

    async def delete_object(self, **kwargs: Any) -> Dict[str, Any]:
        self._enter("delete_object", kwargs)
        self.objects.pop(kwargs["Key"], None)
        return {}

    async def head_bucket(self, **kwargs: Any) -> Dict[str, Any]:
        self._enter("head_bucket", kwargs)
        return {}


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient("bot-state")


@pytest.fixture
def store(recording_client: RecordingClient) -> VersionedObjectStore:
    return VersionedObjectStore(recording_client)


@pytest.fixture
def conditional_store(recording_client: RecordingClient) -> ConditionalObjectStore:
    return ConditionalObjectStore(recording_client)


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every S3STATE_* and AWS_* variable for the test."""
    import os

    for name in list(os.environ):
        if name.startswith(("S3STATE_", "AWS_")):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def root_logger():
    """Restore root logger handlers and level replaced by setup_logging()."""
    import logging

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
