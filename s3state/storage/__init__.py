"""
Storage Module: Versioned JSON Records on Object Storage
========================================================

Provides:
- Protocol definitions for object clients and the framework storage contract
- S3-compatible client (aioboto3) and an in-memory client for development
- The versioned record store and its conditional-write variant
- Factory functions for backend selection

Example:
    >>> # Development (in-memory)
    >>> store = create_store()

    >>> # Production (configured)
    >>> store = create_store(StoreConfig.for_s3("bot-state"))
"""

from __future__ import annotations

from typing import Optional

from s3state.storage.protocols import (
    ObjectClient,
    ObjectMetadata,
    Storage,
)
from s3state.storage.config import (
    BackendType,
    S3Config,
    StoreConfig,
)
from s3state.storage.memory_client import InMemoryObjectClient
from s3state.storage.versioned_store import (
    ConditionalObjectStore,
    VersionedObjectStore,
)


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def create_object_client(config: StoreConfig) -> ObjectClient:
    """
    Create the object client a configuration asks for.

    Returns:
        InMemoryObjectClient: backend == IN_MEMORY.
        S3ObjectClient: backend == S3 (aioboto3 loaded lazily on connect).
    """
    if config.backend == BackendType.S3:
        from s3state.storage.s3_client import S3ObjectClient
        return S3ObjectClient(config.s3)

    return InMemoryObjectClient()


def create_store(
    config: Optional[StoreConfig] = None,
    client: Optional[ObjectClient] = None,
) -> VersionedObjectStore:
    """
    Create a record store.

    Args:
        config: Store configuration; in-memory development settings if None.
        client: Pre-built object client; overrides the configured backend.

    Returns:
        ConditionalObjectStore when ``config.conditional_writes`` is set,
        otherwise VersionedObjectStore.

    Example:
        >>> store = create_store(StoreConfig.for_s3("bot-state"))
    """
    config = config or StoreConfig.for_development()
    client = client if client is not None else create_object_client(config)

    store_cls = ConditionalObjectStore if config.conditional_writes else VersionedObjectStore
    return store_cls(client, version_field=config.version_field)


def create_store_from_env() -> VersionedObjectStore:
    """Create a record store configured from S3STATE_* environment variables."""
    return create_store(StoreConfig.from_env())


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    # Protocols
    "ObjectClient",
    "ObjectMetadata",
    "Storage",
    # Configuration
    "BackendType",
    "S3Config",
    "StoreConfig",
    # Clients
    "InMemoryObjectClient",
    # Stores
    "VersionedObjectStore",
    "ConditionalObjectStore",
    # Factory functions
    "create_object_client",
    "create_store",
    "create_store_from_env",
]
