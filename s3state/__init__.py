"""
s3state: Versioned JSON Record Storage on S3-Compatible Object Stores

Persists conversation and user state for bot frameworks as one JSON object
per key, with ETag-based optimistic concurrency:
- read(keys): records with their current version token
- write(changes): rejects stale versions with ConflictError
- delete(keys): idempotent removal

Backends: AWS S3 / MinIO / R2 through aioboto3, or in-memory for development.
"""

__version__ = "1.0.0"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================
from s3state.core.types import Result, Ok, Err, Record, StoreItems
from s3state.core.errors import (
    ErrorCode,
    S3StateError,
    StorageError,
    ConflictError,
    ConfigurationError,
)
from s3state.core.constants import WILDCARD_VERSION
from s3state.storage import (
    BackendType,
    S3Config,
    StoreConfig,
    Storage,
    ObjectClient,
    InMemoryObjectClient,
    VersionedObjectStore,
    ConditionalObjectStore,
    create_store,
    create_store_from_env,
)
from s3state.observability.logging import LogLevel, setup_logging

__all__ = [
    "__version__",
    # Core types
    "Result",
    "Ok",
    "Err",
    "Record",
    "StoreItems",
    "WILDCARD_VERSION",
    # Errors
    "ErrorCode",
    "S3StateError",
    "StorageError",
    "ConflictError",
    "ConfigurationError",
    # Storage
    "BackendType",
    "S3Config",
    "StoreConfig",
    "Storage",
    "ObjectClient",
    "InMemoryObjectClient",
    "VersionedObjectStore",
    "ConditionalObjectStore",
    "create_store",
    "create_store_from_env",
    # Observability
    "LogLevel",
    "setup_logging",
]
