"""
Core module: result types, errors and constants shared across s3state.
"""

from s3state.core.types import Ok, Err, Result, Record, StoreItems, object_name_for
from s3state.core.errors import (
    ErrorCode,
    S3StateError,
    StorageError,
    ConflictError,
    ConfigurationError,
)

__all__ = [
    "Ok",
    "Err",
    "Result",
    "Record",
    "StoreItems",
    "object_name_for",
    "ErrorCode",
    "S3StateError",
    "StorageError",
    "ConflictError",
    "ConfigurationError",
]
