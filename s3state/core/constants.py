"""
Package-Wide Constants for s3state

All magic values and configuration defaults centralized here.
"""

from typing import Final

# =============================================================================
# RECORD CONVENTIONS
# =============================================================================
WILDCARD_VERSION: Final[str] = "*"
DEFAULT_VERSION_FIELD: Final[str] = "version"
KEY_SEPARATOR: Final[str] = "/"

# Compact JSON keeps stored bodies byte-identical to other writers.
JSON_SEPARATORS: Final[tuple[str, str]] = (",", ":")
JSON_CONTENT_TYPE: Final[str] = "application/json"
BODY_ENCODING: Final[str] = "utf-8"

# =============================================================================
# S3 DEFAULTS
# =============================================================================
DEFAULT_REGION: Final[str] = "us-east-1"
MIN_BUCKET_NAME_LENGTH: Final[int] = 3
MAX_BUCKET_NAME_LENGTH: Final[int] = 63
DEFAULT_MAX_POOL_CONNECTIONS: Final[int] = 10
DEFAULT_CONNECT_TIMEOUT_S: Final[int] = 5
DEFAULT_READ_TIMEOUT_S: Final[int] = 60
DEFAULT_MAX_RETRIES: Final[int] = 3

# =============================================================================
# BACKEND ERROR CODES (botocore ClientError "Code" values)
# =============================================================================
NOT_FOUND_CODES: Final[frozenset[str]] = frozenset({"NoSuchKey", "404", "NotFound"})
PRECONDITION_CODES: Final[frozenset[str]] = frozenset({
    "PreconditionFailed",
    "412",
    "ConditionalRequestConflict",
    "409",
})

# =============================================================================
# ENVIRONMENT
# =============================================================================
ENV_PREFIX: Final[str] = "S3STATE"
S3_ENV_PREFIX: Final[str] = "S3STATE_S3"
