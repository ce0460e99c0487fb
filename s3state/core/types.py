"""
Core Type Definitions for s3state

Implements Result/Either monads for zero-exception control flow inside the
storage layer, plus the record aliases shared by every module.

Design Principles:
- Never use null for absence (use Optional or Result)
- Backend failures travel as values; exceptions only at the public boundary
- Records are plain JSON-compatible mappings

Complexity: O(1) for all type operations
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Literal,
    TypeVar,
    Union,
)

from s3state.core.constants import KEY_SEPARATOR

# =============================================================================
# TYPE VARIABLES FOR GENERIC CONTAINERS
# =============================================================================
T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Transform result type


# =============================================================================
# RESULT MONAD: ZERO-EXCEPTION CONTROL FLOW
# =============================================================================
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Success variant of Result monad.

    Immutable container for successful computation results.
    """

    value: T

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def unwrap(self) -> T:
        """
        Extract value. Safe to call after is_ok() check.

        Returns:
            T: The wrapped success value
        """
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return value, ignoring default."""
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply transformation to success value."""
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Monadic bind for chaining fallible operations."""
        return fn(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Failure variant of Result monad.

    Carries full error context for exhaustive handling.
    """

    error: E

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def unwrap(self) -> Any:
        """
        Attempting to unwrap an error is a programming error.

        Raises:
            RuntimeError: Always, with error context
        """
        raise RuntimeError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Return default value on error."""
        return default

    def map(self, fn: Callable[[Any], U]) -> Err[E]:
        """No-op on error variant - propagates error unchanged."""
        return self

    def flat_map(self, fn: Callable[[Any], Result[U, E]]) -> Err[E]:
        """Propagate error through monadic chain."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Union type for pattern matching
Result = Union[Ok[T], Err[E]]


# =============================================================================
# RECORD ALIASES
# =============================================================================

# One stored record: field name -> JSON-serializable value.
Record = Dict[str, Any]

# Caller key -> record. Input of write(), output of read().
StoreItems = Dict[str, Record]


def object_name_for(key: str) -> str:
    """
    Derive the storage object name for a caller key.

    Strips at most one trailing separator, so ``"user/42/"`` and
    ``"user/42"`` address the same object. The caller's key is never
    rewritten in result mappings.
    """
    if key.endswith(KEY_SEPARATOR):
        return key[: -len(KEY_SEPARATOR)]
    return key


__all__ = [
    "Ok",
    "Err",
    "Result",
    "Record",
    "StoreItems",
    "object_name_for",
]
