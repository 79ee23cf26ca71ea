"""
Structured error types for rowgraph.

Every failure a materialization pass can produce is one of the types below.
A caller sees exactly one of them per failed pass: rowgraph's own errors
propagate unchanged, driver failures arrive wrapped in ``DataAccessError``,
and instantiation/attribute failures arrive wrapped in ``MappingError``.
The original exception is always chained as ``cause``.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        RowGraphError                             │
        │               (category, context, cause)                         │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  MappingError        TranslationError        DataAccessError     │
        │  (MAPPING)           (TYPE)                  (DATABASE)          │
        │                           │                                      │
        │                      UnsupportedTypeError                        │
        │                      UnknownMemberError                          │
        │                                                                  │
        │  CapacityExceededError    OrderingAmbiguityError   ConfigError   │
        │  (CAPACITY)               (ORDERING)               (CONFIG)      │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Wrapping a driver failure:

    >>> try:
    ...     raise sqlite3.OperationalError("no such table: orders")
    ... except sqlite3.Error as e:
    ...     raise DataAccessError("Query failed", cause=e).with_context(
    ...         table="orders", sql="SELECT * FROM orders"
    ...     )
    Traceback (most recent call last):
    ...
    DataAccessError: Query failed

    Serializing for structured logs:

    >>> MappingError("Order has no identity").to_dict()["category"]
    'MAPPING'

Guardrails:
    ❌ DON'T: Raise bare ``Exception`` from engine code
    ✅ DO: Use the narrowest RowGraphError subclass

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as ``cause=`` so tracebacks keep the root cause

Tags:
    error-handling, exception-hierarchy, error-context, rowgraph
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and logging.

    Attributes:
        MAPPING: Entity metadata is missing or malformed
        TYPE: No translation rule, or a value outside an enumeration
        CAPACITY: An enumerated set grew past its member limit
        DATABASE: Query execution or row read failed in the driver
        ORDERING: Association keys of different kinds were compared
        CONFIG: Invalid settings
        INTERNAL: Bugs, unexpected state
    """

    MAPPING = "MAPPING"
    TYPE = "TYPE"
    CAPACITY = "CAPACITY"
    DATABASE = "DATABASE"
    ORDERING = "ORDERING"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover what the engine knows when it fails (entity type,
    table, column label, SQL text); anything else goes in ``metadata``.

    Examples:
        >>> ctx = ErrorContext(entity="Order", label="customer_id")
        >>> ctx.to_dict()
        {'entity': 'Order', 'label': 'customer_id'}
    """

    entity: str | None = None
    table: str | None = None
    label: str | None = None
    sql: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["entity", "table", "label", "sql"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RowGraphError(Exception):
    """
    Base exception for all rowgraph errors.

    Subclasses set ``default_category``. Instances carry a message, a
    category, an :class:`ErrorContext` and an optional chained ``cause``.

    Examples:
        >>> error = RowGraphError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = MappingError("No identity").with_context(entity="Order")
        >>> error.context.entity
        'Order'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RowGraphError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MappingError("Bad marker").with_context(
                entity="Order", label="customer_id"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# METADATA ERRORS
# =============================================================================


class MappingError(RowGraphError):
    """
    Entity metadata is missing or malformed.

    Raised while building a descriptor (no identity, two identities, a
    reference to an unmapped type) and used to wrap instantiation or
    attribute-access failures during a pass.
    """

    default_category = ErrorCategory.MAPPING


# =============================================================================
# TRANSLATION ERRORS
# =============================================================================


class TranslationError(RowGraphError):
    """A raw column value could not become an attribute value (or back)."""

    default_category = ErrorCategory.TYPE


class UnsupportedTypeError(TranslationError):
    """No translator rule handles the target type."""

    def __init__(self, target: Any, message: str | None = None, **kwargs: Any):
        self.target = target
        name = getattr(target, "__name__", repr(target))
        super().__init__(message or f"Type {name} is not supported", **kwargs)


class UnknownMemberError(TranslationError):
    """A token does not name any member of the target enumeration (strict mode)."""

    def __init__(self, enum_type: type, token: str, **kwargs: Any):
        self.enum_type = enum_type
        self.token = token
        super().__init__(f"{token!r} is not a member of {enum_type.__name__}", **kwargs)


class CapacityExceededError(RowGraphError):
    """An enumerated set would hold more members than its limit."""

    default_category = ErrorCategory.CAPACITY

    def __init__(self, limit: int, message: str | None = None, **kwargs: Any):
        self.limit = limit
        super().__init__(message or f"Maximum set size of {limit} members exceeded", **kwargs)


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class DataAccessError(RowGraphError):
    """Wraps a failure raised by the underlying driver during query or row read."""

    default_category = ErrorCategory.DATABASE


class OrderingAmbiguityError(RowGraphError):
    """Two association keys of different kinds were compared."""

    default_category = ErrorCategory.ORDERING

    def __init__(self, left: Any, right: Any, **kwargs: Any):
        self.left = left
        self.right = right
        super().__init__(
            f"Cannot order keys {left!r} ({type(left).__name__}) and "
            f"{right!r} ({type(right).__name__})",
            **kwargs,
        )


class ConfigError(RowGraphError):
    """Invalid configuration."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RowGraphError",
    "MappingError",
    "TranslationError",
    "UnsupportedTypeError",
    "UnknownMemberError",
    "CapacityExceededError",
    "DataAccessError",
    "OrderingAmbiguityError",
    "ConfigError",
]
