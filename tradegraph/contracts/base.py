"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- Layers may import types from this module, never the reverse
- All value types are frozen dataclasses or enums
- Errors at pipeline level are data (Error/Result), not exceptions
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Optional, Tuple


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for pipeline-level conditions.

    Row-level codes (ROW_SKIPPED, VALUE_UNPARSEABLE) are only ever counted
    in diagnostics; they never escape the builder as failures.
    """
    # Row-level (absorbed inside the builder)
    ROW_SKIPPED = auto()
    VALUE_UNPARSEABLE = auto()

    # Pipeline-level (surfaced to the caller)
    SOURCE_UNAVAILABLE = auto()
    NO_DATA_LOADED = auto()
    EMPTY_VISIBLE_GRAPH = auto()

    # Caller errors
    UNKNOWN_ENTITY = auto()
    INVALID_CONFIGURATION = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and reported.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=Timestamp.now().value,
            context=tuple((k, str(v)) for k, v in sorted(context.items()))
        )

    def to_dict(self) -> dict:
        return {
            'code': self.code.name,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'context': dict(self.context),
        }


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# TEMPORAL TYPES
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()


# =============================================================================
# DOMAIN ENUMS
# =============================================================================

class EntityType(Enum):
    """The four entity kinds of a trade record."""
    COUNTRY = "country"
    SUPPLIER = "supplier"
    PRODUCT = "product"
    IMPORTER = "importer"


class DisplayMode(Enum):
    """Which fixed subset of the country->supplier->product->importer chain becomes edges."""
    FULL = "full"
    COUNTRY_SUPPLIER = "country-supplier"
    SUPPLIER_PRODUCT = "supplier-product"
    PRODUCT_IMPORTER = "product-importer"
    COUNTRY_PRODUCT = "country-product"
    SUPPLIER_IMPORTER = "supplier-importer"


class ProductDisplayMode(Enum):
    """What a product node represents."""
    HS_CODE = "hsCode"
    PRODUCT_NAME = "productName"


class HsCodeLevel(Enum):
    """HS code granularity (only meaningful in HS_CODE product mode)."""
    CATEGORY = "category"        # 2-digit
    SUBCATEGORY = "subcategory"  # 4-digit
    EXACT = "exact"


# Edge pattern per display mode, as (source type, target type) pairs
EDGE_PATTERNS = {
    DisplayMode.FULL: (
        (EntityType.COUNTRY, EntityType.SUPPLIER),
        (EntityType.SUPPLIER, EntityType.PRODUCT),
        (EntityType.PRODUCT, EntityType.IMPORTER),
    ),
    DisplayMode.COUNTRY_SUPPLIER: ((EntityType.COUNTRY, EntityType.SUPPLIER),),
    DisplayMode.SUPPLIER_PRODUCT: ((EntityType.SUPPLIER, EntityType.PRODUCT),),
    DisplayMode.PRODUCT_IMPORTER: ((EntityType.PRODUCT, EntityType.IMPORTER),),
    DisplayMode.COUNTRY_PRODUCT: ((EntityType.COUNTRY, EntityType.PRODUCT),),
    DisplayMode.SUPPLIER_IMPORTER: ((EntityType.SUPPLIER, EntityType.IMPORTER),),
}


def parse_enum(enum_cls, raw, field_name: str):
    """Parse a wire value into an enum member, raising ValueError on unknown values."""
    if isinstance(raw, enum_cls):
        return raw
    for member in enum_cls:
        if member.value == raw:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Unknown {field_name} '{raw}' (expected one of: {allowed})")
