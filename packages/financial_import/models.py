"""Data models and type aliases for ``financial_import``.

Transactions are frozen dataclasses: parsing creates them once and every later
step (duplicate marking, categorization, conflict resolution) returns updated
copies via :func:`dataclasses.replace`. Categories arrive from an external
owner (database, API payload), so they are validated with Pydantic.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Enumerations (kept as string literals so they serialize as-is)
# ---------------------------------------------------------------------------

type BankType = Literal["CIBC", "AMEX", "UNKNOWN"]
"""Known statement layouts plus ``UNKNOWN`` for unrecognized files."""

type DetectionConfidence = Literal["high", "medium", "low", "none"]

type RecategorizeMode = Literal["uncategorized", "all"]

type DuplicateAction = Literal["import", "skip"]

BANK_CIBC: BankType = "CIBC"
BANK_AMEX: BankType = "AMEX"
BANK_UNKNOWN: BankType = "UNKNOWN"

ZERO = Decimal("0")


def new_transaction_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Canonical transaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A canonical transaction produced by a statement parser.

    ``amount_out`` and ``amount_in`` are both non-negative. ``net_amount`` is
    ``amount_in - amount_out``; for AMEX statements that is the negation of the
    raw statement amount (positive raw amounts are charges).

    ``is_conflict`` is set when more than one category matched. Resolving the
    conflict manually assigns ``category_id`` but leaves ``is_conflict`` and
    ``conflicting_categories`` in place so summaries can tell a resolved
    conflict from a transaction that never had one.
    """

    date: date
    description: str
    match_field: str
    amount_out: Decimal
    amount_in: Decimal
    net_amount: Decimal
    source: BankType
    id: str = field(default_factory=new_transaction_id)
    category_id: str | None = None
    is_conflict: bool = False
    conflicting_categories: tuple[str, ...] | None = None
    is_duplicate: bool = False
    duplicate_action: DuplicateAction | None = None

    def __post_init__(self) -> None:
        if self.amount_out < ZERO or self.amount_in < ZERO:
            raise ValueError(
                f"amounts must be non-negative (out={self.amount_out}, in={self.amount_in})"
            )


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class Category(BaseModel):
    """A category definition snapshot used for keyword matching.

    ``keywords`` keep their order; blank entries are dropped because an empty
    keyword would be a substring of every transaction. Duplicates are not
    removed at this layer.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    name: str
    keywords: tuple[str, ...] = ()
    is_system: bool = False
    order: int = 0

    @field_validator("id", "name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, v: object) -> tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            raise ValueError("keywords must be a list of strings, not a single string")
        cleaned = [str(k).strip() for k in v]  # type: ignore[union-attr]
        return tuple(k for k in cleaned if k)


# ---------------------------------------------------------------------------
# Results and diagnostics
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ParseResult:
    """Transactions parsed from one file plus one error string per bad row."""

    transactions: list[Transaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class BankDetectionResult(NamedTuple):
    bank_type: BankType
    confidence: DetectionConfidence
    reason: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CategorizationSummary:
    categorized: int
    conflicts: int
    unassigned: int
    duplicates: int
    total: int


@dataclass(frozen=True, slots=True)
class RecategorizeResult:
    processed: int
    updated: int
    conflicts: int


class StatementFile(NamedTuple):
    """Raw bytes of an uploaded statement.

    ``bank_type`` forces a parser; ``None`` lets the detector decide.
    """

    name: str
    data: bytes
    bank_type: BankType | None = None


@dataclass(frozen=True, slots=True)
class ImportBatchResult:
    transactions: list[Transaction]
    errors: list[str]
    summary: CategorizationSummary
    detections: dict[str, BankDetectionResult]


__all__ = [
    "BANK_AMEX",
    "BANK_CIBC",
    "BANK_UNKNOWN",
    "BankDetectionResult",
    "BankType",
    "CategorizationSummary",
    "Category",
    "DetectionConfidence",
    "DuplicateAction",
    "ImportBatchResult",
    "ParseResult",
    "RecategorizeMode",
    "RecategorizeResult",
    "StatementFile",
    "Transaction",
    "ValidationResult",
    "new_transaction_id",
]
