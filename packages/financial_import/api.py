"""Public API interfaces for the ``financial_import`` package.

This module serves as a stable import surface: concrete implementations live
in the ingest, categorization, duplicates, recategorize and workflow modules
and are re-exported here. DB-backed helpers (``financial_import.persistence``)
are not re-exported to keep import-time costs low for consumers that work
purely in memory.
"""

from __future__ import annotations

from .aggregations import (
    available_months,
    available_years,
    category_total,
    filter_by_period,
    period_totals,
    spending_by_category,
    transactions_by_category,
)
from .categorization import (
    assign_category,
    categorize,
    find_matching_categories,
    resolve_conflict,
    summarize,
)
from .duplicates import (
    compute_fingerprint,
    filter_new,
    find_duplicate_signatures,
    mark_duplicates,
    transaction_signature,
)
from .ingest.adapters import parse_file
from .ingest.detection import (
    detect_bank,
    detect_bank_from_file,
    detect_bank_from_filename,
    validate_file,
    validate_rows,
)
from .recategorize import InMemoryTransactionStore, TransactionStore, recategorize
from .workflows.import_flow import import_statements

__all__ = [
    "InMemoryTransactionStore",
    "TransactionStore",
    "assign_category",
    "available_months",
    "available_years",
    "categorize",
    "category_total",
    "compute_fingerprint",
    "detect_bank",
    "detect_bank_from_file",
    "detect_bank_from_filename",
    "filter_by_period",
    "filter_new",
    "find_duplicate_signatures",
    "find_matching_categories",
    "import_statements",
    "mark_duplicates",
    "parse_file",
    "period_totals",
    "recategorize",
    "resolve_conflict",
    "spending_by_category",
    "summarize",
    "transaction_signature",
    "transactions_by_category",
    "validate_file",
    "validate_rows",
]
