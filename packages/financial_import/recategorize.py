"""Re-run keyword matching over stored transactions after keyword edits.

The workflow talks to storage through the small :class:`TransactionStore`
protocol so it runs unchanged against the SQL store
(:class:`financial_import.persistence.SqlTransactionStore`) or the in-memory
store defined here.

Only unambiguous results are written: a transaction matching exactly one
category is moved there; zero matches leave it untouched; two or more are
counted as conflicts and also left untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Protocol

from .categories import EXCLUDED, UNCATEGORIZED, find_system_category, matchable_categories
from .categorization import find_matching_categories
from .logging_setup import get_logger
from .models import Category, RecategorizeMode, RecategorizeResult, Transaction

_logger = get_logger("financial_import.recategorize")


class TransactionStore(Protocol):
    def transactions_in_category(self, category_id: str) -> Sequence[Transaction]: ...

    def transactions_not_in_category(self, category_id: str | None) -> Sequence[Transaction]:
        """All transactions whose category differs from ``category_id``.

        Transactions without a category are included. ``None`` returns every
        transaction.
        """
        ...

    def set_category(self, transaction_id: str, category_id: str) -> None: ...


class InMemoryTransactionStore:
    """A :class:`TransactionStore` over a list of transactions held in memory."""

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._rows: dict[str, Transaction] = {tx.id: tx for tx in transactions}

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._rows.values())

    def transactions_in_category(self, category_id: str) -> list[Transaction]:
        return [tx for tx in self._rows.values() if tx.category_id == category_id]

    def transactions_not_in_category(self, category_id: str | None) -> list[Transaction]:
        if category_id is None:
            return list(self._rows.values())
        return [tx for tx in self._rows.values() if tx.category_id != category_id]

    def set_category(self, transaction_id: str, category_id: str) -> None:
        tx = self._rows[transaction_id]  # KeyError for unknown ids
        self._rows[transaction_id] = replace(tx, category_id=category_id)


def _scope(
    store: TransactionStore, categories: Sequence[Category], mode: RecategorizeMode
) -> Sequence[Transaction]:
    if mode == "uncategorized":
        uncategorized = find_system_category(categories, UNCATEGORIZED)
        if uncategorized is None:
            raise LookupError("Uncategorized category not found")
        return store.transactions_in_category(uncategorized.id)
    if mode == "all":
        excluded = find_system_category(categories, EXCLUDED)
        return store.transactions_not_in_category(excluded.id if excluded else None)
    raise ValueError(f"Unknown recategorize mode: {mode!r}")


def recategorize(
    store: TransactionStore,
    categories: Iterable[Category],
    mode: RecategorizeMode = "uncategorized",
) -> RecategorizeResult:
    """Re-apply keyword matching to stored transactions.

    Parameters
    ----------
    store:
        Storage seam; per-row write atomicity is the store's responsibility.
    categories:
        Current category snapshot including the system categories.
    mode:
        ``"uncategorized"`` scans the ``Uncategorized`` category only;
        ``"all"`` scans everything except ``Excluded`` (rows with no category
        included).

    Returns
    -------
    RecategorizeResult
        ``processed`` rows in scope, ``updated`` rows written and
        ``conflicts`` rows left untouched because several categories matched.

    Raises
    ------
    LookupError
        ``mode="uncategorized"`` and no ``Uncategorized`` system category.
    ValueError
        Unknown ``mode``.
    """

    snapshot = list(categories)
    scope = _scope(store, snapshot, mode)
    eligible = matchable_categories(snapshot)

    updated = 0
    conflicts = 0
    for tx in scope:
        matches = find_matching_categories(tx.match_field, eligible)
        if len(matches) == 1:
            store.set_category(tx.id, matches[0].id)
            updated += 1
        elif len(matches) > 1:
            conflicts += 1

    _logger.info(
        "Recategorized (%s): processed=%d updated=%d conflicts=%d",
        mode,
        len(scope),
        updated,
        conflicts,
    )
    return RecategorizeResult(processed=len(scope), updated=updated, conflicts=conflicts)


__all__ = ["InMemoryTransactionStore", "TransactionStore", "recategorize"]
