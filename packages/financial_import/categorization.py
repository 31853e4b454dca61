"""Keyword-based categorization of parsed transactions.

A category matches a transaction when any of its keywords is a
case-insensitive substring of the transaction's ``match_field``. There are no
word boundaries: ``"SHELL"`` matches ``"SHELLFISH SHACK"``. Exactly one match
assigns that category; two or more mark the transaction as a conflict for the
user to resolve.

All functions are pure: inputs are not mutated and transactions are returned
as updated copies.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .categories import matchable_categories
from .models import CategorizationSummary, Category, Transaction


def find_matching_categories(text: str, categories: Iterable[Category]) -> list[Category]:
    """Return every category in ``categories`` with a keyword contained in ``text``.

    Order follows ``categories``. Eligibility (system categories) is the
    caller's concern; pass :func:`matchable_categories` output when needed.
    """

    haystack = text.lower()
    return [
        c for c in categories if any(kw.lower() in haystack for kw in c.keywords)
    ]


def categorize_one(tx: Transaction, categories: Sequence[Category]) -> Transaction:
    matches = find_matching_categories(tx.match_field, categories)
    if len(matches) == 1:
        return replace(
            tx, category_id=matches[0].id, is_conflict=False, conflicting_categories=None
        )
    if len(matches) > 1:
        return replace(
            tx,
            category_id=None,
            is_conflict=True,
            conflicting_categories=tuple(c.id for c in matches),
        )
    return replace(tx, category_id=None, is_conflict=False, conflicting_categories=None)


def categorize(
    transactions: Iterable[Transaction], categories: Iterable[Category]
) -> list[Transaction]:
    """Assign categories by keyword match.

    Parameters
    ----------
    transactions:
        Parsed transactions; any previous categorization is recomputed.
    categories:
        Snapshot of category definitions. Only matchable categories (all
        non-system ones plus ``Income``) take part.

    Returns
    -------
    list[Transaction]
        Copies in input order. Applying the function twice with the same
        categories yields the same result.
    """

    eligible = matchable_categories(categories)
    return [categorize_one(tx, eligible) for tx in transactions]


def assign_category(tx: Transaction, category_id: str) -> Transaction:
    """Manually set ``category_id``.

    ``is_conflict`` and ``conflicting_categories`` are kept so a resolved
    conflict stays distinguishable from a transaction that never had one.
    """

    return replace(tx, category_id=category_id)


def resolve_conflict(
    transactions: Sequence[Transaction], transaction_id: str, category_id: str
) -> list[Transaction]:
    """Return ``transactions`` with ``transaction_id`` assigned to ``category_id``.

    Raises ``KeyError`` when no transaction has that id.
    """

    out: list[Transaction] = []
    found = False
    for tx in transactions:
        if tx.id == transaction_id:
            out.append(assign_category(tx, category_id))
            found = True
        else:
            out.append(tx)
    if not found:
        raise KeyError(transaction_id)
    return out


def summarize(transactions: Iterable[Transaction]) -> CategorizationSummary:
    """Count categorized, conflicting, unassigned and pending-duplicate rows.

    A conflict counts only while it is unresolved (``category_id`` unset);
    resolved conflicts count as categorized. ``duplicates`` counts flagged
    duplicates the user has not yet decided on.
    """

    categorized = conflicts = unassigned = duplicates = total = 0
    for tx in transactions:
        total += 1
        if tx.category_id:
            categorized += 1
        elif tx.is_conflict:
            conflicts += 1
        else:
            unassigned += 1
        if tx.is_duplicate and tx.duplicate_action is None:
            duplicates += 1
    return CategorizationSummary(
        categorized=categorized,
        conflicts=conflicts,
        unassigned=unassigned,
        duplicates=duplicates,
        total=total,
    )


__all__ = [
    "assign_category",
    "categorize",
    "categorize_one",
    "find_matching_categories",
    "resolve_conflict",
    "summarize",
]
