"""In-memory aggregations over categorized transactions."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from .models import Transaction


class PeriodTotals(NamedTuple):
    income: Decimal
    expenses: Decimal


def transactions_by_category(
    transactions: Iterable[Transaction],
) -> dict[str | None, list[Transaction]]:
    """Group transactions by ``category_id`` (``None`` collects unassigned rows)."""

    groups: dict[str | None, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        groups[tx.category_id].append(tx)
    return dict(groups)


def _in_range(d: date, start: date | None, end: date | None) -> bool:
    return (start is None or d >= start) and (end is None or d <= end)


def category_total(
    transactions: Iterable[Transaction],
    category_id: str,
    *,
    start: date | None = None,
    end: date | None = None,
) -> Decimal:
    """Sum ``net_amount`` for one category, optionally within ``[start, end]``."""

    return sum(
        (
            tx.net_amount
            for tx in transactions
            if tx.category_id == category_id and _in_range(tx.date, start, end)
        ),
        Decimal("0"),
    )


def available_years(transactions: Iterable[Transaction]) -> list[int]:
    """Distinct years present, most recent first."""

    return sorted({tx.date.year for tx in transactions}, reverse=True)


def available_months(transactions: Iterable[Transaction]) -> list[tuple[int, int]]:
    """Distinct ``(year, month)`` pairs present, most recent first; months are 1-12."""

    return sorted({(tx.date.year, tx.date.month) for tx in transactions}, reverse=True)


def filter_by_period(
    transactions: Iterable[Transaction], *, year: int | None = None, month: int | None = None
) -> list[Transaction]:
    """Keep transactions in ``year`` (and ``month``, 1-12, when given)."""

    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    out: list[Transaction] = []
    for tx in transactions:
        if year is not None and tx.date.year != year:
            continue
        if month is not None and tx.date.month != month:
            continue
        out.append(tx)
    return out


def spending_by_category(
    transactions: Iterable[Transaction], *, excluded_id: str | None = None
) -> dict[str, Decimal]:
    """Sum ``amount_out`` per assigned category, skipping ``excluded_id``."""

    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        if tx.category_id is None or tx.category_id == excluded_id:
            continue
        totals[tx.category_id] += tx.amount_out
    return dict(totals)


def period_totals(
    transactions: Iterable[Transaction], *, excluded_id: str | None = None
) -> PeriodTotals:
    """Income (``amount_in``) and expenses (``amount_out``), skipping ``excluded_id``."""

    income = expenses = Decimal("0")
    for tx in transactions:
        if excluded_id is not None and tx.category_id == excluded_id:
            continue
        income += tx.amount_in
        expenses += tx.amount_out
    return PeriodTotals(income, expenses)


__all__ = [
    "PeriodTotals",
    "available_months",
    "available_years",
    "category_total",
    "filter_by_period",
    "period_totals",
    "spending_by_category",
    "transactions_by_category",
]
