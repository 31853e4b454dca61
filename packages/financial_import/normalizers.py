"""Date and amount literal parsers shared by the statement adapters.

Each bank format accepts a narrow date grammar. A string outside that grammar
raises ``ValueError``; adapters turn the exception into a per-row error rather
than guessing at an alternative interpretation.

Amount parsing strips formatting noise (currency symbols, thousands
separators, surrounding whitespace) before converting to :class:`Decimal`.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


def cell_text(value: Any) -> str:
    """Return a trimmed string view of a raw cell (CSV text or spreadsheet value).

    Spreadsheet date cells become ISO ``YYYY-MM-DD`` strings; integral floats
    keep their decimal form (``4.0`` -> ``"4.0"``), which amount parsing
    accepts.
    """

    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def cell_date(value: Any) -> date | None:
    """Return the calendar date of a native spreadsheet date cell, else ``None``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

CIBC_MDY_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
CIBC_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
AMEX_DATE_RE = re.compile(r"^\d{1,2}\s+[A-Za-z]{3,4}\.?\s+\d{4}$")

_MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}


def is_cibc_date(s: str) -> bool:
    return bool(CIBC_MDY_RE.match(s) or CIBC_ISO_RE.match(s))


def is_amex_date(s: str) -> bool:
    return bool(AMEX_DATE_RE.match(s))


def parse_cibc_date(raw: str) -> date:
    """Parse ``MM/DD/YYYY`` or ``YYYY-MM-DD``.

    Raises ``ValueError`` for any other grammar and for impossible calendar
    dates such as ``02/30/2024``.
    """

    s = raw.strip()
    if CIBC_ISO_RE.match(s):
        year, month, day = (int(p) for p in s.split("-"))
    elif CIBC_MDY_RE.match(s):
        month, day, year = (int(p) for p in s.split("/"))
    else:
        raise ValueError(f"invalid CIBC date: {raw!r}")
    return date(year, month, day)


def parse_amex_date(raw: str) -> date:
    """Parse ``DD Mon. YYYY`` (e.g., ``"16 Dec. 2025"``, ``"3 Sept 2025"``).

    The month is matched on its first three letters, case-insensitively.
    """

    s = raw.strip()
    if not AMEX_DATE_RE.match(s):
        raise ValueError(f"invalid AMEX date: {raw!r}")
    day_s, month_s, year_s = s.replace(".", "").split()
    month = _MONTHS.get(month_s[:3].lower())
    if month is None:
        raise ValueError(f"invalid AMEX month: {raw!r}")
    return date(int(year_s), month, int(day_s))


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_AMOUNT_NOISE_RE = re.compile(r"[$,\s\xa0]")
CENT = Decimal("0.01")


def to_decimal(raw: str) -> Decimal:
    """Convert an amount literal to ``Decimal`` after stripping ``$`` and ``,``.

    Raises ``ValueError`` when the cleaned text is empty or not numeric.
    """

    cleaned = _AMOUNT_NOISE_RE.sub("", raw)
    if not cleaned:
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        d = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    return d


def to_decimal_or_zero(raw: str) -> Decimal:
    """Like :func:`to_decimal`, but an empty cell means zero."""

    if not raw.strip():
        return Decimal("0")
    return to_decimal(raw)


def fmt_amount(d: Decimal) -> str:
    """Exactly two decimals, ASCII dot, leading minus for negatives."""

    q = d.quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{q:.2f}"


__all__ = [
    "AMEX_DATE_RE",
    "cell_date",
    "cell_text",
    "fmt_amount",
    "is_amex_date",
    "is_cibc_date",
    "parse_amex_date",
    "parse_cibc_date",
    "to_decimal",
    "to_decimal_or_zero",
]
