"""Adapter for American Express (Canada) spreadsheet statement exports.

Layout
------
Rows 1-11 are account metadata, row 12 is the column header and transaction
rows start at row 13. Two row shapes appear in the same sheet:

- Charges: ``A`` date, ``C`` description, ``D`` amount, ``J`` additional
  information (merchant details; preferred for keyword matching).
- Payments/credits: column ``D`` is empty; the amount sits in ``C`` and the
  description in ``I``.

Dates look like ``"16 Dec. 2025"``; amounts carry a ``$`` sign.

Sign convention
---------------
The raw amount is positive for money out (charges) and negative for money in
(payments, refunds). ``net_amount`` is therefore the negation of the raw
amount, i.e. ``amount_in - amount_out``. This inversion is specific to this
export and intentional.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from ...logging_setup import get_logger
from ...models import BANK_AMEX, ZERO, ParseResult, Transaction
from ...normalizers import cell_date, cell_text, parse_amex_date, to_decimal
from ..detection import AMEX_DATA_OFFSET
from ._common import RowError, finish

_logger = get_logger("financial_import.ingest.adapters.amex")

# Zero-based column indices
COL_DATE = 0
COL_DESCRIPTION = 2
COL_AMOUNT = 3
COL_PAYMENT_AMOUNT = 2
COL_PAYMENT_DESCRIPTION = 8
COL_ADDITIONAL_INFO = 9


def _cell(row: Sequence[Any], i: int) -> str:
    return cell_text(row[i]) if i < len(row) else ""


def is_payment_row(row: Sequence[Any]) -> bool:
    """Payment/credit rows leave the regular amount column empty."""

    return not _cell(row, COL_AMOUNT)


def _row_to_transaction(row: Sequence[Any], row_no: int) -> Transaction:
    date_cell = row[COL_DATE]
    date_raw = cell_text(date_cell)

    if is_payment_row(row):
        amount_raw = _cell(row, COL_PAYMENT_AMOUNT) or "0"
        description = _cell(row, COL_PAYMENT_DESCRIPTION)
        match_field = description
    else:
        description = _cell(row, COL_DESCRIPTION)
        amount_raw = _cell(row, COL_AMOUNT)
        match_field = _cell(row, COL_ADDITIONAL_INFO) or description

    if not date_raw or not match_field:
        raise RowError(f"Row {row_no}: Missing date or match information")

    tx_date = cell_date(date_cell)
    if tx_date is None:
        try:
            tx_date = parse_amex_date(date_raw)
        except ValueError:
            raise RowError(f'Row {row_no}: Invalid date format "{date_raw}"') from None

    try:
        amount = to_decimal(amount_raw)
    except ValueError:
        raise RowError(f'Row {row_no}: Invalid amount "{amount_raw}"') from None

    amount_out = amount if amount > ZERO else Decimal("0")
    amount_in = -amount if amount < ZERO else Decimal("0")
    return Transaction(
        date=tx_date,
        description=description,
        match_field=match_field,
        amount_out=amount_out,
        amount_in=amount_in,
        net_amount=amount_in - amount_out,
        source=BANK_AMEX,
    )


def parse_rows(rows: Sequence[Sequence[Any]]) -> ParseResult:
    """Convert AMEX sheet rows into transactions, isolating per-row failures."""

    result = ParseResult()
    if len(rows) < AMEX_DATA_OFFSET:
        result.errors.append("File does not contain enough rows (expected data at row 12)")
        return result

    data_rows = rows[AMEX_DATA_OFFSET:]
    if not data_rows:
        result.errors.append("No transaction data found after row 12")
        return result

    for index, row in enumerate(data_rows):
        if not row or not any(cell_text(c) for c in row):
            continue
        try:
            result.transactions.append(_row_to_transaction(row, index + AMEX_DATA_OFFSET + 1))
        except RowError as err:
            _logger.debug("%s", err)
            result.errors.append(str(err))

    return finish(result, BANK_AMEX, _logger)


__all__ = ["is_payment_row", "parse_rows"]
