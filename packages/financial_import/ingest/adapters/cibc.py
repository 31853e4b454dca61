"""Adapter for CIBC account exports (CSV or spreadsheet).

Layout
------
No header row; data starts on the first line. Columns:

``Date, Description, Money Out, Money In``

- Date: ``MM/DD/YYYY`` or ``YYYY-MM-DD``.
- Money Out / Money In: plain decimals without a currency symbol; the unused
  side is empty. A three-cell row is a charge whose Money In cell is absent.

Sign convention: ``amount_out``/``amount_in`` are the absolute values of the
two columns and ``net_amount = amount_in - amount_out``. The description is
also the match field.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ...logging_setup import get_logger
from ...models import BANK_CIBC, ParseResult, Transaction
from ...normalizers import cell_date, cell_text, parse_cibc_date, to_decimal_or_zero
from ._common import RowError, finish

_logger = get_logger("financial_import.ingest.adapters.cibc")

CIBC_COLUMNS = 4
# A workbook holding only charges has no Money In column at all.
MIN_CIBC_COLUMNS = 3


def _row_to_transaction(row: Sequence[Any], row_no: int) -> Transaction:
    date_cell = row[0]
    date_raw = cell_text(date_cell)
    description = cell_text(row[1])
    if not date_raw or not description:
        raise RowError(f"Row {row_no}: Missing date or description")

    tx_date = cell_date(date_cell)
    if tx_date is None:
        try:
            tx_date = parse_cibc_date(date_raw)
        except ValueError:
            raise RowError(f'Row {row_no}: Invalid date format "{date_raw}"') from None

    out_raw = cell_text(row[2])
    in_raw = cell_text(row[3])
    try:
        money_out = abs(to_decimal_or_zero(out_raw))
    except ValueError:
        raise RowError(f'Row {row_no}: Invalid amount "{out_raw}"') from None
    try:
        money_in = abs(to_decimal_or_zero(in_raw))
    except ValueError:
        raise RowError(f'Row {row_no}: Invalid amount "{in_raw}"') from None

    return Transaction(
        date=tx_date,
        description=description,
        match_field=description,
        amount_out=money_out,
        amount_in=money_in,
        net_amount=money_in - money_out,
        source=BANK_CIBC,
    )


def parse_rows(rows: Sequence[Sequence[Any]]) -> ParseResult:
    """Convert CIBC rows into transactions, isolating per-row failures."""

    result = ParseResult()
    if not rows:
        result.errors.append("File is empty")
        return result

    for index, row in enumerate(rows):
        # Short rows (stray footers, blank lines) are not transactions.
        if not row or len(row) < MIN_CIBC_COLUMNS:
            continue
        if len(row) < CIBC_COLUMNS:
            row = [*row, ""]
        try:
            result.transactions.append(_row_to_transaction(row, index + 1))
        except RowError as err:
            _logger.debug("%s", err)
            result.errors.append(str(err))

    return finish(result, BANK_CIBC, _logger)


__all__ = ["parse_rows"]
