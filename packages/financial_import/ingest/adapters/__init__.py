"""Statement adapters keyed by bank type.

Each adapter exposes ``parse_rows(rows) -> ParseResult``. :func:`parse_file`
loads raw bytes and dispatches to the adapter for ``bank_type``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ...models import BANK_AMEX, BANK_CIBC, BankType, ParseResult
from ..utils import StatementReadError, load_rows
from . import amex, cibc

type RowParser = Callable[[Sequence[Sequence[Any]]], ParseResult]

PARSERS: dict[BankType, RowParser] = {
    BANK_CIBC: cibc.parse_rows,
    BANK_AMEX: amex.parse_rows,
}


def get_parser(bank_type: BankType) -> RowParser:
    try:
        return PARSERS[bank_type]
    except KeyError:
        raise ValueError(f"No parser for bank type: {bank_type!r}") from None


def parse_file(data: bytes, filename: str, bank_type: BankType) -> ParseResult:
    """Parse a statement file with the adapter for ``bank_type``.

    Unreadable files yield a single ``"File parsing error: ..."`` entry and no
    transactions. An unknown ``bank_type`` raises ``ValueError``.
    """

    parser = get_parser(bank_type)
    try:
        rows = load_rows(data, filename)
    except StatementReadError as exc:
        return ParseResult(errors=[f"File parsing error: {exc}"])
    return parser(rows)


__all__ = ["PARSERS", "RowParser", "get_parser", "parse_file"]
