"""Small pieces shared by the statement adapters."""

from __future__ import annotations

import logging

from ...models import BankType, ParseResult

NO_TRANSACTIONS_ERROR = "No valid transactions found in file"


class RowError(ValueError):
    """A single malformed row; the message is the user-facing error string."""


def finish(result: ParseResult, bank_type: BankType, logger: logging.Logger) -> ParseResult:
    # Nothing parsed and nothing rejected usually means the wrong format was chosen.
    if not result.transactions and not result.errors:
        result.errors.append(NO_TRANSACTIONS_ERROR)
    logger.info(
        "Parsed %d %s transaction(s) with %d error(s)",
        len(result.transactions),
        bank_type,
        len(result.errors),
    )
    return result
