"""Duplicate detection across statement files and previously stored rows.

The default key is the transaction *signature*:

``"YYYY-MM-DD|description|amount_out|amount_in"``

with both amounts rendered with exactly two decimals, so the same charge read
from a CSV, a spreadsheet or a database row yields the same string. Two
genuinely distinct purchases with identical date, description and amounts
collide; callers wanting a stricter key can pass :func:`compute_fingerprint`
(which also covers ``match_field`` and ``source``) as ``key``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date
from decimal import Decimal

from .models import Transaction
from .normalizers import fmt_amount

type SignatureKey = Callable[[Transaction], str]


def signature_of(tx_date: date, description: str, amount_out: Decimal, amount_in: Decimal) -> str:
    """Signature from raw field values (used for rows loaded from the database)."""

    return f"{tx_date.isoformat()}|{description}|{fmt_amount(amount_out)}|{fmt_amount(amount_in)}"


def transaction_signature(tx: Transaction) -> str:
    return signature_of(tx.date, tx.description, tx.amount_out, tx.amount_in)


def compute_fingerprint(tx: Transaction) -> str:
    """Stable SHA-256 over the normalized canonical fields of ``tx``."""

    payload = {
        "source": tx.source,
        "date": tx.date.isoformat(),
        "description": tx.description.strip(),
        "match_field": tx.match_field.strip(),
        "amount_out": fmt_amount(tx.amount_out),
        "amount_in": fmt_amount(tx.amount_in),
    }
    # Deterministic JSON serialization
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def find_duplicate_signatures(
    incoming: Iterable[Transaction],
    existing_signatures: Iterable[str],
    *,
    key: SignatureKey = transaction_signature,
) -> set[str]:
    """Return the keys of ``incoming`` that already appear in ``existing_signatures``."""

    existing = set(existing_signatures)
    return {k for k in (key(tx) for tx in incoming) if k in existing}


def mark_duplicates(
    transactions: Iterable[Transaction],
    existing_signatures: Iterable[str],
    *,
    key: SignatureKey = transaction_signature,
) -> list[Transaction]:
    """Flag transactions whose key is already stored.

    Returns copies with ``is_duplicate`` set accordingly; ``duplicate_action``
    is left for the user to decide.
    """

    existing = set(existing_signatures)
    return [replace(tx, is_duplicate=key(tx) in existing) for tx in transactions]


def filter_new(
    transactions: Iterable[Transaction],
    existing_signatures: Iterable[str],
    *,
    key: SignatureKey = transaction_signature,
) -> tuple[list[Transaction], int]:
    """Split off already-stored transactions.

    Returns ``(new, skipped_count)``. Only ``existing_signatures`` is
    consulted; identical rows within ``transactions`` are all kept.
    """

    existing = set(existing_signatures)
    new: list[Transaction] = []
    skipped = 0
    for tx in transactions:
        if key(tx) in existing:
            skipped += 1
            continue
        new.append(tx)
    return new, skipped


__all__ = [
    "SignatureKey",
    "compute_fingerprint",
    "filter_new",
    "find_duplicate_signatures",
    "mark_duplicates",
    "signature_of",
    "transaction_signature",
]
