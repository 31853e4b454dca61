from __future__ import annotations

from datetime import date
from decimal import Decimal

from financial_import.duplicates import (
    compute_fingerprint,
    filter_new,
    find_duplicate_signatures,
    mark_duplicates,
    signature_of,
    transaction_signature,
)
from financial_import.ingest.adapters import parse_file

from tests.helpers.factories import csv_bytes, make_tx


def test_signature_format():
    tx = make_tx("TIM HORTONS #123", on=date(2024, 1, 15), out="4.5")
    assert transaction_signature(tx) == "2024-01-15|TIM HORTONS #123|4.50|0.00"


def test_signature_matches_raw_values_from_storage():
    tx = make_tx("LOBLAWS", out="82.1")
    assert transaction_signature(tx) == signature_of(
        date(2024, 1, 15), "LOBLAWS", Decimal("82.10"), Decimal("0")
    )


def test_signature_stable_across_files():
    a = parse_file(csv_bytes(["01/15/2024,TIM HORTONS,4.5,"]), "a.csv", "CIBC")
    b = parse_file(csv_bytes(["2024-01-15,TIM HORTONS,4.50,0"]), "b.csv", "CIBC")
    assert transaction_signature(a.transactions[0]) == transaction_signature(b.transactions[0])


def test_mark_duplicates_flags_only_stored():
    stored = make_tx("TIM HORTONS")
    fresh = make_tx("STARBUCKS")
    out = mark_duplicates([stored, fresh], {transaction_signature(stored)})
    assert [t.is_duplicate for t in out] == [True, False]
    assert all(t.duplicate_action is None for t in out)


def test_find_duplicate_signatures():
    a, b = make_tx("A"), make_tx("B")
    sigs = find_duplicate_signatures([a, b], [transaction_signature(b), "other"])
    assert sigs == {transaction_signature(b)}


def test_filter_new_skips_stored_rows_only():
    a, a_again, b = make_tx("A"), make_tx("A"), make_tx("B")
    new, skipped = filter_new([a, a_again, b], [transaction_signature(b)])
    assert new == [a, a_again]
    assert skipped == 1


def test_fingerprint_is_stricter_than_signature():
    cibc = make_tx("UBER TRIP", description="UBER", source="CIBC")
    amex = make_tx("UBER TRIP", description="UBER", source="AMEX")
    assert transaction_signature(cibc) == transaction_signature(amex)
    assert compute_fingerprint(cibc) != compute_fingerprint(amex)
    assert len(compute_fingerprint(cibc)) == 64

    out = mark_duplicates([amex], {compute_fingerprint(cibc)}, key=compute_fingerprint)
    assert not out[0].is_duplicate
