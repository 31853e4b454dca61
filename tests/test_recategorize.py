from __future__ import annotations

import pytest

from financial_import.recategorize import InMemoryTransactionStore, recategorize

from tests.helpers.factories import make_tx


def _by_desc(store: InMemoryTransactionStore) -> dict[str, str | None]:
    return {t.description: t.category_id for t in store.transactions}


def test_uncategorized_mode_updates_only_uncategorized_rows(categories):
    store = InMemoryTransactionStore(
        [
            make_tx("STARBUCKS 0042", category_id="uncat"),
            make_tx("STARBUCKS 0043", category_id="groc"),
            make_tx("AMAZON PRIME", category_id="uncat"),
            make_tx("MYSTERY", category_id="uncat"),
        ]
    )
    result = recategorize(store, categories)
    assert (result.processed, result.updated, result.conflicts) == (3, 1, 1)
    assert _by_desc(store) == {
        "STARBUCKS 0042": "dining",
        "STARBUCKS 0043": "groc",
        "AMAZON PRIME": "uncat",
        "MYSTERY": "uncat",
    }


def test_all_mode_skips_excluded_and_includes_unassigned(categories):
    store = InMemoryTransactionStore(
        [
            make_tx("COSTCO", category_id="excl"),
            make_tx("COSTCO #2", category_id="dining"),
            make_tx("ACME PAYROLL", out="0", in_="100"),
        ]
    )
    result = recategorize(store, categories, "all")
    assert result.processed == 2
    assert result.updated == 2
    assert _by_desc(store) == {"COSTCO": "excl", "COSTCO #2": "groc", "ACME PAYROLL": "income"}


def test_missing_uncategorized_category(categories):
    cats = [c for c in categories if c.name != "Uncategorized"]
    with pytest.raises(LookupError):
        recategorize(InMemoryTransactionStore(), cats)


def test_unknown_mode(categories):
    with pytest.raises(ValueError):
        recategorize(InMemoryTransactionStore(), categories, "everything")  # type: ignore[arg-type]


def test_in_memory_store_unknown_id():
    with pytest.raises(KeyError):
        InMemoryTransactionStore().set_category("nope", "x")
