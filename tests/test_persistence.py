from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from db.client import session_scope

from financial_import.duplicates import transaction_signature
from financial_import.persistence import (
    SqlTransactionStore,
    add_transactions_bulk,
    delete_import,
    existing_signatures,
    load_categories,
    load_transactions,
    record_import,
    seed_default_categories,
)
from financial_import.recategorize import recategorize

from tests.helpers.db import add_category, bootstrap_sqlite_db, seed_categories
from tests.helpers.factories import make_tx


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "fi.db")


def test_seed_default_categories_then_only_missing_system(db_url: str):
    with session_scope(database_url=db_url) as session:
        assert seed_default_categories(session) == 10
    with session_scope(database_url=db_url) as session:
        assert seed_default_categories(session) == 0
        cats = load_categories(session)
    assert [c.name for c in cats[:3]] == ["Uncategorized", "Excluded", "Income"]
    income = next(c for c in cats if c.name == "Income")
    assert income.is_system and "PAYROLL" in income.keywords


def test_seed_restores_missing_system_category(db_url: str):
    add_category(database_url=db_url, name="Coffee", keywords=["TIM"], sort_order=4)
    with session_scope(database_url=db_url) as session:
        assert seed_default_categories(session) == 3
        names = [c.name for c in load_categories(session)]
    assert names == ["Coffee", "Uncategorized", "Excluded", "Income"]


def test_bulk_insert_skips_duplicates_and_defaults_category(db_url: str):
    ids = seed_categories(database_url=db_url)
    a = make_tx("TIM HORTONS", category_id=ids["Dining & Restaurants"])
    b = make_tx("MYSTERY SHOP", out="10.00")
    with session_scope(database_url=db_url) as session:
        res = add_transactions_bulk(
            session, [a, b], default_category_id=ids["Uncategorized"]
        )
    assert (res.added, res.skipped) == (2, 0)

    with session_scope(database_url=db_url) as session:
        res = add_transactions_bulk(session, [make_tx("TIM HORTONS"), make_tx("NEW")])
        assert (res.added, res.skipped) == (1, 1)
        sigs = existing_signatures(session)
        stored = {t.description: t for t in load_transactions(session)}

    assert transaction_signature(a) in sigs
    assert stored["MYSTERY SHOP"].category_id == ids["Uncategorized"]
    assert stored["TIM HORTONS"].amount_out == Decimal("4.50")
    assert stored["TIM HORTONS"].date == date(2024, 1, 15)


def test_bulk_insert_keeps_identical_rows_from_one_statement(db_url: str):
    first, second = make_tx("TIM HORTONS"), make_tx("TIM HORTONS")
    with session_scope(database_url=db_url) as session:
        res = add_transactions_bulk(session, [first, second])
    assert (res.added, res.skipped) == (2, 0)

    with session_scope(database_url=db_url) as session:
        stored = load_transactions(session)
        assert existing_signatures(session) == {transaction_signature(first)}
    assert sorted(t.id for t in stored) == sorted([first.id, second.id])


def test_conflict_provenance_round_trips(db_url: str):
    seed_categories(database_url=db_url)
    tx = make_tx("AMAZON PRIME", is_conflict=True, conflicting_categories=("a", "b"))
    with session_scope(database_url=db_url) as session:
        add_transactions_bulk(session, [tx])
    with session_scope(database_url=db_url) as session:
        [back] = load_transactions(session)
    assert back.is_conflict
    assert back.conflicting_categories == ("a", "b")


def test_delete_import_removes_its_transactions(db_url: str):
    with session_scope(database_url=db_url) as session:
        keep = record_import(session, file_name="a.csv", bank_type="CIBC", transaction_count=1)
        drop = record_import(session, file_name="b.csv", bank_type="CIBC", transaction_count=2)
        add_transactions_bulk(session, [make_tx("KEEP")], import_id=keep)
        add_transactions_bulk(session, [make_tx("X"), make_tx("Y")], import_id=drop)

    with session_scope(database_url=db_url) as session:
        assert delete_import(session, drop) == 2
    with session_scope(database_url=db_url) as session:
        assert [t.description for t in load_transactions(session)] == ["KEEP"]
        with pytest.raises(KeyError):
            delete_import(session, drop)


def test_sql_store_recategorize(db_url: str):
    ids = seed_categories(database_url=db_url)
    with session_scope(database_url=db_url) as session:
        add_transactions_bulk(
            session,
            [
                make_tx("STARBUCKS 0042"),
                make_tx("COSTCO WHOLESALE", category_id=ids["Excluded"]),
                make_tx("AMAZON PRIME VIDEO"),
            ],
            default_category_id=ids["Uncategorized"],
        )

    with session_scope(database_url=db_url) as session:
        result = recategorize(SqlTransactionStore(session), load_categories(session))
    # AMAZON PRIME matches both Subscriptions and Shopping
    assert (result.processed, result.updated, result.conflicts) == (2, 1, 1)

    with session_scope(database_url=db_url) as session:
        stored = {t.description: t.category_id for t in load_transactions(session)}
    assert stored["STARBUCKS 0042"] == ids["Dining & Restaurants"]
    assert stored["COSTCO WHOLESALE"] == ids["Excluded"]
    assert stored["AMAZON PRIME VIDEO"] == ids["Uncategorized"]

    with session_scope(database_url=db_url) as session:
        result = recategorize(SqlTransactionStore(session), load_categories(session), "all")
    assert result.processed == 2
