# ruff: noqa: I001
"""Persistence integration for financial_import.

Functions here read categories from and write transactions to the shared
database owned by ``libs/db``. They rely on SQLAlchemy ORM models defined in
``db.models.finance`` and a session provided by ``db.client``. Callers own the
transaction scope (``session_scope`` commits on exit).

Scope:
- Category snapshot loading and default seeding (``fi_categories``).
- Bulk transaction insert with signature-based duplicate skipping
  (``fi_transactions``).
- Import batch bookkeeping (``fi_imports``).
- :class:`SqlTransactionStore`, the SQL implementation of the
  recategorization store.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from db.models.finance import FiCategory, FiImport, FiTransaction
from .categories import DEFAULT_CATEGORY_DEFS, SYSTEM_CATEGORY_DEFS, CategoryDef
from .duplicates import filter_new, transaction_signature
from .logging_setup import get_logger
from .models import BankType, Category, Transaction

_logger = get_logger("financial_import.persistence")


@dataclass(frozen=True, slots=True)
class BulkInsertResult:
    added: int
    skipped: int


# ---------------------------
# Categories
# ---------------------------


def _row_to_category(row: FiCategory) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        keywords=tuple(row.keywords or ()),
        is_system=bool(row.is_system),
        order=row.sort_order or 0,
    )


def load_categories(session: Session) -> list[Category]:
    """Return the category snapshot ordered by ``sort_order`` then ``name``."""

    rows = (
        session.execute(select(FiCategory).order_by(FiCategory.sort_order, FiCategory.name))
        .scalars()
        .all()
    )
    return [_row_to_category(r) for r in rows]


def _add_category(session: Session, cdef: CategoryDef, order: int) -> None:
    session.add(
        FiCategory(
            id=uuid.uuid4().hex,
            name=cdef["name"],
            keywords=list(cdef["keywords"]),
            is_system=cdef["is_system"],
            sort_order=order,
        )
    )


def seed_default_categories(session: Session) -> int:
    """Seed categories and return how many rows were created.

    An empty table receives the system categories followed by the defaults.
    Otherwise only missing system categories are added, after the current
    highest ``sort_order``.
    """

    existing = {
        name.lower()
        for name in session.execute(select(FiCategory.name)).scalars().all()
    }
    created = 0
    if not existing:
        for order, cdef in enumerate((*SYSTEM_CATEGORY_DEFS, *DEFAULT_CATEGORY_DEFS)):
            _add_category(session, cdef, order)
            created += 1
    else:
        max_order = session.execute(select(func.max(FiCategory.sort_order))).scalar_one() or 0
        for cdef in SYSTEM_CATEGORY_DEFS:
            if cdef["name"].lower() in existing:
                continue
            max_order += 1
            _add_category(session, cdef, max_order)
            created += 1
    session.flush()
    _logger.info("Seeded %d categor%s", created, "y" if created == 1 else "ies")
    return created


# ---------------------------
# Transactions
# ---------------------------


def _row_to_transaction(row: FiTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        date=row.date,
        description=row.description,
        match_field=row.match_field,
        amount_out=row.amount_out,
        amount_in=row.amount_in,
        net_amount=row.net_amount,
        source=row.source,  # type: ignore[arg-type]
        category_id=row.category_id,
        is_conflict=bool(row.is_conflict),
        conflicting_categories=(
            tuple(row.conflicting_categories) if row.conflicting_categories else None
        ),
    )


def load_transactions(session: Session) -> list[Transaction]:
    """Return all stored transactions ordered by date (newest first)."""

    rows = (
        session.execute(
            select(FiTransaction).order_by(FiTransaction.date.desc(), FiTransaction.id)
        )
        .scalars()
        .all()
    )
    return [_row_to_transaction(r) for r in rows]


def existing_signatures(session: Session) -> set[str]:
    """Signatures of every stored transaction (loaded once per import call)."""

    return set(session.execute(select(FiTransaction.signature)).scalars().all())


def add_transactions_bulk(
    session: Session,
    transactions: Iterable[Transaction],
    *,
    import_id: int | None = None,
    skip_duplicates: bool = True,
    default_category_id: str | None = None,
) -> BulkInsertResult:
    """Insert ``transactions`` into ``fi_transactions``.

    Parameters
    ----------
    import_id:
        Optional ``fi_imports`` batch the rows belong to.
    skip_duplicates:
        When ``True`` (default), rows whose signature is already stored are
        skipped. Identical rows within ``transactions`` are all inserted.
    default_category_id:
        Category for rows with no ``category_id`` (normally ``Uncategorized``).
    """

    items = list(transactions)
    if skip_duplicates:
        items, skipped = filter_new(items, existing_signatures(session))
    else:
        skipped = 0

    for tx in items:
        session.add(
            FiTransaction(
                id=tx.id,
                date=tx.date,
                description=tx.description,
                match_field=tx.match_field,
                amount_out=tx.amount_out,
                amount_in=tx.amount_in,
                net_amount=tx.net_amount,
                source=tx.source,
                category_id=tx.category_id or default_category_id,
                is_conflict=tx.is_conflict,
                conflicting_categories=(
                    list(tx.conflicting_categories) if tx.conflicting_categories else None
                ),
                import_id=import_id,
                signature=transaction_signature(tx),
            )
        )
    session.flush()
    _logger.info("Stored %d transaction(s), skipped %d duplicate(s)", len(items), skipped)
    return BulkInsertResult(added=len(items), skipped=skipped)


# ---------------------------
# Import batches
# ---------------------------


def record_import(
    session: Session, *, file_name: str, bank_type: BankType, transaction_count: int
) -> int:
    """Insert an ``fi_imports`` row and return its id."""

    row = FiImport(file_name=file_name, bank_type=bank_type, transaction_count=transaction_count)
    session.add(row)
    session.flush()
    return row.id


def update_import_count(session: Session, import_id: int, transaction_count: int) -> None:
    session.execute(
        update(FiImport)
        .where(FiImport.id == import_id)
        .values(transaction_count=transaction_count)
    )


def delete_import(session: Session, import_id: int) -> int:
    """Delete an import batch and its transactions; return the transaction count.

    Raises ``KeyError`` when the batch does not exist.
    """

    if session.get(FiImport, import_id) is None:
        raise KeyError(import_id)
    result = session.execute(delete(FiTransaction).where(FiTransaction.import_id == import_id))
    session.execute(delete(FiImport).where(FiImport.id == import_id))
    session.flush()
    return result.rowcount or 0


# ---------------------------
# Recategorization store
# ---------------------------


class SqlTransactionStore:
    """:class:`~financial_import.recategorize.TransactionStore` over ``fi_transactions``.

    Each :meth:`set_category` issues its own ``UPDATE``; committing is left to
    the enclosing ``session_scope``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def transactions_in_category(self, category_id: str) -> list[Transaction]:
        rows = (
            self.session.execute(
                select(FiTransaction).where(FiTransaction.category_id == category_id)
            )
            .scalars()
            .all()
        )
        return [_row_to_transaction(r) for r in rows]

    def transactions_not_in_category(self, category_id: str | None) -> list[Transaction]:
        stmt = select(FiTransaction)
        if category_id is not None:
            stmt = stmt.where(
                or_(FiTransaction.category_id.is_(None), FiTransaction.category_id != category_id)
            )
        return [_row_to_transaction(r) for r in self.session.execute(stmt).scalars().all()]

    def set_category(self, transaction_id: str, category_id: str) -> None:
        self.session.execute(
            update(FiTransaction)
            .where(FiTransaction.id == transaction_id)
            .values(category_id=category_id)
        )


__all__ = [
    "BulkInsertResult",
    "SqlTransactionStore",
    "add_transactions_bulk",
    "delete_import",
    "existing_signatures",
    "load_categories",
    "load_transactions",
    "record_import",
    "seed_default_categories",
    "update_import_count",
]
