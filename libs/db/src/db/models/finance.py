from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: fi_categories
# ---------------------------


class FiCategory(Base):
    __tablename__ = "fi_categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    # Ordered list of keyword strings; matching is case-insensitive substring.
    keywords: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # System categories (Uncategorized/Excluded/Income) cannot be deleted.
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.false()
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Batches: fi_imports
# ---------------------------


class FiImport(Base):
    __tablename__ = "fi_imports"

    # BIGINT on Postgres; INTEGER on SQLite so the rowid autoincrements.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    bank_type: Mapped[str] = mapped_column(String(16), nullable=False)
    transaction_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Core: fi_transactions
# ---------------------------


class FiTransaction(Base):
    __tablename__ = "fi_transactions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    match_field: Mapped[str] = mapped_column(Text, nullable=False)
    amount_out: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    amount_in: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("fi_categories.id", ondelete="SET NULL"), nullable=True
    )
    is_conflict: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.false()
    )
    conflicting_categories: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)
    import_id: Mapped[int | None] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("fi_imports.id", ondelete="CASCADE"),
        nullable=True,
    )
    # "YYYY-MM-DD|description|amount_out|amount_in"; see financial_import.duplicates
    signature: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("source in ('CIBC','AMEX')", name="ck_fi_tx_source"),
        CheckConstraint("amount_out >= 0 AND amount_in >= 0", name="ck_fi_tx_amounts"),
        Index("ix_fi_tx_signature", "signature"),
        Index("ix_fi_tx_category_id", "category_id"),
        Index("ix_fi_tx_date", "date"),
    )


__all__ = [
    "Base",
    "FiCategory",
    "FiImport",
    "FiTransaction",
]
