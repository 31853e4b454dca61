"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the statement-import models used by ``financial_import``.
"""

from .finance import Base, FiCategory, FiImport, FiTransaction

__all__ = [
    "Base",
    "FiCategory",
    "FiImport",
    "FiTransaction",
]
