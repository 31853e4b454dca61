"""High-level workflows composing ingest, duplicate checks and categorization."""

from .import_flow import PersistSummary, import_statements, persist_batch

__all__ = ["PersistSummary", "import_statements", "persist_batch"]
