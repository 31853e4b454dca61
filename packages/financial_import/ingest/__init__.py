"""Statement ingestion: row loading, bank detection and per-bank adapters."""

from .adapters import parse_file
from .detection import (
    detect_bank,
    detect_bank_from_file,
    detect_bank_from_filename,
    validate_file,
    validate_rows,
)
from .utils import StatementReadError, load_rows

__all__ = [
    "StatementReadError",
    "detect_bank",
    "detect_bank_from_file",
    "detect_bank_from_filename",
    "load_rows",
    "parse_file",
    "validate_file",
    "validate_rows",
]
