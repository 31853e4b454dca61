"""Row loading shared by the detector, the statement adapters and the CLI.

Statement files reach the engine as raw bytes. This module decodes them into
rows of cells:

- Spreadsheets (``.xlsx``/``.xlsm``) are read with :mod:`openpyxl`; only the
  first sheet is used. Blank rows are kept so fixed row offsets (AMEX data
  starts at row 13) stay meaningful; the other rows share the width of the
  widest row.
- Everything else is treated as comma-separated text and read with the stdlib
  :mod:`csv` module. Blank lines are skipped.

Failures raise :class:`StatementReadError`; adapters convert it into a single
file-level error string.
"""

from __future__ import annotations

import csv
import io
import zipfile
from collections.abc import Sequence
from pathlib import PurePath
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..logging_setup import get_logger

SPREADSHEET_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xlsm"})

type Row = Sequence[Any]
type Rows = list[list[Any]]

_logger = get_logger("financial_import.ingest.utils")


class StatementReadError(ValueError):
    """Raised when a statement file cannot be decoded into rows."""


def is_spreadsheet(filename: str) -> bool:
    return PurePath(filename).suffix.lower() in SPREADSHEET_EXTENSIONS


def _decode_text(data: bytes) -> str:
    # Bank exports are usually UTF-8 (sometimes with a BOM); older ones cp1252.
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise StatementReadError("could not decode file as UTF-8 or cp1252 text")


def read_csv_rows(text: str) -> Rows:
    """Parse CSV text into rows, dropping blank lines."""

    try:
        rows = [row for row in csv.reader(io.StringIO(text, newline="")) if row]
    except csv.Error as exc:
        raise StatementReadError(f"CSV parsing error: {exc}") from exc
    # A line of only separators (",,,") is blank too.
    return [row for row in rows if any(cell.strip() for cell in row)]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _trim_trailing(values: Sequence[Any]) -> list[Any]:
    out = list(values)
    while out and _is_blank(out[-1]):
        out.pop()
    return out


def read_spreadsheet_rows(data: bytes) -> Rows:
    """Read the first worksheet of an ``.xlsx`` workbook into rows.

    Blank rows come back as ``[]`` so row offsets match the sheet. Other rows
    are padded with ``None`` to the width of the widest row, so an empty last
    column (a CIBC charge has no Money In) still counts as a cell.
    """

    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise StatementReadError(f"could not open spreadsheet: {exc}") from exc
    try:
        if not wb.sheetnames:
            raise StatementReadError("workbook contains no sheets")
        ws = wb[wb.sheetnames[0]]
        rows = [_trim_trailing(values) for values in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    width = max((len(r) for r in rows), default=0)
    return [r + [None] * (width - len(r)) if r else r for r in rows]


def load_rows(data: bytes, filename: str) -> Rows:
    """Decode ``data`` into rows, choosing the container by ``filename`` extension."""

    if is_spreadsheet(filename):
        rows = read_spreadsheet_rows(data)
    else:
        rows = read_csv_rows(_decode_text(data))
    _logger.debug("Loaded %d row(s) from %s", len(rows), filename)
    return rows


__all__ = [
    "Row",
    "Rows",
    "SPREADSHEET_EXTENSIONS",
    "StatementReadError",
    "is_spreadsheet",
    "load_rows",
    "read_csv_rows",
    "read_spreadsheet_rows",
]
