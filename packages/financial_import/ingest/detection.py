"""Content-based bank format detection and pre-parse validation.

Statement files are frequently renamed, so the primary signal is the file's
structure: every known format defines a fingerprint that a data row either
satisfies or not, and the share of matching rows maps to a confidence level.

Formats are evaluated in a fixed priority order (AMEX, then CIBC). Fingerprints
are not mutually exclusive, so that order is part of the contract: the first
format with confidence above ``none`` wins. Filename patterns are consulted
only as a fallback hint when no fingerprint matches.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..logging_setup import get_logger
from ..models import (
    BANK_AMEX,
    BANK_CIBC,
    BANK_UNKNOWN,
    BankDetectionResult,
    BankType,
    DetectionConfidence,
    ValidationResult,
)
from ..normalizers import cell_date, cell_text, is_amex_date, is_cibc_date
from .utils import StatementReadError, is_spreadsheet, load_rows

_logger = get_logger("financial_import.ingest.detection")

# AMEX exports carry 11 metadata rows and a header row before the data.
AMEX_DATA_OFFSET = 12
MIN_EVALUABLE_CELLS = 4
VALIDATION_SAMPLE = 10

# (minimum ratio, confidence) checked top to bottom
_CONFIDENCE_THRESHOLDS: tuple[tuple[float, DetectionConfidence], ...] = (
    (0.8, "high"),
    (0.5, "medium"),
    (0.2, "low"),
)

FILENAME_PATTERNS: tuple[tuple[BankType, re.Pattern[str]], ...] = (
    (BANK_CIBC, re.compile(r"cibc", re.IGNORECASE)),
    (BANK_AMEX, re.compile(r"^summary|amex", re.IGNORECASE)),
)


def confidence_for_ratio(ratio: float) -> DetectionConfidence:
    for threshold, level in _CONFIDENCE_THRESHOLDS:
        if ratio >= threshold:
            return level
    return "none"


def _cell(row: Sequence[Any], i: int) -> str:
    return cell_text(row[i]) if i < len(row) else ""


def _has_date(row: Sequence[Any], predicate: Callable[[str], bool]) -> bool:
    if not row:
        return False
    return cell_date(row[0]) is not None or predicate(cell_text(row[0]))


# ---------------------------------------------------------------------------
# Fingerprints
# ---------------------------------------------------------------------------


def _amex_row_matches(row: Sequence[Any]) -> bool:
    amount = _cell(row, 3) or _cell(row, 2)
    return _has_date(row, is_amex_date) and ("$" in amount or len(row) > 6)


def _cibc_row_matches(row: Sequence[Any]) -> bool:
    return (
        _has_date(row, is_cibc_date)
        and "$" not in _cell(row, 2)
        and "$" not in _cell(row, 3)
        and MIN_EVALUABLE_CELLS <= len(row) <= 6
        and bool(_cell(row, 1))
    )


@dataclass(frozen=True, slots=True)
class _Fingerprint:
    bank_type: BankType
    data_offset: int
    row_matches: Callable[[Sequence[Any]], bool]
    description: str


# Priority order: AMEX is checked before CIBC.
FINGERPRINTS: tuple[_Fingerprint, ...] = (
    _Fingerprint(BANK_AMEX, AMEX_DATA_OFFSET, _amex_row_matches, "date format, column structure"),
    _Fingerprint(BANK_CIBC, 0, _cibc_row_matches, "date format, 4 columns"),
)


def _score(fp: _Fingerprint, rows: Sequence[Sequence[Any]]) -> BankDetectionResult:
    if len(rows) <= fp.data_offset:
        return BankDetectionResult(fp.bank_type, "none", "")

    matching = 0
    evaluable = 0
    for row in rows[fp.data_offset :]:
        if not row or len(row) < MIN_EVALUABLE_CELLS:
            continue
        evaluable += 1
        if fp.row_matches(row):
            matching += 1

    if evaluable == 0:
        return BankDetectionResult(fp.bank_type, "none", "")

    confidence = confidence_for_ratio(matching / evaluable)
    reason = {
        "high": f"File structure matches {fp.bank_type} format ({fp.description})",
        "medium": f"File partially matches {fp.bank_type} format",
        "low": f"File may be {fp.bank_type} format",
        "none": "",
    }[confidence]
    return BankDetectionResult(fp.bank_type, confidence, reason)


def score_formats(rows: Sequence[Sequence[Any]]) -> list[BankDetectionResult]:
    """Score ``rows`` against every known format, in priority order."""

    return [_score(fp, rows) for fp in FINGERPRINTS]


def detect_bank(rows: Sequence[Sequence[Any]]) -> BankDetectionResult:
    """Return the first format (in priority order) with confidence above ``none``."""

    if not rows:
        return BankDetectionResult(BANK_UNKNOWN, "none", "File is empty")

    for result in score_formats(rows):
        if result.confidence != "none":
            _logger.debug(
                "Detected %s (%s): %s", result.bank_type, result.confidence, result.reason
            )
            return result

    return BankDetectionResult(
        BANK_UNKNOWN, "none", "Could not determine bank type from file contents"
    )


def detect_bank_from_filename(filename: str) -> BankType:
    """Quick hint from the file name; never the primary signal."""

    name = filename.rsplit("/", 1)[-1]
    for bank_type, pattern in FILENAME_PATTERNS:
        if pattern.search(name):
            return bank_type
    return BANK_UNKNOWN


def detect_bank_from_file(data: bytes, filename: str) -> BankDetectionResult:
    """Load ``data`` and detect its format, falling back to a filename hint."""

    try:
        rows = load_rows(data, filename)
    except StatementReadError as exc:
        return BankDetectionResult(BANK_UNKNOWN, "none", f"Error reading file: {exc}")

    result = detect_bank(rows)
    if result.bank_type != BANK_UNKNOWN or not rows:
        return result

    hinted = detect_bank_from_filename(filename)
    if hinted != BANK_UNKNOWN:
        return BankDetectionResult(hinted, "low", f"Filename suggests {hinted} format")
    return BankDetectionResult(
        BANK_UNKNOWN, "none", "Could not determine bank type from file contents or filename"
    )


# ---------------------------------------------------------------------------
# Validation (user-facing feedback before parsing)
# ---------------------------------------------------------------------------


def _validate_amex(rows: Sequence[Sequence[Any]], spreadsheet: bool) -> ValidationResult:
    if not spreadsheet:
        return ValidationResult(False, ("AMEX files must be in Excel format (.xlsx)",))
    if len(rows) <= AMEX_DATA_OFFSET:
        return ValidationResult(
            False,
            ("File doesn't have enough rows. AMEX files should have data starting at row 13.",),
        )

    data_rows = rows[AMEX_DATA_OFFSET:]
    errors: list[str] = []
    warnings: list[str] = []
    checked = 0
    bad_dates = 0
    missing_amounts = 0
    for row in data_rows[:VALIDATION_SAMPLE]:
        if not row or len(row) < 3:
            continue
        checked += 1
        if not _has_date(row, is_amex_date):
            bad_dates += 1
        if not (_cell(row, 3) or _cell(row, 2)):
            missing_amounts += 1

    if checked == 0:
        return ValidationResult(False, ("No valid transaction rows found",))
    if bad_dates > checked / 2:
        errors.append(
            "Date format doesn't match AMEX format (expected: DD Mon. YYYY, e.g., '16 Dec. 2025')"
        )
    if missing_amounts > checked / 2:
        warnings.append("Some rows are missing amount values")

    first = next((r for r in data_rows if r), None)
    if first is not None and len(first) < MIN_EVALUABLE_CELLS:
        errors.append(f"Expected at least 4 columns for AMEX, found {len(first)}")

    return ValidationResult(not errors, tuple(errors), tuple(warnings))


def _validate_cibc(rows: Sequence[Sequence[Any]]) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []
    checked = 0
    bad_dates = 0
    missing_descriptions = 0
    for i, row in enumerate(rows[:VALIDATION_SAMPLE]):
        if len(row) < MIN_EVALUABLE_CELLS:
            if row:
                errors.append(
                    f"Row {i + 1} has only {len(row)} columns, expected 4 "
                    "(Date, Description, Money Out, Money In)"
                )
            continue
        checked += 1
        if not _has_date(row, is_cibc_date):
            bad_dates += 1
        if not _cell(row, 1):
            missing_descriptions += 1

    if checked == 0:
        errors.append(
            "No valid rows found. CIBC files need 4 columns: Date, Description, Money Out, Money In"
        )
        return ValidationResult(False, tuple(errors))
    if bad_dates > checked / 2:
        errors.append("Date format doesn't match CIBC format (expected: MM/DD/YYYY or YYYY-MM-DD)")
    if missing_descriptions > checked / 2:
        warnings.append("Some rows are missing descriptions")

    return ValidationResult(not errors, tuple(errors), tuple(warnings))


def validate_rows(
    rows: Sequence[Sequence[Any]], bank_type: BankType, *, spreadsheet: bool
) -> ValidationResult:
    """Check that ``rows`` look parseable as ``bank_type``."""

    if bank_type == BANK_UNKNOWN:
        return ValidationResult(False, ("Please select a bank type",))
    if not rows:
        return ValidationResult(False, ("File is empty",))
    if bank_type == BANK_AMEX:
        return _validate_amex(rows, spreadsheet)
    return _validate_cibc(rows)


def validate_file(data: bytes, filename: str, bank_type: BankType) -> ValidationResult:
    try:
        rows = load_rows(data, filename)
    except StatementReadError as exc:
        return ValidationResult(False, (f"Error reading file: {exc}",))
    return validate_rows(rows, bank_type, spreadsheet=is_spreadsheet(filename))


__all__ = [
    "FINGERPRINTS",
    "confidence_for_ratio",
    "detect_bank",
    "detect_bank_from_file",
    "detect_bank_from_filename",
    "score_formats",
    "validate_file",
    "validate_rows",
]
