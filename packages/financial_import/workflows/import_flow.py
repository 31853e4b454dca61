"""Workflow orchestrator for importing a batch of statement files.

Composes detection, parsing, duplicate marking and categorization behind a
single importable function. Storage is optional and lives with the caller
(see :func:`persist_batch` and the CLI ``import --persist`` command).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..categories import UNCATEGORIZED, find_system_category
from ..categorization import categorize, summarize
from ..duplicates import mark_duplicates
from ..ingest.adapters import parse_file
from ..ingest.detection import detect_bank_from_file
from ..logging_setup import get_logger
from ..models import (
    BANK_UNKNOWN,
    BankDetectionResult,
    Category,
    ImportBatchResult,
    StatementFile,
    Transaction,
)

_logger = get_logger("financial_import.workflows.import_flow")


def import_statements(
    files: Iterable[StatementFile],
    categories: Iterable[Category],
    *,
    existing_signatures: Iterable[str] = (),
) -> ImportBatchResult:
    """Detect, parse, duplicate-mark and categorize a batch of statement files.

    Parameters
    ----------
    files:
        Statement files processed sequentially in the given order. A file's
        ``bank_type`` forces the parser; otherwise the detector decides.
    categories:
        Category snapshot used for keyword matching.
    existing_signatures:
        Signatures of transactions already stored; matching rows are flagged
        ``is_duplicate``.

    Returns
    -------
    ImportBatchResult
        Transactions from all files in file order, error strings prefixed with
        the file name, the categorization summary and the detection result per
        file name. Files detected as ``UNKNOWN`` contribute one error and no
        transactions.
    """

    snapshot = list(categories)
    signatures = set(existing_signatures)

    parsed: list[Transaction] = []
    errors: list[str] = []
    detections: dict[str, BankDetectionResult] = {}

    for f in files:
        if f.bank_type is not None:
            detection = BankDetectionResult(f.bank_type, "high", "Bank type selected by caller")
        else:
            detection = detect_bank_from_file(f.data, f.name)
        detections[f.name] = detection

        if detection.bank_type == BANK_UNKNOWN:
            _logger.info("Skipping %s: %s", f.name, detection.reason)
            errors.append(f"{f.name}: {detection.reason}")
            continue

        result = parse_file(f.data, f.name, detection.bank_type)
        parsed.extend(result.transactions)
        errors.extend(f"{f.name}: {e}" for e in result.errors)

    marked = mark_duplicates(parsed, signatures)
    categorized = categorize(marked, snapshot)
    return ImportBatchResult(
        transactions=categorized,
        errors=errors,
        summary=summarize(categorized),
        detections=detections,
    )


@dataclass(frozen=True, slots=True)
class PersistSummary:
    import_ids: dict[str, int]
    added: int
    skipped: int


def persist_batch(
    session: Session,
    files: Iterable[StatementFile],
    categories: Iterable[Category],
) -> tuple[ImportBatchResult, PersistSummary]:
    """Import ``files`` one at a time and store the results.

    Each file is checked against the signatures stored so far (including rows
    written for earlier files of the same batch), so a statement uploaded
    twice in one call is stored once. One ``fi_imports`` row is recorded per
    file that produced new transactions. Unassigned rows, including unresolved
    conflicts, land in ``Uncategorized``.
    """

    # Local import keeps the pure workflow importable without the DB models.
    from ..persistence import (
        add_transactions_bulk,
        existing_signatures,
        record_import,
        update_import_count,
    )

    snapshot = list(categories)
    uncategorized = find_system_category(snapshot, UNCATEGORIZED)
    default_id = uncategorized.id if uncategorized else None

    transactions: list[Transaction] = []
    errors: list[str] = []
    detections: dict[str, BankDetectionResult] = {}
    import_ids: dict[str, int] = {}
    added = skipped = 0

    for f in files:
        one = import_statements([f], snapshot, existing_signatures=existing_signatures(session))
        transactions.extend(one.transactions)
        errors.extend(one.errors)
        detections.update(one.detections)

        fresh = [tx for tx in one.transactions if not tx.is_duplicate]
        skipped += len(one.transactions) - len(fresh)
        if not fresh:
            continue
        import_id = record_import(
            session,
            file_name=f.name,
            bank_type=one.detections[f.name].bank_type,
            transaction_count=len(fresh),
        )
        res = add_transactions_bulk(
            session, fresh, import_id=import_id, default_category_id=default_id
        )
        if res.skipped:
            update_import_count(session, import_id, res.added)
        import_ids[f.name] = import_id
        added += res.added
        skipped += res.skipped

    batch = ImportBatchResult(
        transactions=transactions,
        errors=errors,
        summary=summarize(transactions),
        detections=detections,
    )
    return batch, PersistSummary(import_ids=import_ids, added=added, skipped=skipped)


__all__ = ["PersistSummary", "import_statements", "persist_batch"]
