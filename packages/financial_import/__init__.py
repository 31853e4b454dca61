"""Public interface for the ``financial_import`` package.

Bank statement import and keyword categorization: detect the bank format of an
uploaded file, parse it into canonical transactions, flag duplicates of stored
rows and assign categories by keyword. This module only re-exports symbols.
"""

from .api import (
    InMemoryTransactionStore,
    TransactionStore,
    assign_category,
    categorize,
    detect_bank,
    detect_bank_from_file,
    import_statements,
    mark_duplicates,
    parse_file,
    recategorize,
    resolve_conflict,
    summarize,
    transaction_signature,
)
from .models import (
    BankDetectionResult,
    BankType,
    CategorizationSummary,
    Category,
    ImportBatchResult,
    ParseResult,
    RecategorizeResult,
    StatementFile,
    Transaction,
    ValidationResult,
)

__all__ = [
    # API
    "assign_category",
    "categorize",
    "detect_bank",
    "detect_bank_from_file",
    "import_statements",
    "mark_duplicates",
    "parse_file",
    "recategorize",
    "resolve_conflict",
    "summarize",
    "transaction_signature",
    "InMemoryTransactionStore",
    "TransactionStore",
    # Models / types
    "BankDetectionResult",
    "BankType",
    "CategorizationSummary",
    "Category",
    "ImportBatchResult",
    "ParseResult",
    "RecategorizeResult",
    "StatementFile",
    "Transaction",
    "ValidationResult",
]
