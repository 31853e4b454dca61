# ruff: noqa: I001
"""CLI for the ``financial_import`` package.

This module exposes callable command handlers (``cmd_detect``, ``cmd_parse``,
``cmd_import``, ...) returning process exit codes, and a Typer-based console
interface wrapping them. Environment variables (notably ``DATABASE_URL`` and
``FINANCIAL_IMPORT_LOG_LEVEL``) are loaded from a local ``.env`` using
``python-dotenv`` before delegating to command logic. Business logic lives in
``financial_import.api`` and related modules.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo

from .logging_setup import configure_logging
from .models import BANK_AMEX, BANK_CIBC, BANK_UNKNOWN, BankType, StatementFile, Transaction
from .normalizers import fmt_amount

_BANK_CHOICES: dict[str, BankType] = {"cibc": BANK_CIBC, "amex": BANK_AMEX}


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(msg: str) -> None:
    typer.echo(msg, err=True)


def _read_file(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        _err(f"Error: File not found: {path}")
    except PermissionError:
        _err(f"Error: Permission denied: {path}")
    except IsADirectoryError:
        _err(f"Error: Not a file: {path}")
    return None


def _resolve_bank(bank: str | None) -> BankType | None:
    if bank is None:
        return None
    try:
        return _BANK_CHOICES[bank.strip().lower()]
    except KeyError:
        raise typer.BadParameter(
            f"unknown bank {bank!r}; expected one of: {', '.join(sorted(_BANK_CHOICES))}"
        ) from None


def _format_row(tx: Transaction, category_names: dict[str, str] | None = None) -> str:
    cat = ""
    if tx.category_id:
        cat = (category_names or {}).get(tx.category_id, tx.category_id)
    elif tx.is_conflict:
        names = [(category_names or {}).get(c, c) for c in tx.conflicting_categories or ()]
        cat = "CONFLICT: " + ", ".join(names)
    flags = "duplicate" if tx.is_duplicate else ""
    return "\t".join(
        [
            tx.date.isoformat(),
            tx.description,
            fmt_amount(tx.amount_out),
            fmt_amount(tx.amount_in),
            fmt_amount(tx.net_amount),
            tx.source,
            cat,
            flags,
        ]
    ).rstrip("\t")


# ---- Command handlers --------------------------------------------------------


def cmd_detect(path: Path) -> int:
    """Print ``<bank>\\t<confidence>\\t<reason>``; exit 1 when the format is unknown."""

    from .ingest.detection import detect_bank_from_file

    data = _read_file(path)
    if data is None:
        return 1
    result = detect_bank_from_file(data, path.name)
    typer.echo(f"{result.bank_type}\t{result.confidence}\t{result.reason}")
    return 0 if result.bank_type != BANK_UNKNOWN else 1


def cmd_validate(path: Path, bank_type: BankType) -> int:
    from .ingest.detection import validate_file

    data = _read_file(path)
    if data is None:
        return 1
    result = validate_file(data, path.name, bank_type)
    for w in result.warnings:
        _err(f"Warning: {w}")
    for e in result.errors:
        _err(f"Error: {e}")
    if result.is_valid:
        typer.echo(f"{path.name}: looks like a valid {bank_type} file")
    return 0 if result.is_valid else 1


def cmd_parse(path: Path, bank_type: BankType | None = None) -> int:
    """Parse one file and print its transactions as tab-separated rows."""

    from .ingest.adapters import parse_file
    from .ingest.detection import detect_bank_from_file

    data = _read_file(path)
    if data is None:
        return 1
    if bank_type is None:
        detection = detect_bank_from_file(data, path.name)
        if detection.bank_type == BANK_UNKNOWN:
            _err(f"Error: {detection.reason}")
            return 1
        bank_type = detection.bank_type

    result = parse_file(data, path.name, bank_type)
    for tx in result.transactions:
        typer.echo(_format_row(tx))
    for e in result.errors:
        _err(f"Error: {e}")
    return 0 if result.transactions else 1


def cmd_import(
    paths: list[Path],
    *,
    bank_type: BankType | None = None,
    persist: bool = False,
    database_url: str | None = None,
) -> int:
    """Import statement files; print categorized rows and a summary line.

    Without ``persist`` the seed categories are used in memory and nothing is
    written. With ``persist`` the categories come from the database, duplicates
    are checked against stored rows and new transactions are stored.
    """

    from .categories import default_categories
    from .models import ImportBatchResult
    from .workflows.import_flow import import_statements, persist_batch

    files: list[StatementFile] = []
    for p in paths:
        data = _read_file(p)
        if data is None:
            return 1
        files.append(StatementFile(name=p.name, data=data, bank_type=bank_type))

    batch: ImportBatchResult
    if persist:
        try:
            from db.client import session_scope
            from .persistence import load_categories

            with session_scope(database_url=database_url) as session:
                categories = load_categories(session)
                if not categories:
                    _err("Error: no categories found; run `seed-categories` first")
                    return 1
                batch, stored = persist_batch(session, files, categories)
        except Exception as e:
            _err(f"Error: persistence failed: {e}")
            return 1
    else:
        categories = default_categories()
        batch = import_statements(files, categories)
        stored = None

    names = {c.id: c.name for c in categories}
    for tx in batch.transactions:
        typer.echo(_format_row(tx, names))
    for e in batch.errors:
        _err(f"Error: {e}")

    s = batch.summary
    line = (
        f"total={s.total} categorized={s.categorized} conflicts={s.conflicts} "
        f"unassigned={s.unassigned} duplicates={s.duplicates}"
    )
    if stored is not None:
        line += f" stored={stored.added} skipped={stored.skipped}"
    typer.echo(line)
    return 0 if batch.transactions or not batch.errors else 1


def cmd_recategorize(*, mode: str = "uncategorized", database_url: str | None = None) -> int:
    from db.client import session_scope
    from .persistence import SqlTransactionStore, load_categories
    from .recategorize import recategorize

    if mode not in ("uncategorized", "all"):
        _err(f"Error: unknown mode {mode!r}; expected 'uncategorized' or 'all'")
        return 1
    try:
        with session_scope(database_url=database_url) as session:
            store = SqlTransactionStore(session)
            result = recategorize(store, load_categories(session), mode)  # type: ignore[arg-type]
    except LookupError as e:
        _err(f"Error: {e}")
        return 1
    except Exception as e:
        _err(f"Error: recategorize failed: {e}")
        return 1
    typer.echo(
        f"processed={result.processed} updated={result.updated} conflicts={result.conflicts}"
    )
    return 0


def cmd_seed_categories(*, database_url: str | None = None) -> int:
    from db.client import create_schema, session_scope
    from .persistence import seed_default_categories

    try:
        create_schema(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            created = seed_default_categories(session)
    except Exception as e:
        _err(f"Error: seeding failed: {e}")
        return 1
    typer.echo(f"created={created}")
    return 0


def cmd_delete_import(import_id: int, *, database_url: str | None = None) -> int:
    from db.client import session_scope
    from .persistence import delete_import

    try:
        with session_scope(database_url=database_url) as session:
            deleted = delete_import(session, import_id)
    except KeyError:
        _err(f"Error: import not found: {import_id}")
        return 1
    except Exception as e:
        _err(f"Error: delete failed: {e}")
        return 1
    typer.echo(f"deleted={deleted}")
    return 0


# ---- Typer-based console interface -------------------------------------------


# Module-level argument objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer inspects these when used inside ``Annotated`` below.
FILE_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,  # required
    help="Statement file (.csv or .xlsx)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler reports nice errors
)
FILES_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,  # required
    help="One or more statement files (.csv or .xlsx)",
    dir_okay=False,
    file_okay=True,
    exists=False,
)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import CIBC and AMEX statement exports, detect duplicates and categorize "
        "transactions by keyword. Loads DATABASE_URL from a local .env."
    ),
)


@app.command("detect")
def detect_cmd(path: Annotated[Path, FILE_ARGUMENT]) -> None:
    """Detect the bank format of a statement file."""

    raise typer.Exit(cmd_detect(path))


@app.command("validate")
def validate_cmd(
    path: Annotated[Path, FILE_ARGUMENT],
    bank: str = typer.Option(..., "--bank", help="Bank format to validate against (cibc, amex)."),
) -> None:
    """Check that a file looks parseable as the given bank format."""

    bank_type = _resolve_bank(bank)
    if bank_type is None:
        raise typer.BadParameter("a bank format is required", param_hint="--bank")
    raise typer.Exit(cmd_validate(path, bank_type))


@app.command("parse")
def parse_cmd(
    path: Annotated[Path, FILE_ARGUMENT],
    bank: str | None = typer.Option(
        None, "--bank", help="Force the bank format (cibc or amex) instead of detecting it."
    ),
) -> None:
    """Parse a statement file and print its transactions."""

    raise typer.Exit(cmd_parse(path, _resolve_bank(bank)))


@app.command("import")
def import_cmd(
    paths: Annotated[list[Path], FILES_ARGUMENT],
    *,
    bank: str | None = typer.Option(
        None, "--bank", help="Force the bank format (cibc or amex) for every file."
    ),
    persist: bool = typer.Option(False, help="Store new transactions in the database."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Import statement files: detect, parse, flag duplicates and categorize."""

    raise typer.Exit(
        cmd_import(
            paths, bank_type=_resolve_bank(bank), persist=persist, database_url=database_url
        )
    )


@app.command("recategorize")
def recategorize_cmd(
    *,
    mode: str = typer.Option(
        "uncategorized", help="Scope: 'uncategorized' or 'all' (everything except Excluded)."
    ),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Re-run keyword matching over stored transactions."""

    raise typer.Exit(cmd_recategorize(mode=mode, database_url=database_url))


@app.command("seed-categories")
def seed_categories_cmd(
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create the schema if needed and seed system and default categories."""

    raise typer.Exit(cmd_seed_categories(database_url=database_url))


@app.command("delete-import")
def delete_import_cmd(
    import_id: int = typer.Argument(..., help="Import batch id."),
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Delete an import batch and its transactions."""

    raise typer.Exit(cmd_delete_import(import_id, database_url=database_url))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m financial_import.cli`
    app()
