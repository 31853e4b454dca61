from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from financial_import.cli import app

from tests.helpers.db import stored_transactions
from tests.helpers.factories import amex_charge, amex_header, amex_payment, csv_bytes, xlsx_bytes

runner = CliRunner()

CIBC_LINES = [
    "01/15/2024,TIM HORTONS #123,4.50,",
    "01/16/2024,LOBLAWS 1001,82.10,",
    "01/17/2024,AMAZON PRIME*XY12,9.99,",
    "01/18/2024,ACME PAYROLL,,2000.00",
]


def _write(tmp_path: Path, name: str, data: bytes) -> Path:
    p = tmp_path / name
    p.write_bytes(data)
    return p


def test_detect_cibc(tmp_path: Path):
    p = _write(tmp_path, "statement.csv", csv_bytes(CIBC_LINES))
    result = runner.invoke(app, ["detect", str(p)])
    assert result.exit_code == 0
    assert result.output.startswith("CIBC\thigh\t")


def test_detect_unknown_exits_nonzero(tmp_path: Path):
    p = _write(tmp_path, "people.csv", csv_bytes(["name,email,phone,city"]))
    result = runner.invoke(app, ["detect", str(p)])
    assert result.exit_code == 1
    assert "UNKNOWN" in result.output


def test_detect_missing_file(tmp_path: Path):
    result = runner.invoke(app, ["detect", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_parse_prints_rows_and_errors(tmp_path: Path):
    p = _write(tmp_path, "s.csv", csv_bytes([*CIBC_LINES, "13/45/2024,BROKEN,1.00,"]))
    result = runner.invoke(app, ["parse", str(p), "--bank", "cibc"])
    assert result.exit_code == 0
    assert "2024-01-15\tTIM HORTONS #123\t4.50\t0.00\t-4.50\tCIBC" in result.output
    assert 'Row 5: Invalid date format "13/45/2024"' in result.output


def test_parse_rejects_unknown_bank_option(tmp_path: Path):
    p = _write(tmp_path, "s.csv", csv_bytes(CIBC_LINES))
    result = runner.invoke(app, ["parse", str(p), "--bank", "td"])
    assert result.exit_code != 0


def test_validate_amex_csv_is_rejected(tmp_path: Path):
    p = _write(tmp_path, "Summary.csv", csv_bytes(CIBC_LINES))
    result = runner.invoke(app, ["validate", str(p), "--bank", "amex"])
    assert result.exit_code == 1
    assert "Excel format" in result.output


def test_validate_requires_a_known_bank(tmp_path: Path):
    p = _write(tmp_path, "cibc.csv", csv_bytes(CIBC_LINES))
    result = runner.invoke(app, ["validate", str(p), "--bank", "td"])
    assert result.exit_code == 2
    result = runner.invoke(app, ["validate", str(p)])
    assert result.exit_code == 2

    result = runner.invoke(app, ["validate", str(p), "--bank", "CIBC"])
    assert result.exit_code == 0, result.output
    assert "valid CIBC file" in result.output


def test_import_in_memory_uses_seed_categories(tmp_path: Path):
    cibc = _write(tmp_path, "cibc.csv", csv_bytes(CIBC_LINES))
    amex = _write(
        tmp_path,
        "Summary.xlsx",
        xlsx_bytes(
            [
                *amex_header(),
                amex_charge("16 Dec. 2025", "STARBUCKS", "$5.25"),
                amex_payment("18 Dec. 2025", "-$300.00", "PAYMENT RECEIVED - THANK YOU"),
            ]
        ),
    )
    result = runner.invoke(app, ["import", str(cibc), str(amex)])
    assert result.exit_code == 0, result.output
    assert "TIM HORTONS #123\t4.50\t0.00\t-4.50\tCIBC\tDining & Restaurants" in result.output
    assert "CONFLICT: Subscriptions, Shopping" in result.output
    assert "total=6 categorized=4 conflicts=1 unassigned=1 duplicates=0" in result.output


def test_seed_import_persist_and_recategorize(tmp_path: Path):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"

    result = runner.invoke(app, ["seed-categories", "--database-url", db_url])
    assert result.exit_code == 0, result.output
    assert "created=10" in result.output

    p = _write(tmp_path, "cibc.csv", csv_bytes(CIBC_LINES))
    args = ["import", str(p), "--persist", "--database-url", db_url]
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    assert "stored=4 skipped=0" in result.output

    # Same file again: everything is a duplicate of stored rows
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    assert "duplicates=4" in result.output
    assert "stored=0 skipped=4" in result.output
    assert len(stored_transactions(database_url=db_url)) == 4

    result = runner.invoke(app, ["recategorize", "--database-url", db_url])
    assert result.exit_code == 0, result.output
    # Only the AMAZON PRIME conflict sits in Uncategorized
    assert "processed=1 updated=0 conflicts=1" in result.output

    result = runner.invoke(app, ["recategorize", "--mode", "bogus", "--database-url", db_url])
    assert result.exit_code == 1


def test_recategorize_without_seed_reports_error(tmp_path: Path):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'empty.db'}"
    from db.client import create_schema

    create_schema(database_url=db_url)
    result = runner.invoke(app, ["recategorize", "--database-url", db_url])
    assert result.exit_code == 1
    assert "Uncategorized category not found" in result.output


def test_delete_import(tmp_path: Path):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'del.db'}"
    runner.invoke(app, ["seed-categories", "--database-url", db_url])
    p = _write(tmp_path, "cibc.csv", csv_bytes(CIBC_LINES))
    runner.invoke(app, ["import", str(p), "--persist", "--database-url", db_url])

    result = runner.invoke(app, ["delete-import", "1", "--database-url", db_url])
    assert result.exit_code == 0, result.output
    assert "deleted=4" in result.output
    assert stored_transactions(database_url=db_url) == []

    result = runner.invoke(app, ["delete-import", "1", "--database-url", db_url])
    assert result.exit_code == 1
