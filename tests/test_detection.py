from __future__ import annotations

from datetime import datetime

from financial_import.ingest.detection import (
    confidence_for_ratio,
    detect_bank,
    detect_bank_from_file,
    detect_bank_from_filename,
    validate_file,
    validate_rows,
)

from tests.helpers.factories import amex_charge, amex_header, amex_payment, csv_bytes, xlsx_bytes

CIBC_ROWS = [
    ["01/15/2024", "TIM HORTONS #123", "4.50", ""],
    ["01/16/2024", "LOBLAWS 1001", "82.10", ""],
    ["2024-01-17", "PAYROLL DEPOSIT", "", "2000.00"],
    ["01/18/2024", "NETFLIX.COM", "16.99", ""],
]


def _amex_rows() -> list[list]:
    return [
        *amex_header(),
        amex_charge("16 Dec. 2025", "STARBUCKS", "$5.25", "STARBUCKS TORONTO"),
        amex_charge("17 Dec. 2025", "AMAZON", "$45.00"),
        amex_payment("18 Dec. 2025", "-$300.00", "PAYMENT RECEIVED - THANK YOU"),
    ]


def test_confidence_thresholds():
    assert confidence_for_ratio(1.0) == "high"
    assert confidence_for_ratio(0.8) == "high"
    assert confidence_for_ratio(0.5) == "medium"
    assert confidence_for_ratio(0.2) == "low"
    assert confidence_for_ratio(0.19) == "none"


def test_detect_cibc_all_rows_match_is_high():
    res = detect_bank(CIBC_ROWS)
    assert res.bank_type == "CIBC"
    assert res.confidence == "high"
    assert "CIBC" in res.reason


def test_detect_amex_spreadsheet_rows_is_high():
    res = detect_bank(_amex_rows())
    assert res.bank_type == "AMEX"
    assert res.confidence == "high"


def test_detect_partial_match_is_medium():
    rows = [*CIBC_ROWS[:3], ["garbage", "x", "$1", "y"], ["nope", "", "", ""]]
    res = detect_bank(rows)
    assert res.bank_type == "CIBC"
    assert res.confidence == "medium"
    assert res.reason == "File partially matches CIBC format"


def test_detect_no_matching_rows_is_unknown():
    rows = [["Name", "Email", "Phone", "City"], ["Ann", "a@example.com", "555", "Ottawa"]]
    res = detect_bank(rows)
    assert res.bank_type == "UNKNOWN"
    assert res.confidence == "none"


def test_detect_empty_file():
    res = detect_bank([])
    assert res == ("UNKNOWN", "none", "File is empty")


def test_short_rows_are_not_evaluable():
    rows = [["01/15/2024", "TIM HORTONS", "4.50"]]
    assert detect_bank(rows).bank_type == "UNKNOWN"


def test_native_date_cells_satisfy_cibc_date_check():
    rows = [[datetime(2024, 1, 15), "TIM HORTONS", 4.5, None]]
    assert detect_bank(rows).bank_type == "CIBC"


def test_amex_checked_before_cibc():
    # Thirteen ISO-dated four-column rows also satisfy the CIBC fingerprint;
    # AMEX comes first in priority but its date grammar does not match here.
    rows = [["2024-01-15", "COFFEE", "3.00", ""] for _ in range(13)]
    assert detect_bank(rows).bank_type == "CIBC"


def test_filename_hint():
    assert detect_bank_from_filename("cibc_2024.csv") == "CIBC"
    assert detect_bank_from_filename("Summary.xlsx") == "AMEX"
    assert detect_bank_from_filename("my-AMEX-statement.xlsx") == "AMEX"
    assert detect_bank_from_filename("statement.csv") == "UNKNOWN"


def test_detect_from_file_prefers_contents_over_name():
    res = detect_bank_from_file(csv_bytes([",".join(r) for r in CIBC_ROWS]), "amex.csv")
    assert res.bank_type == "CIBC"


def test_detect_from_file_falls_back_to_filename():
    data = csv_bytes(["a,b,c,d", "e,f,g,h"])
    res = detect_bank_from_file(data, "cibc-export.csv")
    assert res == ("CIBC", "low", "Filename suggests CIBC format")

    res = detect_bank_from_file(data, "export.csv")
    assert res.bank_type == "UNKNOWN"
    assert res.reason == "Could not determine bank type from file contents or filename"


def test_detect_from_file_xlsx():
    res = detect_bank_from_file(xlsx_bytes(_amex_rows()), "activity.xlsx")
    assert res.bank_type == "AMEX"


def test_detect_cibc_workbook_with_empty_money_in_cells():
    rows = [[r[0], r[1], r[2] or None, r[3] or None] for r in CIBC_ROWS]
    res = detect_bank_from_file(xlsx_bytes(rows), "export.xlsx")
    assert (res.bank_type, res.confidence) == ("CIBC", "high")


def test_detect_from_file_unreadable_spreadsheet():
    res = detect_bank_from_file(b"not a zip", "Summary.xlsx")
    assert res.bank_type == "UNKNOWN"
    assert res.reason.startswith("Error reading file:")


def test_validate_cibc_ok_and_bad_dates():
    assert validate_rows(CIBC_ROWS, "CIBC", spreadsheet=False).is_valid

    bad = [["15 Jan 2024", "X", "1", ""], ["16 Jan 2024", "Y", "2", ""]]
    res = validate_rows(bad, "CIBC", spreadsheet=False)
    assert not res.is_valid
    assert any("CIBC format" in e for e in res.errors)


def test_validate_amex_requires_spreadsheet():
    res = validate_file(csv_bytes(["a,b,c,d"]), "Summary.csv", "AMEX")
    assert not res.is_valid
    assert res.errors == ("AMEX files must be in Excel format (.xlsx)",)

    assert validate_file(xlsx_bytes(_amex_rows()), "Summary.xlsx", "AMEX").is_valid


def test_validate_unknown_bank():
    res = validate_rows(CIBC_ROWS, "UNKNOWN", spreadsheet=False)
    assert res.errors == ("Please select a bank type",)
