import pytest

from app.integrations.google_drive import DriveClient, InMemoryDriveClient
from app.integrations.google_sheets import (
    InMemorySheetsClient,
    SheetsClient,
    a1_range,
    a1_to_col,
    col_to_a1,
    parse_a1_range,
)
from app.models.sheet_record import format_amount, parse_amount
from app.models.transaction import FinancialRecord
from app.services.row_store import build_key_index, generate_key, row_etag


def test_col_to_a1_boundaries():
    assert col_to_a1(0) == "A"
    assert col_to_a1(15) == "P"
    assert col_to_a1(25) == "Z"
    assert col_to_a1(26) == "AA"
    assert col_to_a1(701) == "ZZ"
    assert col_to_a1(702) == "AAA"


def test_a1_to_col_inverts_col_to_a1():
    for i in (0, 12, 25, 26, 51, 702):
        assert a1_to_col(col_to_a1(i)) == i


def test_col_to_a1_rejects_negative():
    with pytest.raises(ValueError):
        col_to_a1(-1)


def test_a1_range_shapes():
    assert a1_range("Transaction", 0, None, 15) == "Transaction!A:P"
    assert a1_range("Transaction", 0, 5, 15, 5) == "Transaction!A5:P5"
    assert a1_range("Transaction", 12, 5) == "Transaction!M5"
    assert a1_range("My Sheet", 0, 2, 1, 2) == "'My Sheet'!A2:B2"


def test_parse_a1_range_quoted_sheet():
    r = parse_a1_range("'My Sheet'!M5")
    assert r.sheet_name == "My Sheet"
    assert (r.start_col, r.start_row, r.end_col, r.end_row) == (12, 5, 12, 5)

    whole = parse_a1_range("Transaction!A:P")
    assert whole.start_row is None and whole.end_row is None
    assert whole.end_col == 15


def test_financial_record_has_sixteen_columns():
    assert FinancialRecord.width() == 16
    assert len(FinancialRecord.HEADERS) == 16
    assert FinancialRecord.column_index("status") == 7
    assert FinancialRecord.column_index("approved_by") == 13


def test_from_row_pads_short_rows_with_defaults():
    record = FinancialRecord.from_row(["abc12345", "MIYF", "2024-03-10", "Income", "Ann", "1,250.50"])
    assert record.key == "abc12345"
    assert record.amount == 1250.5
    assert record.status == "Pending"
    assert record.take_put is False
    assert record.approved_by == ""


def test_to_row_formats_amount_and_bool():
    record = FinancialRecord(key="k", amount=50.0, take_put=True)
    row = record.to_row()
    assert len(row) == 16
    assert row[5] == "50"
    assert row[8] == "TRUE"


def test_parse_amount_treats_garbage_as_zero():
    assert parse_amount("") == 0.0
    assert parse_amount("n/a") == 0.0
    assert parse_amount("12.5") == 12.5
    assert format_amount(12.5) == "12.5"


def test_key_index_first_match_wins_and_skips_header():
    rows = [
        ["Key", "Account"],
        ["aaa", "x"],
        [],
        ["bbb", "y"],
        ["aaa", "z"],
    ]
    index = build_key_index(rows)
    assert index == {"aaa": 2, "bbb": 4}
    assert "Key" not in index


def test_generate_key_is_base36():
    key = generate_key()
    assert len(key) == 8
    assert key.isalnum() and key == key.lower()


def test_row_etag_ignores_trailing_blank_cells():
    assert row_etag(["a", "b"], 4) == row_etag(["a", "b", "", ""], 4)
    assert row_etag(["a", "b"], 4) != row_etag(["a", "c"], 4)


def test_client_interfaces_cannot_be_instantiated_partially():
    class HalfSheets(SheetsClient):
        def get_values(self, range_a1):
            return []

    class HalfDrive(DriveClient):
        def exists(self, file_id):
            return False

    for cls in (SheetsClient, HalfSheets, DriveClient, HalfDrive):
        with pytest.raises(TypeError):
            cls()

    InMemorySheetsClient()
    InMemoryDriveClient()
