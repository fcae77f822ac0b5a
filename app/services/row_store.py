"""
Keyed record store over one spreadsheet tab.

Every operation re-reads the whole column range and resolves key -> row
number from that fresh read. Row numbers are never kept between calls:
a structural delete renumbers every row below it.
"""

import hashlib
import secrets
import string
from dataclasses import dataclass, fields, replace
from typing import Callable, Dict, Generic, List, Optional, Set, Type, TypeVar

from app.common.exceptions import ConflictError, RecordNotFoundError
from app.integrations.google_sheets import SheetsClient, a1_range
from app.logger_config import logger
from app.models.sheet_record import SheetRecord

R = TypeVar("R", bound=SheetRecord)

KEY_ALPHABET = string.digits + string.ascii_lowercase
KEY_LENGTH = 8
MAX_KEY_ATTEMPTS = 10


def generate_key(length: int = KEY_LENGTH) -> str:
    """Random base-36 key, e.g. 'k3x9p0qa'."""
    return ''.join(secrets.choice(KEY_ALPHABET) for _ in range(length))


def pad_row(row: List[str], width: int) -> List[str]:
    cells = ["" if c is None else str(c) for c in row[:width]]
    return cells + [""] * (width - len(cells))


def row_etag(row: List[str], width: int) -> str:
    """Version stamp of a row's current cell values."""
    digest = hashlib.sha1("\x1f".join(pad_row(row, width)).encode("utf-8"))
    return digest.hexdigest()[:16]


def build_key_index(rows: List[List[str]]) -> Dict[str, int]:
    """Map key (column A) -> 1-based sheet row number; row 1 is the header, first match wins."""
    index: Dict[str, int] = {}
    for i, row in enumerate(rows[1:], start=2):
        if row and row[0]:
            index.setdefault(str(row[0]), i)
    return index


@dataclass(frozen=True)
class StoredRow(Generic[R]):
    row_number: int
    record: R
    etag: str
    cells: tuple = ()


class RowStore(Generic[R]):
    def __init__(self, client: SheetsClient, sheet_name: str, record_cls: Type[R]):
        self.client = client
        self.sheet_name = sheet_name
        self.record_cls = record_cls
        self.width = record_cls.width()

    # ================= READ ===================

    def full_range(self) -> str:
        return a1_range(self.sheet_name, 0, None, self.width - 1)

    def row_range(self, row_number: int) -> str:
        return a1_range(self.sheet_name, 0, row_number, self.width - 1, row_number)

    def cell_range(self, field_name: str, row_number: int) -> str:
        return a1_range(self.sheet_name, self.record_cls.column_index(field_name), row_number)

    def fetch_rows(self) -> List[List[str]]:
        """Raw rows of the whole range, header included."""
        return self.client.get_values(self.full_range())

    def _stored(self, row_number: int, row: List[str]) -> StoredRow[R]:
        padded = pad_row(row, self.width)
        return StoredRow(
            row_number, self.record_cls.from_row(padded), row_etag(padded, self.width), tuple(padded)
        )

    def read_entries(self) -> List[StoredRow[R]]:
        rows = self.fetch_rows()
        return [
            self._stored(i, row)
            for i, row in enumerate(rows[1:], start=2)
            if any(str(c).strip() for c in row)
        ]

    def read_all(self) -> List[R]:
        return [entry.record for entry in self.read_entries()]

    @staticmethod
    def find_by_key(rows: List[List[str]], key: str) -> Optional[int]:
        return build_key_index(rows).get(key)

    def locate(self, key: str) -> StoredRow[R]:
        rows = self.fetch_rows()
        row_number = self.find_by_key(rows, key)
        if row_number is None:
            logger.info(f"Key {key} not found in sheet {self.sheet_name}")
            raise RecordNotFoundError("Record not found")
        return self._stored(row_number, rows[row_number - 1])

    # ================= WRITE ===================

    def _new_key(self) -> str:
        existing: Set[str] = set(build_key_index(self.fetch_rows()))
        for _ in range(MAX_KEY_ATTEMPTS):
            key = generate_key()
            if key not in existing:
                return key
            logger.warning(f"Generated key {key} already used in {self.sheet_name}, retrying")
        raise ConflictError("Could not generate a unique key")

    def append(self, record: R, assign_key: bool = True) -> R:
        """Append `record` as a new row; column A gets a fresh unique key unless `assign_key` is False."""
        if assign_key and not record.to_row()[0]:
            key_field = fields(self.record_cls)[0].name
            record = replace(record, **{key_field: self._new_key()})

        self.client.append_row(self.sheet_name, self.width, record.to_row())
        return record

    def _check_etag(self, stored: StoredRow[R], expected_etag: Optional[str]) -> None:
        if expected_etag and expected_etag != stored.etag:
            raise ConflictError(
                "Record was modified by someone else; reload and try again",
                details=f"expected {expected_etag}, found {stored.etag}",
            )

    def update_row(
        self,
        key: str,
        changes: Dict[str, object],
        expected_etag: Optional[str] = None,
    ) -> tuple:
        """Merge `changes` onto the row and write the whole row back. Returns (before, after)."""
        stored = self.locate(key)
        self._check_etag(stored, expected_etag)

        updated = replace(stored.record, **changes)
        values = updated.to_row()
        self.client.update_values(self.row_range(stored.row_number), [values])
        return stored, StoredRow(stored.row_number, updated, row_etag(values, self.width), tuple(values))

    def set_cells(
        self,
        key: str,
        changes: Dict[str, object],
        expected_etag: Optional[str] = None,
    ) -> tuple:
        """Write only the given cells of the row, one range per cell. Returns (before, after)."""
        stored = self.locate(key)
        self._check_etag(stored, expected_etag)

        updated = replace(stored.record, **changes)
        cells = list(stored.cells)
        data = {}
        for name, value in changes.items():
            formatted = SheetRecord.format_value(value)
            cells[self.record_cls.column_index(name)] = formatted
            data[self.cell_range(name, stored.row_number)] = [[formatted]]
        self.client.batch_update_values(data)
        return stored, StoredRow(stored.row_number, updated, row_etag(cells, self.width), tuple(cells))

    def delete_row(self, key: str) -> R:
        stored = self.locate(key)
        self.client.delete_row(self.sheet_name, stored.row_number)
        return stored.record

    def set_column_where(self, field_name: str, value: str, predicate: Callable[[R], bool]) -> int:
        """Overwrite one column on every row matching `predicate` in a single batch update."""
        data = {
            self.cell_range(field_name, entry.row_number): [[value]]
            for entry in self.read_entries()
            if predicate(entry.record)
        }
        if not data:
            return 0
        self.client.batch_update_values(data)
        return len(data)

    def create_sheet(self) -> None:
        """Add the tab and write its header row."""
        logger.info(f"Creating sheet {self.sheet_name} with header row")
        self.client.add_sheet(self.sheet_name)
        self.client.update_values(self.row_range(1), [list(self.record_cls.HEADERS)])
