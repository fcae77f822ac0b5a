"""Google Sheets client (service-account based).

All network calls to the Sheets API live here. The rest of the service only
sees a small value-oriented interface:

- ``get_values`` / ``append_row`` / ``update_values`` / ``batch_update_values``
- ``delete_row`` (structural, renumbers every row below it)
- ``list_sheet_titles`` / ``add_sheet``

``InMemorySheetsClient`` implements the same interface over plain lists so
the service can run locally and under test without Google credentials.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
import threading
from dataclasses import dataclass
from typing import Any

from app.common.exceptions import SheetNotFoundError, UpstreamError
from app.logger_config import logger

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

_A1_RE = re.compile(r"^([A-Z]*)(\d*)$")


def col_to_a1(col_index_zero_based: int) -> str:
    """Convert 0-based column index to A1 column letters (0->A, 25->Z, 26->AA)."""

    if col_index_zero_based < 0:
        raise ValueError("col_index_zero_based must be >= 0")

    result = ""
    n = col_index_zero_based
    while True:
        n, rem = divmod(n, 26)
        result = chr(ord("A") + rem) + result
        if n == 0:
            break
        n -= 1

    return result


def a1_to_col(letters: str) -> int:
    """Convert A1 column letters to a 0-based index (A->0, Z->25, AA->26)."""

    if not letters or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")

    n = 0
    for ch in letters.upper():
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def quote_sheet_name(sheet_name: str) -> str:
    if re.fullmatch(r"\w+", sheet_name):
        return sheet_name
    return "'" + sheet_name.replace("'", "''") + "'"


def a1_range(
    sheet_name: str,
    start_col: int,
    start_row: int | None = None,
    end_col: int | None = None,
    end_row: int | None = None,
) -> str:
    """Build an A1 range. Rows are 1-based; omit rows for whole columns (``A:P``)."""

    start = f"{col_to_a1(start_col)}{start_row or ''}"
    ref = start
    if end_col is not None:
        ref = f"{start}:{col_to_a1(end_col)}{end_row or ''}"
    return f"{quote_sheet_name(sheet_name)}!{ref}"


@dataclass(frozen=True, slots=True)
class ParsedRange:
    sheet_name: str
    start_col: int
    start_row: int | None
    end_col: int
    end_row: int | None


def parse_a1_range(range_a1: str) -> ParsedRange:
    """Parse ``Sheet!A2:P2`` / ``'My Sheet'!M5`` / ``Sheet!A:P`` into 0-based columns, 1-based rows."""

    if "!" not in range_a1:
        raise ValueError(f"Range must include a sheet name: {range_a1!r}")

    sheet_part, ref = range_a1.rsplit("!", 1)
    if sheet_part.startswith("'") and sheet_part.endswith("'"):
        sheet_part = sheet_part[1:-1].replace("''", "'")

    start_ref, _, end_ref = ref.partition(":")
    end_ref = end_ref or start_ref

    parsed = []
    for part in (start_ref, end_ref):
        m = _A1_RE.match(part.upper())
        if not m or not m.group(1):
            raise ValueError(f"Unsupported A1 reference: {range_a1!r}")
        parsed.append((a1_to_col(m.group(1)), int(m.group(2)) if m.group(2) else None))

    (start_col, start_row), (end_col, end_row) = parsed
    return ParsedRange(sheet_part, start_col, start_row, end_col, end_row)


class SheetsClient(ABC):
    """Interface shared by the Google-backed and in-process clients."""

    @abstractmethod
    def list_sheet_titles(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def get_values(self, range_a1: str) -> list[list[str]]:
        raise NotImplementedError

    @abstractmethod
    def append_row(self, sheet_name: str, width: int, values: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_values(self, range_a1: str, rows: list[list[str]]) -> None:
        raise NotImplementedError

    @abstractmethod
    def batch_update_values(self, data: dict[str, list[list[str]]]) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_row(self, sheet_name: str, row_number: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_sheet(self, sheet_name: str) -> None:
        raise NotImplementedError


class GoogleSheetsClient(SheetsClient):
    def __init__(
        self,
        *,
        spreadsheet_id: str,
        client_email: str,
        private_key: str,
        num_retries: int = 0,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._client_email = client_email
        self._private_key = private_key
        self._num_retries = num_retries
        self._service: Any = None

    @classmethod
    def from_settings(cls, settings) -> "GoogleSheetsClient":
        if not settings.GOOGLE_SHEET_ID:
            raise UpstreamError("Google Sheet ID not configured")

        return cls(
            spreadsheet_id=settings.GOOGLE_SHEET_ID,
            client_email=settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
            private_key=settings.GOOGLE_PRIVATE_KEY,
            num_retries=settings.GOOGLE_HTTP_NUM_RETRIES,
        )

    def _build_sheets_service(self) -> Any:
        if self._service is not None:
            return self._service

        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        creds = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": self._client_email,
                "private_key": self._private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            },
            scopes=SCOPES,
        )
        self._service = build("sheets", "v4", credentials=creds, cache_discovery=False)
        return self._service

    def _execute(self, request: Any, *, sheet_name: str | None = None) -> dict[str, Any]:
        from google.auth.exceptions import GoogleAuthError
        from googleapiclient.errors import HttpError

        try:
            return request.execute(num_retries=self._num_retries)
        except HttpError as e:
            message = str(e)
            if sheet_name and e.resp.status == 400 and "Unable to parse range" in message:
                raise SheetNotFoundError(sheet_name, details=message)
            raise UpstreamError("Google Sheets request failed", details=message)
        except (GoogleAuthError, OSError) as e:
            raise UpstreamError("Google Sheets request failed", details=str(e))

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    def _sheet_properties(self) -> list[dict[str, Any]]:
        sheets = self._build_sheets_service()
        meta = self._execute(
            sheets.spreadsheets().get(
                spreadsheetId=self._spreadsheet_id,
                fields="sheets(properties(sheetId,title))",
            )
        )
        return [s["properties"] for s in meta.get("sheets", [])]

    def list_sheet_titles(self) -> list[str]:
        return [p["title"] for p in self._sheet_properties()]

    def get_values(self, range_a1: str) -> list[list[str]]:
        sheets = self._build_sheets_service()
        resp = self._execute(
            sheets.spreadsheets().values().get(spreadsheetId=self._spreadsheet_id, range=range_a1),
            sheet_name=parse_a1_range(range_a1).sheet_name,
        )
        rows = resp.get("values", [])
        return rows if isinstance(rows, list) else []

    def append_row(self, sheet_name: str, width: int, values: list[str]) -> None:
        sheets = self._build_sheets_service()
        self._execute(
            sheets.spreadsheets()
            .values()
            .append(
                spreadsheetId=self._spreadsheet_id,
                range=a1_range(sheet_name, 0, None, width - 1),
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [values]},
            ),
            sheet_name=sheet_name,
        )

    def update_values(self, range_a1: str, rows: list[list[str]]) -> None:
        sheets = self._build_sheets_service()
        self._execute(
            sheets.spreadsheets()
            .values()
            .update(
                spreadsheetId=self._spreadsheet_id,
                range=range_a1,
                valueInputOption="RAW",
                body={"values": rows},
            ),
            sheet_name=parse_a1_range(range_a1).sheet_name,
        )

    def batch_update_values(self, data: dict[str, list[list[str]]]) -> int:
        """Write many ranges with a single API call; returns the number of ranges sent."""

        if not data:
            return 0

        sheets = self._build_sheets_service()
        body: dict[str, Any] = {
            "valueInputOption": "RAW",
            "data": [{"range": r, "values": v} for r, v in data.items()],
        }
        self._execute(
            sheets.spreadsheets().values().batchUpdate(spreadsheetId=self._spreadsheet_id, body=body)
        )
        return len(data)

    def delete_row(self, sheet_name: str, row_number: int) -> None:
        sheet_id = None
        for props in self._sheet_properties():
            if props.get("title") == sheet_name:
                sheet_id = props.get("sheetId")
                break
        if sheet_id is None:
            raise SheetNotFoundError(sheet_name)

        logger.info(f"Deleting row {row_number} from sheet {sheet_name} (ID: {sheet_id})")
        sheets = self._build_sheets_service()
        self._execute(
            sheets.spreadsheets().batchUpdate(
                spreadsheetId=self._spreadsheet_id,
                body={
                    "requests": [
                        {
                            "deleteDimension": {
                                "range": {
                                    "sheetId": sheet_id,
                                    "dimension": "ROWS",
                                    "startIndex": row_number - 1,
                                    "endIndex": row_number,
                                }
                            }
                        }
                    ]
                },
            )
        )

    def add_sheet(self, sheet_name: str) -> None:
        sheets = self._build_sheets_service()
        self._execute(
            sheets.spreadsheets().batchUpdate(
                spreadsheetId=self._spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": sheet_name}}}]},
            )
        )


class InMemorySheetsClient(SheetsClient):
    """Spreadsheet held in process memory, one list of rows per sheet."""

    def __init__(self, sheets: dict[str, list[list[str]]] | None = None) -> None:
        self._sheets: dict[str, list[list[str]]] = {
            name: [list(r) for r in rows] for name, rows in (sheets or {}).items()
        }
        self._lock = threading.Lock()

    def _table(self, sheet_name: str) -> list[list[str]]:
        if sheet_name not in self._sheets:
            raise SheetNotFoundError(sheet_name)
        return self._sheets[sheet_name]

    def list_sheet_titles(self) -> list[str]:
        with self._lock:
            return list(self._sheets)

    def get_values(self, range_a1: str) -> list[list[str]]:
        r = parse_a1_range(range_a1)
        with self._lock:
            table = self._table(r.sheet_name)
            first = (r.start_row or 1) - 1
            last = r.end_row if r.end_row is not None else len(table)
            out = []
            for row in table[first:last]:
                cells = [str(c) for c in row[r.start_col : r.end_col + 1]]
                # The API drops trailing empty cells
                while cells and cells[-1] == "":
                    cells.pop()
                out.append(cells)
            while out and not out[-1]:
                out.pop()
            return out

    def append_row(self, sheet_name: str, width: int, values: list[str]) -> None:
        with self._lock:
            self._table(sheet_name).append([str(v) for v in values[:width]])

    def _write(self, range_a1: str, rows: list[list[str]]) -> None:
        r = parse_a1_range(range_a1)
        table = self._table(r.sheet_name)
        first = (r.start_row or 1) - 1
        for offset, values in enumerate(rows):
            index = first + offset
            while len(table) <= index:
                table.append([])
            row = table[index]
            for j, value in enumerate(values):
                col = r.start_col + j
                while len(row) <= col:
                    row.append("")
                row[col] = str(value)

    def update_values(self, range_a1: str, rows: list[list[str]]) -> None:
        with self._lock:
            self._write(range_a1, rows)

    def batch_update_values(self, data: dict[str, list[list[str]]]) -> int:
        with self._lock:
            for range_a1, rows in data.items():
                self._write(range_a1, rows)
        return len(data)

    def delete_row(self, sheet_name: str, row_number: int) -> None:
        with self._lock:
            table = self._table(sheet_name)
            if 1 <= row_number <= len(table):
                del table[row_number - 1]

    def add_sheet(self, sheet_name: str) -> None:
        with self._lock:
            if sheet_name in self._sheets:
                raise UpstreamError(f"A sheet with the name '{sheet_name}' already exists")
            self._sheets[sheet_name] = []

    def snapshot(self, sheet_name: str) -> list[list[str]]:
        """Copy of a sheet's raw rows (header included)."""
        with self._lock:
            return [list(r) for r in self._table(sheet_name)]


def build_sheets_client(settings, headers: dict[str, list[str]] | None = None) -> SheetsClient:
    """Create the configured client; the in-memory backend starts with one header row per sheet."""

    backend = settings.SHEETS_BACKEND.lower()
    if backend == "memory":
        logger.info("Using in-memory Sheets backend")
        return InMemorySheetsClient({name: [header] for name, header in (headers or {}).items()})
    if backend == "google":
        return GoogleSheetsClient.from_settings(settings)
    raise ValueError(f"Unknown SHEETS_BACKEND: {settings.SHEETS_BACKEND}")
