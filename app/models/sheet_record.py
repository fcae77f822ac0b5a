import enum
from dataclasses import MISSING, dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import ClassVar, List


def parse_amount(value) -> float:
    """Sheet cells come back as strings; anything unparsable counts as 0."""
    try:
        return float(Decimal(str(value).replace(",", "").strip()))
    except (InvalidOperation, ValueError):
        return 0.0


def format_amount(value) -> str:
    amount = float(value)
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


@dataclass
class SheetRecord:
    """
    A typed view of one spreadsheet row.

    Dataclass fields are declared in column order; ``HEADERS`` holds the
    header row written when a sheet is created. Missing trailing cells and
    empty cells take the field default.
    """

    HEADERS: ClassVar[List[str]] = []

    @classmethod
    def width(cls) -> int:
        return len(fields(cls))

    @classmethod
    def column_index(cls, field_name: str) -> int:
        for i, f in enumerate(fields(cls)):
            if f.name == field_name:
                return i
        raise KeyError(field_name)

    @classmethod
    def from_row(cls, row: List[str]):
        kwargs = {}
        for i, f in enumerate(fields(cls)):
            raw = row[i] if i < len(row) else ""
            raw = "" if raw is None else str(raw)
            if raw == "" and f.default is not MISSING:
                kwargs[f.name] = f.default
            elif f.type is float:
                kwargs[f.name] = parse_amount(raw)
            elif f.type is bool:
                kwargs[f.name] = raw.strip().upper() == "TRUE"
            else:
                kwargs[f.name] = raw
        return cls(**kwargs)

    def to_row(self) -> List[str]:
        return [self.format_value(getattr(self, f.name)) for f in fields(self)]

    @staticmethod
    def format_value(value) -> str:
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, enum.Enum):
            return str(value.value)
        if isinstance(value, (float, int, Decimal)):
            return format_amount(value)
        return "" if value is None else str(value)
