import enum
from dataclasses import dataclass

from app.models.sheet_record import SheetRecord


class CashInHandType(str, enum.Enum):
    adjustment = "Adjustment"
    transfer = "Transfer"
    other = "Other"


@dataclass
class CashInHandRecord(SheetRecord):
    """Signed adjustment to the cash-in-hand balance."""

    HEADERS = ["Key", "Date", "Type", "Amount", "Description", "Created By", "Created Date"]

    key: str = ""
    date: str = ""
    type: str = CashInHandType.adjustment.value
    amount: float = 0.0
    description: str = ""
    created_by: str = ""
    created_date: str = ""
