import enum
from dataclasses import dataclass

from app.models.sheet_record import SheetRecord


class TransactionType(str, enum.Enum):
    income = "Income"
    expense = "Expense"


class TransactionStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"


class Account(str, enum.Enum):
    miyf = "MIYF"


@dataclass
class FinancialRecord(SheetRecord):
    """One row of the Transaction sheet (columns A-P)."""

    HEADERS = [
        "Key", "Account", "Date", "Type", "Who", "Amount", "Description", "Status",
        "Take/Put ?", "Remark", "Created Date", "Created By", "Approved Date",
        "Approved By", "Last User Update", "Last Date Update",
    ]

    key: str = ""
    account: str = ""
    date: str = ""
    type: str = TransactionType.expense.value
    who: str = ""
    amount: float = 0.0
    description: str = ""
    status: str = TransactionStatus.pending.value
    take_put: bool = False
    remark: str = ""
    created_date: str = ""
    created_by: str = ""
    approved_date: str = ""
    approved_by: str = ""
    last_user_update: str = ""
    last_date_update: str = ""

    @property
    def is_approved(self) -> bool:
        return self.status == TransactionStatus.approved.value
