from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from app.common.exceptions import InvalidInputError, SheetNotFoundError
from app.core.config import settings
from app.integrations.google_sheets import SheetsClient
from app.logger_config import logger
from app.models.cash_in_hand import CashInHandRecord, CashInHandType
from app.services.row_store import RowStore
from app.utils.timestamps import now_string


class CashInHandService:
    """
    Cash-in-hand ledger: every row is a signed adjustment and the balance is
    recomputed from the full history on each read.
    """

    def __init__(self, sheets: SheetsClient, sheet_name: str = None):
        self.store = RowStore(sheets, sheet_name or settings.CASH_IN_HAND_SHEET_NAME, CashInHandRecord)

    def history(self) -> List[CashInHandRecord]:
        try:
            return self.store.read_all()
        except SheetNotFoundError:
            # Nothing recorded yet
            return []

    def balance(self) -> Tuple[float, int]:
        records = self.history()
        total = sum((Decimal(str(r.amount)) for r in records), Decimal("0"))
        return float(total), len(records)

    def add_adjustment(
        self,
        amount,
        created_by: str,
        entry_date: Optional[date] = None,
        type: CashInHandType = CashInHandType.adjustment,
        description: str = "",
    ) -> CashInHandRecord:
        if Decimal(str(amount)) == 0:
            raise InvalidInputError("Adjustment amount cannot be zero")

        record = CashInHandRecord(
            date=(entry_date or date.today()).isoformat(),
            type=type.value,
            amount=float(amount),
            description=description or "Cash adjustment",
            created_by=created_by,
            created_date=now_string(),
        )
        try:
            return self.store.append(record)
        except SheetNotFoundError:
            logger.info(f"Sheet {self.store.sheet_name} missing, creating it before retrying")
            self.store.create_sheet()
            return self.store.append(record)

    def set_balance(
        self,
        target,
        created_by: str,
        entry_date: Optional[date] = None,
        description: str = "",
    ) -> Tuple[CashInHandRecord, float]:
        """Append whatever adjustment brings the balance to `target`. Returns (row, previous balance)."""
        current, _ = self.balance()
        delta = Decimal(str(target)) - Decimal(str(current))
        if delta == 0:
            raise InvalidInputError(f"Cash in hand is already {current}")

        record = self.add_adjustment(
            amount=float(delta),
            created_by=created_by,
            entry_date=entry_date,
            type=CashInHandType.adjustment,
            description=description,
        )
        return record, current
