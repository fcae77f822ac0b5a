from datetime import date
from typing import List, Optional

from pydantic import Field

from app.models.cash_in_hand import CashInHandType
from app.schemas.base import CamelModel

DateType = date


class CashAdjustmentCreate(CamelModel):
    """Signed change to the balance; negative amounts take cash out."""
    amount: float
    date: Optional[DateType] = None  # default to today
    type: CashInHandType = CashInHandType.adjustment
    description: Optional[str] = None


class CashBalanceSet(CamelModel):
    target_balance: float = Field(..., ge=0)
    date: Optional[DateType] = None
    description: Optional[str] = None


class CashInHandRecordResponse(CamelModel):
    key: str
    date: str
    type: str
    amount: float
    description: str
    created_by: str
    created_date: str


class CashInHandBalanceResponse(CamelModel):
    cash_in_hand: float
    count: int


class CashInHandCreateResponse(CamelModel):
    success: bool = True
    record: CashInHandRecordResponse
    cash_in_hand: float
    previous_balance: Optional[float] = None


class CashInHandHistoryResponse(CamelModel):
    cash_in_hand: float
    records: List[CashInHandRecordResponse]
