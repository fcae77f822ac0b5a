from datetime import date
from typing import List, Optional

from pydantic import Field

from app.models.transaction import Account, TransactionStatus, TransactionType
from app.schemas.base import CamelModel

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class TransactionCreate(CamelModel):
    account: Account
    date: DateType
    type: TransactionType
    who: str = Field(..., min_length=1, max_length=255)
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    remark: Optional[str] = None
    take_put: bool = False
    created_by: Optional[str] = None  # admins only; defaults to the caller


class TransactionUpdate(CamelModel):
    """Fields left out keep their current value on the sheet."""
    account: Optional[Account] = None
    date: Optional[DateType] = None
    type: Optional[TransactionType] = None
    who: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[TransactionStatus] = None
    take_put: Optional[bool] = None
    remark: Optional[str] = None
    last_user_update: Optional[str] = None


class StatusUpdate(CamelModel):
    key: str = Field(..., min_length=1)
    status: TransactionStatus
    approved_by: Optional[str] = None


class TransactionResponse(CamelModel):
    key: str
    account: str
    date: str
    type: str
    who: str
    amount: float
    description: str
    status: str
    take_put: bool
    remark: str
    created_date: str
    created_by: str
    approved_date: str
    approved_by: str
    last_user_update: str
    last_date_update: str
    etag: Optional[str] = None


class TransactionListResponse(CamelModel):
    total: int
    records: List[TransactionResponse]


class TransactionRecordResponse(CamelModel):
    record: TransactionResponse


class StatusUpdateResponse(CamelModel):
    success: bool = True
    message: str
    status: TransactionStatus
    changed: bool
    record: TransactionResponse


class DeleteResponse(CamelModel):
    success: bool = True
    message: str
    deleted_key: str


class MonthlyTotals(CamelModel):
    month: str
    income: float
    expense: float
    net: float
    cumulative: float


class TransactionStatsResponse(CamelModel):
    total_income: float
    total_expense: float
    net: float
    record_count: int
    pending_count: int
    approved_count: int
    monthly: List[MonthlyTotals]
