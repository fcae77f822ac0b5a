from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class ReceiptCreate(CamelModel):
    transaction_key: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1)
    file_id: str = Field(..., min_length=1)
    upload_by: Optional[str] = None  # defaults to the caller
    description: Optional[str] = None
    display_name: Optional[str] = None


class ReceiptDisplayNameUpdate(CamelModel):
    receipt_key: str = Field(..., min_length=1)
    display_name: Optional[str] = None


class ReceiptResponse(CamelModel):
    receipt_key: str
    transaction_key: str
    file_name: str
    file_url: str
    file_id: str
    upload_date: str
    upload_by: str
    description: str
    display_name: str


class ReceiptListResponse(CamelModel):
    receipts: List[ReceiptResponse]


class ReceiptCreateResponse(CamelModel):
    receipt_key: str
    receipt: ReceiptResponse


class ReceiptUpdateResponse(CamelModel):
    success: bool = True
    receipt: ReceiptResponse
