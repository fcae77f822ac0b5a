from dataclasses import dataclass

from app.models.sheet_record import SheetRecord


@dataclass
class Receipt(SheetRecord):
    """Attachment metadata; `transaction_key` points at FinancialRecord.key."""

    HEADERS = [
        "receiptKey", "transactionKey", "fileName", "fileUrl", "fileId",
        "uploadDate", "uploadBy", "description", "displayName",
    ]

    receipt_key: str = ""
    transaction_key: str = ""
    file_name: str = ""
    file_url: str = ""
    file_id: str = ""
    upload_date: str = ""
    upload_by: str = ""
    description: str = ""
    display_name: str = ""
