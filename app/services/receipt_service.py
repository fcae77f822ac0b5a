from typing import List, Optional

from app.core.config import settings
from app.integrations.google_drive import DriveClient
from app.integrations.google_sheets import SheetsClient
from app.logger_config import logger
from app.models.receipt import Receipt
from app.services.row_store import RowStore
from app.services.transaction_service import TransactionService
from app.utils.timestamps import utc_now_iso


class ReceiptService:
    """Receipt metadata rows; the single source of truth for a transaction's attachments."""

    def __init__(self, sheets: SheetsClient, transactions: TransactionService, sheet_name: str = None):
        self.store = RowStore(sheets, sheet_name or settings.RECEIPT_SHEET_NAME, Receipt)
        self.transactions = transactions

    def list_receipts(self, transaction_key: Optional[str] = None) -> List[Receipt]:
        receipts = self.store.read_all()
        if transaction_key:
            receipts = [r for r in receipts if r.transaction_key == transaction_key]
        return receipts

    def create_receipt(
        self,
        transaction_key: str,
        file_name: str,
        file_url: str,
        file_id: str,
        upload_by: str,
        description: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> Receipt:
        # Raises RecordNotFoundError when the transaction is gone
        self.transactions.get_record(transaction_key)

        receipt = Receipt(
            transaction_key=transaction_key,
            file_name=file_name,
            file_url=file_url,
            file_id=file_id,
            upload_date=utc_now_iso(),
            upload_by=upload_by,
            description=description or "",
            display_name=display_name or "",
        )
        receipt = self.store.append(receipt)
        logger.info(f"Receipt {receipt.receipt_key} attached to {transaction_key}")
        return receipt

    def update_display_name(self, receipt_key: str, display_name: Optional[str]) -> Receipt:
        _, after = self.store.set_cells(receipt_key, {"display_name": display_name or ""})
        return after.record

    def delete_receipt(self, receipt_key: str, drive: DriveClient) -> Receipt:
        """Remove the Drive file, then the metadata row."""
        receipt = self.store.locate(receipt_key).record
        if receipt.file_id and drive.exists(receipt.file_id):
            drive.delete(receipt.file_id)
        else:
            logger.warning(f"Drive file {receipt.file_id} for receipt {receipt_key} already gone")
        self.store.delete_row(receipt_key)
        return receipt
