from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.common.exceptions import AppError
from app.core.dependencies import get_current_active_user, get_drive_client, get_receipt_service
from app.integrations.google_drive import DriveClient
from app.logger_config import logger
from app.models.user import User
from app.schemas.receipt import (
    ReceiptCreate,
    ReceiptCreateResponse,
    ReceiptDisplayNameUpdate,
    ReceiptListResponse,
    ReceiptResponse,
    ReceiptUpdateResponse,
)
from app.schemas.drive import DriveActionResponse
from app.services.receipt_service import ReceiptService

router = APIRouter()


@router.get("/read", response_model=ReceiptListResponse)
def read_receipts(
    transaction_key: Optional[str] = Query(None, alias="transactionKey"),
    current_user: User = Depends(get_current_active_user),
    service: ReceiptService = Depends(get_receipt_service),
):
    try:
        receipts = service.list_receipts(transaction_key)
        return ReceiptListResponse(receipts=[ReceiptResponse(**asdict(r)) for r in receipts])
    except AppError:
        raise
    except Exception as e:
        logger.exception("Failed to read receipts")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to read receipts", "details": str(e)},
        )


@router.post("/create", response_model=ReceiptCreateResponse, status_code=status.HTTP_201_CREATED)
def create_receipt(
    data: ReceiptCreate,
    current_user: User = Depends(get_current_active_user),
    service: ReceiptService = Depends(get_receipt_service),
):
    """Record metadata for a file already uploaded through /api/drive/upload."""
    try:
        receipt = service.create_receipt(
            transaction_key=data.transaction_key,
            file_name=data.file_name,
            file_url=data.file_url,
            file_id=data.file_id,
            upload_by=data.upload_by or current_user.display_name,
            description=data.description,
            display_name=data.display_name,
        )
        return ReceiptCreateResponse(receipt_key=receipt.receipt_key, receipt=ReceiptResponse(**asdict(receipt)))
    except AppError:
        raise
    except Exception as e:
        logger.exception("Failed to create receipt")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to create receipt", "details": str(e)},
        )


@router.patch("/update-display-name", response_model=ReceiptUpdateResponse)
def update_display_name(
    data: ReceiptDisplayNameUpdate,
    current_user: User = Depends(get_current_active_user),
    service: ReceiptService = Depends(get_receipt_service),
):
    receipt = service.update_display_name(data.receipt_key, data.display_name)
    return ReceiptUpdateResponse(receipt=ReceiptResponse(**asdict(receipt)))


@router.delete("/{receipt_key}", response_model=DriveActionResponse)
def delete_receipt(
    receipt_key: str,
    current_user: User = Depends(get_current_active_user),
    service: ReceiptService = Depends(get_receipt_service),
    drive: DriveClient = Depends(get_drive_client),
):
    """Delete the Drive file and then its receipt row."""
    try:
        service.delete_receipt(receipt_key, drive)
        return DriveActionResponse(message="Receipt deleted successfully")
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Failed to delete receipt {receipt_key}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to delete receipt", "details": str(e)},
        )
