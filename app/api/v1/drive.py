from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from app.common.exceptions import AppError, RecordNotFoundError
from app.core.config import settings
from app.core.dependencies import get_current_active_user, get_drive_client
from app.integrations.google_drive import DriveClient
from app.logger_config import logger
from app.models.user import User
from app.schemas.drive import (
    DriveActionResponse,
    DriveFileListResponse,
    DriveFileResponse,
    FileExistsResponse,
    RenameRequest,
    UploadResponse,
)
from app.services.upload_service import list_transaction_files, upload_receipt_file, validate_upload

router = APIRouter()


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    transaction_key: str = Form(..., alias="transactionKey", min_length=1),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_active_user),
    drive: DriveClient = Depends(get_drive_client),
):
    """
    Upload a receipt image or PDF (10MB max) and make it publicly readable.
    Oversized and disallowed files are rejected before any Drive call.
    """
    try:
        if file.size is not None:
            validate_upload(file.size, file.content_type)
        # Never read more than one byte past the limit
        content = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
        result = upload_receipt_file(
            drive,
            transaction_key=transaction_key,
            original_name=file.filename or "receipt",
            content=content,
            mime_type=file.content_type,
            description=description or "",
        )
        return UploadResponse(**result)
    except AppError:
        raise
    except Exception as e:
        logger.exception("Failed to upload file to Google Drive")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to upload file to Google Drive", "details": str(e)},
        )


@router.delete("/delete/{file_id}", response_model=DriveActionResponse)
def delete_file(
    file_id: str,
    current_user: User = Depends(get_current_active_user),
    drive: DriveClient = Depends(get_drive_client),
):
    if not drive.exists(file_id):
        raise RecordNotFoundError("File not found in Google Drive")
    drive.delete(file_id)
    logger.info(f"{current_user.email} deleted Drive file {file_id}")
    return DriveActionResponse(message="File deleted from Google Drive successfully")


@router.get("/check/{file_id}", response_model=FileExistsResponse)
def check_file(
    file_id: str,
    current_user: User = Depends(get_current_active_user),
    drive: DriveClient = Depends(get_drive_client),
):
    """200 when the file is still in Drive, 404 otherwise."""
    if not drive.exists(file_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found in Google Drive")
    return FileExistsResponse(exists=True, message="File exists in Google Drive")


@router.get("/list", response_model=DriveFileListResponse)
def list_files(
    transaction_key: str = Query(..., alias="transactionKey", min_length=1),
    current_user: User = Depends(get_current_active_user),
    drive: DriveClient = Depends(get_drive_client),
):
    files = list_transaction_files(drive, transaction_key)
    return DriveFileListResponse(receipts=[DriveFileResponse(**f) for f in files])


@router.patch("/rename/{file_id}", response_model=DriveActionResponse)
def rename_file(
    file_id: str,
    data: RenameRequest,
    current_user: User = Depends(get_current_active_user),
    drive: DriveClient = Depends(get_drive_client),
):
    if not drive.exists(file_id):
        raise RecordNotFoundError("File not found in Google Drive")
    renamed = drive.rename(file_id, data.new_name.strip())
    return DriveActionResponse(message=f"File renamed to {renamed.name}")
