from typing import List

from pydantic import Field

from app.schemas.base import CamelModel


class UploadResponse(CamelModel):
    success: bool = True
    file_id: str
    file_name: str
    original_name: str
    file_url: str
    download_url: str
    file_size: int
    mime_type: str
    description: str
    message: str = "File uploaded to Google Drive successfully"


class DriveFileResponse(CamelModel):
    receipt_key: str
    transaction_key: str
    file_name: str
    file_url: str
    file_id: str
    download_url: str
    upload_date: str
    mime_type: str
    file_size: int


class DriveFileListResponse(CamelModel):
    receipts: List[DriveFileResponse]


class FileExistsResponse(CamelModel):
    exists: bool
    message: str


class RenameRequest(CamelModel):
    new_name: str = Field(..., min_length=1, max_length=255)


class DriveActionResponse(CamelModel):
    success: bool = True
    message: str
