import os
import secrets
import string
from typing import Any, Dict, List, Optional

from app.common.exceptions import InvalidInputError
from app.core.config import settings
from app.integrations.google_drive import DriveClient, public_download_url, public_view_url
from app.logger_config import logger
from app.utils.timestamps import file_timestamp

ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
]


def validate_upload(size: int, mime_type: Optional[str], max_bytes: int = None) -> None:
    """Reject oversized or disallowed files before anything reaches Drive."""
    max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
    if size > max_bytes:
        raise InvalidInputError(
            f"File size ({size / 1024 / 1024:.2f}MB) exceeds the maximum limit of "
            f"{max_bytes // (1024 * 1024)}MB"
        )
    if mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidInputError(
            f"File type {mime_type} is not allowed. Allowed types: {', '.join(ALLOWED_MIME_TYPES)}"
        )


def build_drive_file_name(transaction_key: str, original_name: str) -> str:
    """`{transactionKey}_{timestamp}_{random}_{originalName}` so several receipts can share a record."""
    suffix = ''.join(secrets.choice(string.digits + string.ascii_lowercase) for _ in range(6))
    return f"{transaction_key}_{file_timestamp()}_{suffix}_{os.path.basename(original_name)}"


def upload_receipt_file(
    drive: DriveClient,
    transaction_key: str,
    original_name: str,
    content: bytes,
    mime_type: str,
    description: str = "",
) -> Dict[str, Any]:
    validate_upload(len(content), mime_type)

    file_name = build_drive_file_name(transaction_key, original_name)
    folder_id = settings.GOOGLE_DRIVE_FOLDER_ID or None
    uploaded = drive.upload(file_name, content, mime_type, folder_id)
    drive.make_public(uploaded.id)
    logger.info(f"Uploaded {file_name} to Drive as {uploaded.id}")

    return {
        "file_id": uploaded.id,
        "file_name": file_name,
        "original_name": original_name,
        "file_url": public_view_url(uploaded.id),
        "download_url": public_download_url(uploaded.id),
        "file_size": len(content),
        "mime_type": mime_type,
        "description": description or "",
    }


def list_transaction_files(drive: DriveClient, transaction_key: str) -> List[Dict[str, Any]]:
    """Drive files uploaded for a transaction, newest first, shaped like receipt rows."""
    files = drive.list_files(f"{transaction_key}_", settings.GOOGLE_DRIVE_FOLDER_ID or None)
    logger.info(f"Found {len(files)} files for transaction {transaction_key}")
    return [
        {
            "receipt_key": f.id,
            "transaction_key": transaction_key,
            "file_name": f.name,
            "file_url": f.web_view_link,
            "file_id": f.id,
            "download_url": f.web_content_link,
            "upload_date": f.created_time,
            "mime_type": f.mime_type,
            "file_size": f.size,
        }
        for f in files
    ]
