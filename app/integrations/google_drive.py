"""Google Drive client used for receipt files."""

from __future__ import annotations

import io
import itertools
import secrets
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from app.common.exceptions import UpstreamError
from app.logger_config import logger

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.file",
]

FILE_FIELDS = "id,name,mimeType,size,createdTime,webViewLink,webContentLink"


def public_view_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=view&id={file_id}"


def public_download_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=download&id={file_id}"


@dataclass(frozen=True, slots=True)
class DriveFile:
    id: str
    name: str
    mime_type: str = ""
    size: int = 0
    created_time: str = ""
    web_view_link: str = ""
    web_content_link: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DriveFile":
        file_id = data.get("id") or ""
        return cls(
            id=file_id,
            name=data.get("name") or "",
            mime_type=data.get("mimeType") or "",
            size=int(data.get("size") or 0),
            created_time=data.get("createdTime") or "",
            web_view_link=data.get("webViewLink") or public_view_url(file_id),
            web_content_link=data.get("webContentLink") or public_download_url(file_id),
        )


class DriveClient(ABC):
    @abstractmethod
    def upload(self, name: str, content: bytes, mime_type: str, folder_id: str | None = None) -> DriveFile:
        raise NotImplementedError

    @abstractmethod
    def make_public(self, file_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, file_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def exists(self, file_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_files(self, name_prefix: str, folder_id: str | None = None) -> list[DriveFile]:
        raise NotImplementedError

    @abstractmethod
    def rename(self, file_id: str, new_name: str) -> DriveFile:
        raise NotImplementedError


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient(DriveClient):
    def __init__(self, *, client_email: str, private_key: str, num_retries: int = 0) -> None:
        self._client_email = client_email
        self._private_key = private_key
        self._num_retries = num_retries
        self._service: Any = None

    @classmethod
    def from_settings(cls, settings) -> "GoogleDriveClient":
        return cls(
            client_email=settings.GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL,
            private_key=settings.GOOGLE_DRIVE_PRIVATE_KEY,
            num_retries=settings.GOOGLE_HTTP_NUM_RETRIES,
        )

    def _build_drive_service(self) -> Any:
        if self._service is not None:
            return self._service

        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        creds = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": self._client_email,
                "private_key": self._private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            },
            scopes=SCOPES,
        )
        self._service = build("drive", "v3", credentials=creds, cache_discovery=False)
        return self._service

    def _execute(self, request: Any) -> dict[str, Any]:
        from google.auth.exceptions import GoogleAuthError
        from googleapiclient.errors import HttpError

        try:
            return request.execute(num_retries=self._num_retries) or {}
        except HttpError as e:
            raise UpstreamError("Google Drive request failed", details=str(e))
        except (GoogleAuthError, OSError) as e:
            raise UpstreamError("Google Drive request failed", details=str(e))

    def upload(self, name: str, content: bytes, mime_type: str, folder_id: str | None = None) -> DriveFile:
        from googleapiclient.http import MediaIoBaseUpload

        drive = self._build_drive_service()
        metadata: dict[str, Any] = {"name": name, "mimeType": mime_type}
        if folder_id:
            metadata["parents"] = [folder_id]

        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
        logger.info(f"Uploading {name} ({len(content)} bytes) to folder {folder_id or 'root'}")
        data = self._execute(drive.files().create(body=metadata, media_body=media, fields=FILE_FIELDS))
        if not data.get("id"):
            raise UpstreamError("Failed to get file ID from Google Drive")
        return DriveFile.from_api(data)

    def make_public(self, file_id: str) -> None:
        drive = self._build_drive_service()
        self._execute(
            drive.permissions().create(fileId=file_id, body={"role": "reader", "type": "anyone"})
        )

    def delete(self, file_id: str) -> None:
        drive = self._build_drive_service()
        self._execute(drive.files().delete(fileId=file_id))

    def exists(self, file_id: str) -> bool:
        from googleapiclient.errors import HttpError

        drive = self._build_drive_service()
        try:
            data = drive.files().get(fileId=file_id, fields="id").execute(num_retries=self._num_retries)
        except HttpError as e:
            if e.resp.status == 404:
                return False
            raise UpstreamError("Google Drive request failed", details=str(e))
        return bool(data.get("id"))

    def list_files(self, name_prefix: str, folder_id: str | None = None) -> list[DriveFile]:
        drive = self._build_drive_service()
        query = f"name contains '{_escape_query(name_prefix)}' and trashed = false"
        if folder_id:
            query += f" and '{_escape_query(folder_id)}' in parents"

        data = self._execute(
            drive.files().list(q=query, fields=f"files({FILE_FIELDS})", orderBy="createdTime desc")
        )
        # "contains" matches on word prefixes anywhere in the name
        return [
            DriveFile.from_api(f)
            for f in data.get("files", [])
            if (f.get("name") or "").startswith(name_prefix)
        ]

    def rename(self, file_id: str, new_name: str) -> DriveFile:
        drive = self._build_drive_service()
        data = self._execute(drive.files().update(fileId=file_id, body={"name": new_name}, fields=FILE_FIELDS))
        return DriveFile.from_api(data)


class InMemoryDriveClient(DriveClient):
    """Drive folder kept in process memory."""

    def __init__(self) -> None:
        self._files: dict[str, tuple[DriveFile, bytes, int]] = {}
        self._public: set[str] = set()
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def upload(self, name: str, content: bytes, mime_type: str, folder_id: str | None = None) -> DriveFile:
        file_id = secrets.token_urlsafe(16)
        f = DriveFile(
            id=file_id,
            name=name,
            mime_type=mime_type,
            size=len(content),
            created_time=datetime.now(timezone.utc).isoformat(),
            web_view_link=public_view_url(file_id),
            web_content_link=public_download_url(file_id),
        )
        with self._lock:
            self._files[file_id] = (f, content, next(self._counter))
        return f

    def _get(self, file_id: str) -> tuple[DriveFile, bytes, int]:
        if file_id not in self._files:
            raise UpstreamError("Google Drive request failed", details=f"File not found: {file_id}")
        return self._files[file_id]

    def make_public(self, file_id: str) -> None:
        with self._lock:
            self._get(file_id)
            self._public.add(file_id)

    def is_public(self, file_id: str) -> bool:
        return file_id in self._public

    def delete(self, file_id: str) -> None:
        with self._lock:
            self._get(file_id)
            del self._files[file_id]
            self._public.discard(file_id)

    def exists(self, file_id: str) -> bool:
        return file_id in self._files

    def list_files(self, name_prefix: str, folder_id: str | None = None) -> list[DriveFile]:
        with self._lock:
            matches = [entry for entry in self._files.values() if entry[0].name.startswith(name_prefix)]
        matches.sort(key=lambda entry: entry[2], reverse=True)
        return [entry[0] for entry in matches]

    def rename(self, file_id: str, new_name: str) -> DriveFile:
        with self._lock:
            f, content, order = self._get(file_id)
            renamed = replace(f, name=new_name)
            self._files[file_id] = (renamed, content, order)
        return renamed

    def count(self) -> int:
        return len(self._files)


def build_drive_client(settings) -> DriveClient:
    backend = settings.DRIVE_BACKEND.lower()
    if backend == "memory":
        logger.info("Using in-memory Drive backend")
        return InMemoryDriveClient()
    if backend == "google":
        return GoogleDriveClient.from_settings(settings)
    raise ValueError(f"Unknown DRIVE_BACKEND: {settings.DRIVE_BACKEND}")
