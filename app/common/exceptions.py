from typing import Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInputError(AppError):
    status_code = 400


class PermissionDeniedError(AppError):
    status_code = 403


class RecordNotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class UpstreamError(AppError):
    """A Google Sheets / Drive call failed; `details` carries the raw error."""

    status_code = 500


class SheetNotFoundError(UpstreamError):
    def __init__(self, sheet_name: str, details: Optional[str] = None):
        super().__init__(f"Sheet '{sheet_name}' does not exist", details=details)
        self.sheet_name = sheet_name
