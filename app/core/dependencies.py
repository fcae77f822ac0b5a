from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.security import decode_access_token
from app.integrations.google_drive import DriveClient, build_drive_client
from app.integrations.google_sheets import SheetsClient, build_sheets_client
from app.models.audit_log import AuditLogEntry
from app.models.receipt import Receipt
from app.models.transaction import FinancialRecord
from app.models.user import User, UserRole, UserStatus
from app.services.audit_log_service import AuditLogService
from app.services.cash_in_hand_service import CashInHandService
from app.services.receipt_service import ReceiptService
from app.services.transaction_service import TransactionService


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Use HTTPBearer so Swagger automatically asks for a token
bearer_scheme = HTTPBearer(auto_error=True)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get the currently authenticated user from the JWT token.
    Raises 401 if token is invalid or user does not exist.
    """
    token = credentials.credentials
    payload = decode_access_token(token)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_email = payload.get("sub")
    if not user_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token payload missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.email == user_email).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency to get the current user, refusing disabled accounts."""
    if current_user.status == UserStatus.disabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )
    return current_user


def require_roles(*roles: UserRole):
    """
    Server-side capability gate: the endpoint is reachable only by callers
    holding one of `roles`.
    """
    def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of: {', '.join(r.value for r in roles)}",
            )
        return current_user

    return checker


require_admin = require_roles(UserRole.super_admin, UserRole.admin)
require_super_admin = require_roles(UserRole.super_admin)


# ================= GOOGLE CLIENTS ===================

SHEET_HEADERS = {
    settings.GOOGLE_SHEET_NAME: FinancialRecord.HEADERS,
    settings.RECEIPT_SHEET_NAME: Receipt.HEADERS,
    settings.AUDIT_LOG_SHEET_NAME: AuditLogEntry.HEADERS,
}


@lru_cache
def get_sheets_client() -> SheetsClient:
    return build_sheets_client(settings, headers=SHEET_HEADERS)


@lru_cache
def get_drive_client() -> DriveClient:
    return build_drive_client(settings)


def get_audit_log_service(sheets: SheetsClient = Depends(get_sheets_client)) -> AuditLogService:
    return AuditLogService(sheets)


def get_transaction_service(
    sheets: SheetsClient = Depends(get_sheets_client),
    audit: AuditLogService = Depends(get_audit_log_service),
) -> TransactionService:
    return TransactionService(sheets, audit)


def get_cash_in_hand_service(sheets: SheetsClient = Depends(get_sheets_client)) -> CashInHandService:
    return CashInHandService(sheets)


def get_receipt_service(
    sheets: SheetsClient = Depends(get_sheets_client),
    transactions: TransactionService = Depends(get_transaction_service),
) -> ReceiptService:
    return ReceiptService(sheets, transactions)
