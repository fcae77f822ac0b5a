from dataclasses import asdict

from fastapi import APIRouter, Depends

from app.core.dependencies import get_audit_log_service, get_current_active_user
from app.models.user import User
from app.schemas.audit_log import AuditLogClearResponse, AuditLogListResponse, AuditLogResponse
from app.services.audit_log_service import AuditLogService

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
def read_audit_log(
    current_user: User = Depends(get_current_active_user),
    service: AuditLogService = Depends(get_audit_log_service),
):
    """Admins get every row; other users get their own visible rows."""
    entries = service.list_for(current_user)
    return AuditLogListResponse(logs=[AuditLogResponse(**asdict(e)) for e in entries])


@router.delete("", response_model=AuditLogClearResponse)
def clear_audit_log(
    current_user: User = Depends(get_current_active_user),
    service: AuditLogService = Depends(get_audit_log_service),
):
    """Hide the caller's visible rows. Rows stay in the sheet with status 0."""
    count = service.clear_for(current_user)
    return AuditLogClearResponse(message=f"Cleared {count} log entries", cleared_count=count)
