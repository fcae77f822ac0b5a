from typing import List

from app.schemas.base import CamelModel


class AuditLogResponse(CamelModel):
    time: str
    user: str
    action: str
    object: str
    field: str
    old: str
    new: str
    detail: str
    status: str


class AuditLogListResponse(CamelModel):
    logs: List[AuditLogResponse]


class AuditLogClearResponse(CamelModel):
    success: bool = True
    message: str
    cleared_count: int
