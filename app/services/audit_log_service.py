from typing import List

from app.core.config import settings
from app.integrations.google_sheets import SheetsClient
from app.logger_config import logger
from app.models.audit_log import CLEARED, AuditLogEntry
from app.models.user import User
from app.services.row_store import RowStore
from app.utils.timestamps import now_string


class AuditLogService:
    """
    Append-only activity log kept in the audit_log sheet.

    The status column is the only mutable cell: clearing a log writes "0"
    instead of removing the row.
    """

    def __init__(self, sheets: SheetsClient, sheet_name: str = None):
        self.store = RowStore(sheets, sheet_name or settings.AUDIT_LOG_SHEET_NAME, AuditLogEntry)

    def append(
        self,
        user: str,
        action: str,
        object_key: str,
        field: str = "",
        old: str = "",
        new: str = "",
        detail: str = "",
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            time=now_string(),
            user=user,
            action=action,
            object=object_key,
            field=field,
            old=old,
            new=new,
            detail=detail,
        )
        return self.store.append(entry, assign_key=False)

    def record(self, **kwargs) -> bool:
        """Best-effort append: a failure is logged and never reaches the caller."""
        try:
            self.append(**kwargs)
            return True
        except Exception:
            logger.exception(f"Failed to write audit log ({kwargs.get('action')} {kwargs.get('object_key')})")
            return False

    # ================= SCOPE ===================

    @staticmethod
    def _authored_by(entry: AuditLogEntry, user: User) -> bool:
        return entry.user in (user.name, user.email)

    def list_for(self, user: User) -> List[AuditLogEntry]:
        """Admins see every row (cleared too); everyone else sees their own visible rows."""
        entries = self.store.read_all()
        if user.is_admin:
            return entries
        return [e for e in entries if e.is_visible and self._authored_by(e, user)]

    def clear_for(self, user: User) -> int:
        """Soft-delete the caller's scope in one batch update; returns how many rows were cleared."""
        if user.is_admin:
            predicate = lambda e: e.is_visible
        else:
            predicate = lambda e: e.is_visible and self._authored_by(e, user)

        count = self.store.set_column_where("status", CLEARED, predicate)
        logger.info(f"{user.email} cleared {count} audit log rows")
        return count
