from dataclasses import dataclass

from app.models.sheet_record import SheetRecord

VISIBLE = "1"
CLEARED = "0"


@dataclass
class AuditLogEntry(SheetRecord):
    HEADERS = ["Time", "User", "Action", "Object", "Field", "Old", "New", "Detail", "Status"]

    time: str = ""
    user: str = ""
    action: str = ""
    object: str = ""
    field: str = ""
    old: str = ""
    new: str = ""
    detail: str = ""
    # Soft-delete flag: "1" visible, "0" cleared
    status: str = VISIBLE

    @property
    def is_visible(self) -> bool:
        return self.status != CLEARED
