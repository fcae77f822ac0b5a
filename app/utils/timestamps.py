from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.core.config import settings

SHEET_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_now() -> datetime:
    return datetime.now(ZoneInfo(settings.APP_TIMEZONE))


def now_string() -> str:
    """Timestamp written into created/approved/updated columns, in the group's local time."""
    return local_now().strftime(SHEET_TIMESTAMP_FORMAT)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def file_timestamp() -> str:
    """ISO time safe for file names (':' and '.' replaced)."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
