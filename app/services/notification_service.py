import smtplib
from email.message import EmailMessage

from sqlalchemy.orm import Session

from app.core.config import settings
from app.logger_config import logger
from app.models.transaction import FinancialRecord
from app.services.user_service import find_user_by_name_or_email


def notify_status_change(db: Session, record: FinancialRecord, changed_by: str) -> bool:
    """
    E-mail the record's creator about a status change.

    Best effort: returns False (and logs) when SMTP is not configured, the
    creator has no known address, or sending fails.
    """
    if not settings.SMTP_HOST:
        logger.info(f"SMTP not configured, skipping notification for {record.key}")
        return False

    if "@" in record.created_by:
        recipient = record.created_by
    else:
        creator = find_user_by_name_or_email(db, record.created_by)
        recipient = creator.email if creator else None
    if not recipient:
        logger.info(f"No e-mail address for creator '{record.created_by}' of {record.key}")
        return False

    message = EmailMessage()
    message["Subject"] = f"Record {record.key} is now {record.status}"
    message["From"] = settings.SMTP_SENDER or settings.SMTP_USERNAME
    message["To"] = recipient
    message.set_content(
        f"Hello,\n\n"
        f"Your {record.type.lower()} record of {record.amount} ({record.description}) "
        f"dated {record.date} was marked {record.status} by {changed_by}.\n"
    )

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
            smtp.starttls()
            if settings.SMTP_USERNAME:
                smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError):
        logger.exception(f"Failed to send status notification for {record.key}")
        return False

    logger.info(f"Status notification for {record.key} sent to {recipient}")
    return True
