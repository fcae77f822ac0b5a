from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.common.exceptions import PermissionDeniedError
from app.core.config import settings
from app.integrations.google_sheets import SheetsClient
from app.logger_config import logger
from app.models.transaction import FinancialRecord, TransactionStatus, TransactionType
from app.models.user import User
from app.services.audit_log_service import AuditLogService
from app.services.row_store import RowStore, StoredRow
from app.utils.timestamps import now_string

# Columns compared (and labelled) in "Edit Record" audit rows
AUDITED_FIELDS = OrderedDict(
    [
        ("account", "Account"),
        ("date", "Date"),
        ("type", "Type"),
        ("who", "Who"),
        ("amount", "Amount"),
        ("description", "Description"),
        ("status", "Status"),
        ("take_put", "Take/Put"),
        ("remark", "Remark"),
    ]
)


def parse_record_date(value: str) -> Optional[date]:
    """Dates are usually ISO, but rows typed into the sheet by hand may be D/M/Y."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


class TransactionService:
    """
    Income/expense records kept in the Transaction sheet.
    """

    def __init__(self, sheets: SheetsClient, audit: AuditLogService, sheet_name: str = None):
        self.store = RowStore(sheets, sheet_name or settings.GOOGLE_SHEET_NAME, FinancialRecord)
        self.audit = audit

    # ================= READ ===================

    def list_records(
        self,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> List[StoredRow]:
        entries = self.store.read_entries()

        if type is not None:
            entries = [e for e in entries if e.record.type == type.value]
        if status is not None:
            entries = [e for e in entries if e.record.status == status.value]
        if start_date is not None or end_date is not None:
            filtered = []
            for e in entries:
                d = parse_record_date(e.record.date)
                if d is None:
                    continue
                if start_date is not None and d < start_date:
                    continue
                if end_date is not None and d > end_date:
                    continue
                filtered.append(e)
            entries = filtered
        if search and search.strip():
            term = search.strip().lower()
            entries = [
                e for e in entries
                if term in e.record.who.lower()
                or term in e.record.description.lower()
                or term in e.record.remark.lower()
            ]
        return entries

    def get_record(self, key: str) -> StoredRow:
        return self.store.locate(key)

    # ================= WRITE ===================

    def create_record(
        self,
        account: str,
        record_date: date,
        type: TransactionType,
        who: str,
        amount: Any,
        description: str,
        created_by: str,
        remark: Optional[str] = None,
        take_put: bool = False,
    ) -> FinancialRecord:
        """Append a new record; status always starts as Pending."""
        now = now_string()
        record = FinancialRecord(
            account=account,
            date=record_date.isoformat(),
            type=type.value,
            who=who,
            amount=float(amount),
            description=description,
            status=TransactionStatus.pending.value,
            take_put=take_put,
            remark=remark or "",
            created_date=now,
            created_by=created_by,
            last_user_update=created_by,
            last_date_update=now,
        )
        record = self.store.append(record)
        logger.info(f"Created record {record.key} in {self.store.sheet_name} by {created_by}")
        return record

    def _check_can_edit(self, stored: StoredRow, user: User) -> None:
        if user.is_admin:
            return
        record = stored.record
        if record.created_by not in (user.name, user.email):
            raise PermissionDeniedError("You can only edit records you created")
        if record.is_approved:
            raise PermissionDeniedError("Approved records can only be edited by an admin")

    def update_record(
        self,
        key: str,
        changes: Dict[str, Any],
        user: User,
        expected_etag: Optional[str] = None,
    ) -> StoredRow:
        """
        Overwrite the editable columns of one row.

        Fields missing from `changes` keep their on-sheet value; created and
        approved columns are never touched here. One "Edit Record" audit row
        lists the columns that actually changed. A status in `changes` is
        admin-only and goes through `update_status`.
        """
        current = self.store.locate(key)
        self._check_can_edit(current, user)

        changes = {k: v for k, v in changes.items() if v is not None}
        new_status = changes.pop("status", None)
        if new_status is not None and not user.is_admin:
            raise PermissionDeniedError("Only an admin can change a record's status")

        changed_by = changes.pop("last_user_update", None) or user.display_name
        if isinstance(changes.get("date"), date):
            changes["date"] = changes["date"].isoformat()
        for name in ("type", "account"):
            if hasattr(changes.get(name), "value"):
                changes[name] = changes[name].value
        if "amount" in changes:
            changes["amount"] = float(changes["amount"])
        changes["last_user_update"] = changed_by
        changes["last_date_update"] = now_string()

        before, after = self.store.update_row(key, changes, expected_etag=expected_etag)
        logger.info(f"Updated record {key} by {changed_by}")

        self._audit_edit(before.record, after.record, changed_by)

        # Approval cells and the "Update Status" audit row come from the status path
        if new_status is not None:
            after, _ = self.update_status(key, TransactionStatus(new_status), user)
        return after

    def _audit_edit(self, old: FinancialRecord, new: FinancialRecord, changed_by: str) -> None:
        old_row = dict(zip(AUDITED_FIELDS, _audit_values(old)))
        new_row = dict(zip(AUDITED_FIELDS, _audit_values(new)))
        changed = [f for f in AUDITED_FIELDS if old_row[f] != new_row[f]]
        if not changed:
            return

        self.audit.record(
            user=changed_by,
            action="Edit Record",
            object_key=new.key,
            field=", ".join(AUDITED_FIELDS[f] for f in changed),
            old=", ".join(f"{AUDITED_FIELDS[f]}: {old_row[f]}" for f in changed),
            new=", ".join(f"{AUDITED_FIELDS[f]}: {new_row[f]}" for f in changed),
            detail=", ".join(f"{label}: {new_row[f]}" for f, label in AUDITED_FIELDS.items()),
        )

    def update_status(
        self,
        key: str,
        status: TransactionStatus,
        user: User,
        approved_by: Optional[str] = None,
    ) -> tuple:
        """
        Move a record between Pending and Approved.

        Returns (stored row, changed). Setting the status a record already
        has writes nothing and appends no audit row.
        """
        current = self.store.locate(key)
        old_status = current.record.status
        if old_status == status.value:
            logger.info(f"Record {key} already {status.value}, nothing to update")
            return current, False

        now = now_string()
        changes: Dict[str, Any] = {
            "status": status.value,
            "last_user_update": user.display_name,
            "last_date_update": now,
        }
        approver = approved_by or user.display_name
        if status == TransactionStatus.approved:
            changes["approved_date"] = now
            changes["approved_by"] = approver

        _, after = self.store.set_cells(key, changes)
        logger.info(f"Record {key} status {old_status} -> {status.value} by {user.display_name}")

        self.audit.record(
            user=user.display_name,
            action="Update Status",
            object_key=key,
            field="Status",
            old=old_status,
            new=status.value,
            detail=f"Approved by {approver}" if status == TransactionStatus.approved else "",
        )
        return after, True

    def delete_record(self, key: str, user: User) -> FinancialRecord:
        record = self.store.delete_row(key)
        logger.info(f"Deleted record {key} by {user.display_name}")
        self.audit.record(
            user=user.display_name,
            action="Delete Record",
            object_key=key,
            detail=f"{record.type} {record.amount} {record.description}",
        )
        return record

    # ================= DASHBOARD ===================

    def stats(self) -> Dict[str, Any]:
        """Totals for the dashboard plus a month-by-month breakdown with cumulative net."""
        records = self.store.read_all()

        total_income = Decimal("0")
        total_expense = Decimal("0")
        months: Dict[str, Dict[str, Decimal]] = {}
        pending = approved = 0

        for r in records:
            amount = Decimal(str(r.amount))
            if r.type == TransactionType.income.value:
                total_income += amount
            elif r.type == TransactionType.expense.value:
                total_expense += amount

            if r.status == TransactionStatus.approved.value:
                approved += 1
            else:
                pending += 1

            d = parse_record_date(r.date)
            if d is None:
                continue
            bucket = months.setdefault(f"{d.year}-{d.month:02d}", {"income": Decimal("0"), "expense": Decimal("0")})
            if r.type == TransactionType.income.value:
                bucket["income"] += amount
            elif r.type == TransactionType.expense.value:
                bucket["expense"] += amount

        monthly = []
        cumulative = Decimal("0")
        for month in sorted(months):
            bucket = months[month]
            net = bucket["income"] - bucket["expense"]
            cumulative += net
            monthly.append(
                {
                    "month": month,
                    "income": float(bucket["income"]),
                    "expense": float(bucket["expense"]),
                    "net": float(net),
                    "cumulative": float(cumulative),
                }
            )

        return {
            "total_income": float(total_income),
            "total_expense": float(total_expense),
            "net": float(total_income - total_expense),
            "record_count": len(records),
            "pending_count": pending,
            "approved_count": approved,
            "monthly": monthly,
        }


def _audit_values(record: FinancialRecord) -> List[str]:
    return [FinancialRecord.format_value(getattr(record, f)) for f in AUDITED_FIELDS]
