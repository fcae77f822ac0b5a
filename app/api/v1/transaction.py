from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.common.exceptions import AppError
from app.core.dependencies import (
    get_current_active_user,
    get_db,
    get_transaction_service,
    require_admin,
)
from app.models.transaction import TransactionStatus, TransactionType
from app.models.user import User
from app.schemas.transaction import (
    DeleteResponse,
    StatusUpdate,
    StatusUpdateResponse,
    TransactionCreate,
    TransactionListResponse,
    TransactionRecordResponse,
    TransactionResponse,
    TransactionStatsResponse,
    TransactionUpdate,
)
from app.services.notification_service import notify_status_change
from app.services.row_store import StoredRow
from app.services.transaction_service import TransactionService
from app.logger_config import logger

router = APIRouter()


def _to_response(stored: StoredRow) -> TransactionResponse:
    return TransactionResponse(**asdict(stored.record), etag=stored.etag)


def _etag_from_header(if_match: Optional[str]) -> Optional[str]:
    if not if_match or if_match.strip() == "*":
        return None
    return if_match.strip().removeprefix("W/").strip('"')


def _server_error(message: str, e: Exception) -> HTTPException:
    logger.exception(message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": message, "details": str(e)},
    )


@router.get("/read", response_model=TransactionListResponse)
def read_records(
    type: Optional[TransactionType] = Query(None),
    record_status: Optional[TransactionStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """List every transaction in sheet order, optionally filtered."""
    try:
        entries = service.list_records(
            type=type,
            status=record_status,
            start_date=start_date,
            end_date=end_date,
            search=search,
        )
        return TransactionListResponse(total=len(entries), records=[_to_response(e) for e in entries])
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Failed to read financial records", e)


@router.get("/read/{key}", response_model=TransactionRecordResponse)
def read_record(
    key: str,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """One transaction by key; the ETag header can be sent back as If-Match on update."""
    stored = service.get_record(key)
    response.headers["ETag"] = f'"{stored.etag}"'
    return TransactionRecordResponse(record=_to_response(stored))


@router.get("/stats", response_model=TransactionStatsResponse)
def record_stats(
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """Dashboard totals and monthly income/expense."""
    try:
        return TransactionStatsResponse(**service.stats())
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Failed to compute financial stats", e)


@router.post("/create", response_model=TransactionRecordResponse)
def create_record(
    data: TransactionCreate,
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """Append a transaction. Status is always Pending until an admin approves it."""
    try:
        record = service.create_record(
            account=data.account.value,
            record_date=data.date,
            type=data.type,
            who=data.who,
            amount=data.amount,
            description=data.description,
            remark=data.remark,
            take_put=data.take_put,
            created_by=(data.created_by if current_user.is_admin else None) or current_user.display_name,
        )
        return TransactionRecordResponse(record=TransactionResponse(**asdict(record)))
    except AppError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to create financial record", e)


@router.put("/update/{key}", response_model=TransactionRecordResponse)
def update_record(
    key: str,
    data: TransactionUpdate,
    response: Response,
    if_match: Optional[str] = Header(None),
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Overwrite one transaction row. Send If-Match with the record's etag to
    fail with 409 instead of overwriting someone else's newer edit.
    """
    try:
        stored = service.update_record(
            key,
            data.model_dump(exclude_unset=True),
            user=current_user,
            expected_etag=_etag_from_header(if_match),
        )
        response.headers["ETag"] = f'"{stored.etag}"'
        return TransactionRecordResponse(record=_to_response(stored))
    except AppError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to update record", e)


def _update_status(
    data: StatusUpdate,
    current_user: User,
    service: TransactionService,
    db: Session,
) -> StatusUpdateResponse:
    try:
        stored, changed = service.update_status(
            data.key, data.status, user=current_user, approved_by=data.approved_by
        )
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Failed to update record status", e)

    if changed:
        try:
            notify_status_change(db, stored.record, current_user.display_name)
        except Exception:
            logger.exception(f"Notification for {data.key} failed")

    return StatusUpdateResponse(
        message=f"Record status updated to: {data.status.value}" if changed
        else f"Record status already {data.status.value}",
        status=data.status,
        changed=changed,
        record=_to_response(stored),
    )


@router.put("/update-record-status", response_model=StatusUpdateResponse)
def update_record_status(
    data: StatusUpdate,
    current_user: User = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
    db: Session = Depends(get_db),
):
    """Approve (or return to pending) a transaction; stamps the approver and writes an audit row."""
    return _update_status(data, current_user, service, db)


@router.post("/update-record-status", response_model=StatusUpdateResponse)
def update_record_status_post(
    data: StatusUpdate,
    current_user: User = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
    db: Session = Depends(get_db),
):
    return _update_status(data, current_user, service, db)


@router.delete("/delete/{key}", response_model=DeleteResponse)
def delete_record(
    key: str,
    current_user: User = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
):
    """Remove the transaction's row from the sheet (rows below move up)."""
    try:
        service.delete_record(key, current_user)
        return DeleteResponse(message="Record deleted successfully", deleted_key=key)
    except AppError:
        raise
    except Exception as e:
        raise _server_error("Failed to delete record", e)
