from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from app.common.exceptions import AppError
from app.core.dependencies import get_cash_in_hand_service, get_current_active_user, require_admin
from app.logger_config import logger
from app.models.user import User
from app.schemas.cash_in_hand import (
    CashAdjustmentCreate,
    CashBalanceSet,
    CashInHandBalanceResponse,
    CashInHandCreateResponse,
    CashInHandHistoryResponse,
    CashInHandRecordResponse,
)
from app.services.cash_in_hand_service import CashInHandService

router = APIRouter()


@router.get("", response_model=CashInHandBalanceResponse)
def get_cash_in_hand(
    current_user: User = Depends(get_current_active_user),
    service: CashInHandService = Depends(get_cash_in_hand_service),
):
    """Current balance: the sum of every adjustment row (0 before the sheet exists)."""
    try:
        balance, count = service.balance()
        return CashInHandBalanceResponse(cash_in_hand=balance, count=count)
    except AppError:
        raise
    except Exception as e:
        logger.exception("Failed to read cash in hand")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to read cash in hand", "details": str(e)},
        )


@router.get("/history", response_model=CashInHandHistoryResponse)
def get_cash_in_hand_history(
    current_user: User = Depends(get_current_active_user),
    service: CashInHandService = Depends(get_cash_in_hand_service),
):
    records = service.history()
    balance, _ = service.balance()
    return CashInHandHistoryResponse(
        cash_in_hand=balance,
        records=[CashInHandRecordResponse(**asdict(r)) for r in records],
    )


@router.post("", response_model=CashInHandCreateResponse, status_code=status.HTTP_201_CREATED)
def add_cash_adjustment(
    data: CashAdjustmentCreate,
    current_user: User = Depends(require_admin),
    service: CashInHandService = Depends(get_cash_in_hand_service),
):
    """Append a signed adjustment; the sheet is created on first use."""
    try:
        record = service.add_adjustment(
            amount=data.amount,
            created_by=current_user.display_name,
            entry_date=data.date,
            type=data.type,
            description=data.description or "",
        )
        balance, _ = service.balance()
        return CashInHandCreateResponse(record=CashInHandRecordResponse(**asdict(record)), cash_in_hand=balance)
    except AppError:
        raise
    except Exception as e:
        logger.exception("Failed to add cash in hand entry")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to add cash in hand entry", "details": str(e)},
        )


@router.put("", response_model=CashInHandCreateResponse)
def set_cash_in_hand(
    data: CashBalanceSet,
    current_user: User = Depends(require_admin),
    service: CashInHandService = Depends(get_cash_in_hand_service),
):
    """Record the adjustment that brings the balance to `targetBalance`."""
    try:
        record, previous = service.set_balance(
            target=data.target_balance,
            created_by=current_user.display_name,
            entry_date=data.date,
            description=data.description or "Balance correction",
        )
        balance, _ = service.balance()
        return CashInHandCreateResponse(
            record=CashInHandRecordResponse(**asdict(record)),
            cash_in_hand=balance,
            previous_balance=previous,
        )
    except AppError:
        raise
    except Exception as e:
        logger.exception("Failed to set cash in hand")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to set cash in hand", "details": str(e)},
        )
