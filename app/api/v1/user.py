from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.core.dependencies import get_db, get_current_active_user, require_super_admin
from app.models.user import User, UserRole
from app.services.user_service import (
    get_all_users,
    create_user,
    update_user_role,
    change_password
)
from app.schemas.user import (
    UserCreate,
    UserRoleUpdate,
    UserResponse,
    UserListResponse,
    PasswordChange
)
from app.logger_config import logger

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: User = Depends(get_current_active_user),
):
    """
    Get current authenticated user's information, role included.
    """
    return UserResponse.model_validate(current_user)


@router.post("/me/change-password")
def change_own_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        change_password(db, current_user.id, data.old_password, data.new_password)
        logger.info(f"User {current_user.email} changed their password")
        return {"success": True, "message": "Password changed successfully"}
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("", response_model=UserListResponse)
def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    """
    List users for role management. Super Admin only.
    """
    try:
        users, total = get_all_users(db, skip=skip, limit=limit, role=role, search=search)

        return UserListResponse(
            total=total,
            users=[UserResponse.model_validate(user) for user in users]
        )
    except Exception as e:
        logger.exception("Error fetching users")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to fetch users", "details": str(e)}
        )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user_route(
    user_data: UserCreate,
    current_user: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    """
    Create an account. Super Admin only.
    """
    try:
        user = create_user(
            db=db,
            email=user_data.email,
            password=user_data.password,
            name=user_data.name,
            role=user_data.role,
        )

        logger.info(f"User {user.email} created by {current_user.email}")
        return UserResponse.model_validate(user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.exception("Error creating user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to create user", "details": str(e)}
        )


@router.put("/{uid}/role", response_model=UserResponse)
def update_role(
    uid: str,
    data: UserRoleUpdate,
    current_user: User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    """
    Assign a role to another user. Super Admin only; nobody can change their own role.
    """
    try:
        user = update_user_role(db, uid, data.role, acting_user=current_user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    logger.info(f"User {uid} role set to {data.role.value} by {current_user.email}")
    return UserResponse.model_validate(user)
