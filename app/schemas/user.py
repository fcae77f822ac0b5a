from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
from datetime import datetime
from app.models.user import UserRole, UserStatus


class UserBase(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.basic_user

    model_config = ConfigDict(from_attributes=True)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6, max_length=100)


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserResponse(UserBase):
    uid: str
    status: UserStatus
    created_at: Optional[datetime] = None


class UserListResponse(BaseModel):
    total: int
    users: list[UserResponse]


class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=6)
    new_password: str = Field(..., min_length=6, max_length=100)
