from sqlalchemy import Column, Enum, Integer, String, DateTime
from sqlalchemy.sql import func
import enum
import secrets
import string
from app.core.database import Base


class UserRole(str, enum.Enum):
    super_admin = "Super Admin"
    admin = "Admin"
    basic_user = "Basic User"


class UserStatus(str, enum.Enum):
    active = "active"
    disabled = "disabled"


ADMIN_ROLES = (UserRole.super_admin, UserRole.admin)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.basic_user)
    status = Column(Enum(UserStatus), nullable=False, default=UserStatus.active)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @staticmethod
    def generate_uid() -> str:
        """Generate a short unique user id"""
        random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits)
                              for _ in range(8))
        return f"USR-{random_part}"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def display_name(self) -> str:
        """Name written into the sheets' created/updated-by columns."""
        return self.name or self.email

    def __repr__(self):
        return f"<User(uid='{self.uid}', email='{self.email}', role='{self.role}')>"
