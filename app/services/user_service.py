from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from app.core.config import settings
from app.models.user import User, UserRole, UserStatus
from app.core.security import get_password_hash, verify_password
from app.logger_config import logger


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by database ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email."""
    return db.query(User).filter(User.email == email.lower()).first()


def get_user_by_uid(db: Session, uid: str) -> Optional[User]:
    """Get user by uid (e.g., 'USR-ABC12345')."""
    return db.query(User).filter(User.uid == uid).first()


def find_user_by_name_or_email(db: Session, value: str) -> Optional[User]:
    """Sheets store people by display name or email; resolve either."""
    if not value:
        return None
    if "@" in value:
        return get_user_by_email(db, value)
    return db.query(User).filter(User.name == value).first()


def is_super_admin_email(email: str) -> bool:
    return (email or "").lower() in settings.super_admin_emails


def get_all_users(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    search: Optional[str] = None
) -> tuple[List[User], int]:
    """Get all users with optional filtering."""
    query = db.query(User)

    if role:
        query = query.filter(User.role == role)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (User.name.ilike(search_term)) |
            (User.email.ilike(search_term)) |
            (User.uid.ilike(search_term))
        )

    total = query.count()
    users = query.order_by(User.created_at).offset(skip).limit(limit).all()

    return users, total


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.basic_user,
) -> User:
    """Create a new user. Allow-listed emails always become Super Admin."""
    email = email.lower()
    existing_user = get_user_by_email(db, email)
    if existing_user:
        raise ValueError("User with this email already exists")

    if is_super_admin_email(email):
        role = UserRole.super_admin

    # Generate unique uid
    uid = User.generate_uid()
    while get_user_by_uid(db, uid):
        uid = User.generate_uid()

    user = User(
        uid=uid,
        email=email,
        password_hash=get_password_hash(password),
        name=name,
        role=role,
        status=UserStatus.active,
    )
    db.add(user)

    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise ValueError("Failed to create user. User ID or email may already exist.")


def update_user_role(db: Session, uid: str, role: UserRole, acting_user: User) -> Optional[User]:
    """Assign a role. Nobody changes their own role and allow-listed emails stay Super Admin."""
    user = get_user_by_uid(db, uid)
    if not user:
        return None

    if user.id == acting_user.id:
        raise ValueError("You cannot change your own role.")
    if is_super_admin_email(user.email) and role != UserRole.super_admin:
        raise ValueError("This account is always a Super Admin")

    user.role = role
    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating user role: {str(e)}")
        raise ValueError("Failed to update user role.")


def change_password(
    db: Session,
    user_id: int,
    old_password: str,
    new_password: str
) -> bool:
    """Change user password."""
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    if not verify_password(old_password, user.password_hash):
        raise ValueError("Invalid old password")

    user.password_hash = get_password_hash(new_password)

    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error changing password: {str(e)}")
        raise ValueError("Failed to change password.")


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
