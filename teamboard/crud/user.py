#teamboard/crud/user.py
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from teamboard.models.user import User
from teamboard.core.exceptions import (
    AuthError,
    EmailAlreadyRegistered,
    ValidationError,
)
from teamboard.core.security import get_password_hash, verify_password
import logging

logger = logging.getLogger("TeamBoard.Users")

def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == _normalize_email(email)).first()

def create_user(db: Session, data: dict) -> User:
    """
    Register a new account. The email must not be taken.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")
    email = _normalize_email(data.get("email"))
    if not email:
        raise ValidationError("Email is required")
    password = data.get("password") or ""
    if not password:
        raise ValidationError("Password is required")

    if get_user_by_email(db, email):
        raise EmailAlreadyRegistered()

    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=data.get("role") or "user",
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Registered user {user.id} <{user.email}>")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error while registering {email}: {e}")
        raise EmailAlreadyRegistered()

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Returns the user when the email/password pair matches, otherwise None.
    """
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user

def update_profile(db: Session, user: User, data: dict) -> User:
    """
    Update name/email and optionally the password.
    Changing the password requires the current one. Nothing is applied
    unless every check passes.
    """
    changes = {}
    if data.get("name") is not None:
        name = data["name"].strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        changes["name"] = name

    if data.get("email") is not None:
        email = _normalize_email(data["email"])
        if not email:
            raise ValidationError("Email cannot be empty")
        if email != user.email:
            existing = get_user_by_email(db, email)
            if existing and existing.id != user.id:
                raise EmailAlreadyRegistered()
            changes["email"] = email

    new_password = data.get("new_password")
    if new_password:
        current_password = data.get("current_password")
        if not current_password:
            raise ValidationError("Current password is required to set a new password")
        if not verify_password(current_password, user.password_hash):
            raise AuthError("Current password is incorrect")
        changes["password_hash"] = get_password_hash(new_password)

    for field, value in changes.items():
        setattr(user, field, value)

    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Updated profile for user {user.id}: {sorted(changes)}")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error while updating user {user.id}: {e}")
        raise EmailAlreadyRegistered()
