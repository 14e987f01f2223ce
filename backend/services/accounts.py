"""Account lifecycle: register, update, delete (with conversation cascade), login."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import AuthError, ConflictError, NotFoundError, StoreError
from models.user import User
from services.conversations import delete_for_user
from services.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email already registered") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to %s", action)
        raise StoreError(str(exc)) from exc


def _email_taken(db: Session, email: str, exclude_id: str | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def register(db: Session, email: str, password: str) -> User:
    """Create a user with a bcrypt-hashed password."""
    email = _normalize_email(email)
    if _email_taken(db, email):
        raise ConflictError("Email already registered")

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    _commit(db, "register user")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def update(db: Session, user_id: str, email: str | None = None, password: str | None = None) -> User:
    """Change only the supplied fields. A new password is re-hashed."""
    user = get_user(db, user_id)

    if email is not None:
        email = _normalize_email(email)
        if email != user.email:
            if _email_taken(db, email, exclude_id=user.id):
                raise ConflictError("Email already registered")
            user.email = email
    if password is not None:
        user.hashed_password = hash_password(password)

    _commit(db, "update user")
    db.refresh(user)
    logger.info("Updated user %s (email=%s, password=%s)", user.id, email is not None, password is not None)
    return user


def delete(db: Session, user_id: str) -> int:
    """Delete a user and every conversation they own in one transaction.

    Returns the number of conversations removed.
    """
    user = get_user(db, user_id)

    db.delete(user)
    removed = delete_for_user(db, user_id)
    _commit(db, "delete user")
    logger.info("Deleted user %s and %d conversation(s)", user_id, removed)
    return removed


def login(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if not user or not verify_password(user.hashed_password, password):
        raise AuthError()
    return user
