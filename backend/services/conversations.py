"""Conversation store queries."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import StoreError
from models.conversation import Conversation

logger = logging.getLogger(__name__)


def get_conversation(db: Session, conversation_id: str | None) -> Conversation | None:
    if not conversation_id:
        return None
    return db.get(Conversation, conversation_id)


def latest_for_user(db: Session, user_id: str) -> Conversation | None:
    """Most recently created conversation owned by *user_id*."""
    return (
        db.query(Conversation)
        .filter(Conversation.user_id == user_id)
        .order_by(Conversation.created_at.desc())
        .first()
    )


def list_for_user(db: Session, user_id: str) -> list[Conversation]:
    """All conversations owned by *user_id*, newest first."""
    return (
        db.query(Conversation)
        .filter(Conversation.user_id == user_id)
        .order_by(Conversation.created_at.desc())
        .all()
    )


def create_conversation(db: Session, user_id: str, summary: str = "") -> Conversation:
    """Create an empty conversation for *user_id*."""
    conversation = Conversation(user_id=user_id, summary=summary, messages=[])
    db.add(conversation)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create conversation for user %s", user_id)
        raise StoreError(str(exc)) from exc
    db.refresh(conversation)
    logger.info("Created conversation %s for user %s", conversation.id, user_id)
    return conversation


def delete_for_user(db: Session, user_id: str) -> int:
    """Stage deletion of every conversation owned by *user_id*. Caller commits."""
    return (
        db.query(Conversation)
        .filter(Conversation.user_id == user_id)
        .delete(synchronize_session=False)
    )
