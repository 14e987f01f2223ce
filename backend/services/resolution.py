"""Conversation resolution: decide which conversation receives a new exchange.

Every ask-style endpoint goes through :func:`ask_and_record`:

1. A supplied ``conversation_id`` that resolves (and, when ownership is
   enforced, belongs to the caller) is the target.
2. Otherwise the caller's most recently created conversation is the target.
3. Otherwise a new conversation is created, summarised from the question.
4. The question/answer pair is appended and the conversation is committed.

The agent is called before anything is written, and a new conversation is
inserted together with its first message in a single commit.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from config import settings
from errors import StoreError
from models.conversation import Conversation
from services.agent import AgentGateway
from services.conversations import get_conversation, latest_for_user

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 50
SUMMARY_SUFFIX = "..."
MAX_APPEND_ATTEMPTS = 3


def summarize(question: str) -> str:
    return question[:SUMMARY_LENGTH] + SUMMARY_SUFFIX


def resolve_conversation(
    db: Session,
    user_id: str,
    question: str,
    conversation_id: str | None = None,
    *,
    enforce_ownership: bool | None = None,
) -> Conversation:
    """Return the conversation the exchange belongs to.

    A newly created conversation is added to the session but not committed.
    """
    if enforce_ownership is None:
        enforce_ownership = settings.ENFORCE_CONVERSATION_OWNERSHIP

    conversation = get_conversation(db, conversation_id)
    if conversation is not None and enforce_ownership and conversation.user_id != user_id:
        logger.warning(
            "Conversation %s belongs to another user, ignoring it for user %s",
            conversation_id, user_id,
        )
        conversation = None
    elif conversation is None and conversation_id:
        logger.info("Conversation %s not found, falling back to latest for user %s", conversation_id, user_id)

    if conversation is None:
        conversation = latest_for_user(db, user_id)

    if conversation is None:
        conversation = Conversation(user_id=user_id, summary=summarize(question), messages=[])
        db.add(conversation)
        logger.info("Starting a new conversation for user %s", user_id)

    return conversation


def record_exchange(db: Session, conversation: Conversation, question: str, answer: str) -> Conversation:
    """Append one question/answer pair and persist the conversation.

    If another request appended to the same conversation since it was loaded,
    the row is re-read and the pair appended to the fresh message list.
    """
    for attempt in range(1, MAX_APPEND_ATTEMPTS + 1):
        conversation.append_message(question, answer)
        try:
            db.commit()
            break
        except StaleDataError as exc:
            db.rollback()
            logger.warning(
                "Conversation %s changed concurrently (attempt %d/%d)",
                conversation.id, attempt, MAX_APPEND_ATTEMPTS,
            )
            if attempt == MAX_APPEND_ATTEMPTS:
                raise StoreError("Conversation was modified concurrently, please retry") from exc
            db.refresh(conversation)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to save conversation for user %s", conversation.user_id)
            raise StoreError(str(exc)) from exc
    db.refresh(conversation)
    logger.info(
        "Appended message to conversation %s (%d total)",
        conversation.id, len(conversation.messages),
    )
    return conversation


def ask_and_record(
    db: Session,
    gateway: AgentGateway,
    user_id: str,
    question: str,
    conversation_id: str | None = None,
) -> tuple[str, Conversation]:
    """Ask the agent, then store the exchange. Returns ``(answer, conversation)``."""
    answer = gateway.ask(question)
    conversation = resolve_conversation(db, user_id, question, conversation_id)
    return answer, record_exchange(db, conversation, question, answer)
