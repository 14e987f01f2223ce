"""Agent API — ask questions and browse stored conversations."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.agent import (
    AskRequest,
    AskResponse,
    ConversationOut,
    NewConversationResponse,
    UserRef,
)
from services.agent import AgentGateway, get_agent_gateway
from services.conversations import create_conversation, list_for_user
from services.resolution import ask_and_record

router = APIRouter()


def _ask(db: Session, gateway: AgentGateway, user_id: str, question: str, conversation_id: str | None = None):
    answer, conversation = ask_and_record(db, gateway, user_id, question, conversation_id)
    return AskResponse(answer=answer, conversation_id=conversation.id)


@router.post("/conversations/new", response_model=NewConversationResponse, status_code=201)
def new_conversation(payload: UserRef, db: Session = Depends(get_db)):
    """Start an empty conversation for a user."""
    conversation = create_conversation(db, payload.user_id)
    return NewConversationResponse(conversation_id=conversation.id)


@router.get("/conversations/{user_id}", response_model=list[ConversationOut])
def get_conversations(user_id: str, db: Session = Depends(get_db)):
    """All conversations of a user, newest first."""
    return [ConversationOut.model_validate(c) for c in list_for_user(db, user_id)]


@router.post("/ask", response_model=AskResponse, responses={400: {"description": "Validation error"}})
def ask(
    payload: AskRequest,
    db: Session = Depends(get_db),
    gateway: AgentGateway = Depends(get_agent_gateway),
):
    """Ask the agent a question.

    The exchange is added to ``conversationId`` when it resolves, otherwise to
    the user's latest conversation, otherwise to a new one.
    """
    return _ask(db, gateway, payload.user_id, payload.question, payload.conversation_id)


@router.post("/weather/{city}", response_model=AskResponse)
def weather(
    city: str,
    payload: UserRef,
    db: Session = Depends(get_db),
    gateway: AgentGateway = Depends(get_agent_gateway),
):
    return _ask(db, gateway, payload.user_id, f"What is the weather in {city}?")


@router.post("/local/{name}", response_model=AskResponse)
def local_lookup(
    name: str,
    payload: UserRef,
    db: Session = Depends(get_db),
    gateway: AgentGateway = Depends(get_agent_gateway),
):
    return _ask(db, gateway, payload.user_id, f"Fetch info for user {name}")
