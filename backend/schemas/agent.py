"""Agent and conversation schemas.

Request and response bodies use camelCase keys (``userId``,
``conversationId``, ``createdAt``) for compatibility with existing clients.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

_camel = {"populate_by_name": True}


class UserRef(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)

    model_config = _camel


class AskRequest(UserRef):
    question: str = Field(min_length=1)
    conversation_id: str | None = Field(None, alias="conversationId")


class AskResponse(BaseModel):
    answer: str
    conversation_id: str = Field(alias="conversationId")

    model_config = _camel


class NewConversationResponse(BaseModel):
    conversation_id: str = Field(alias="conversationId")

    model_config = _camel


class MessageOut(BaseModel):
    question: str
    answer: str


class ConversationOut(BaseModel):
    id: str
    user: str = Field(validation_alias=AliasChoices("user", "user_id"))
    summary: str
    messages: list[MessageOut]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"from_attributes": True, "populate_by_name": True}
