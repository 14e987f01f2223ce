"""Conversation model.

Messages are embedded in the row as a JSON list of ``{"question", "answer"}``
objects. The list is append-only: callers assign a new list rather than
mutating in place, so SQLAlchemy sees the change. ``version`` is bumped on
every write; an UPDATE against a stale version raises ``StaleDataError``
instead of overwriting a concurrent append.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from database import Base
from models.user import new_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # Plain indexed reference: conversations are queried by user id on their own.
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    summary: Mapped[str] = mapped_column(String(255), default="")
    messages: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def append_message(self, question: str, answer: str) -> None:
        self.messages = [*(self.messages or []), {"question": question, "answer": answer}]

    def __repr__(self):
        return f"<Conversation {self.id} user={self.user_id} messages={len(self.messages or [])}>"
