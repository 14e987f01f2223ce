"""SQLAlchemy models — re-export all."""

from models.user import User  # noqa: F401
from models.conversation import Conversation  # noqa: F401
