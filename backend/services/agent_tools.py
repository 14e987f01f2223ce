"""LangChain tools available to the question-answering agent."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from langchain_core.tools import tool
from sqlalchemy import or_

from config import settings
from models.user import User

logger = logging.getLogger(__name__)


def build_tools(session_factory) -> list:
    """Return the agent's tools. *session_factory* opens a DB session per lookup."""

    @tool
    def get_weather(city: str) -> str:
        """Get the current weather for a given city."""
        url = f"{settings.WEATHER_API_URL.rstrip('/')}/{quote(city)}"
        try:
            resp = httpx.get(url, params={"format": "3"}, timeout=settings.WEATHER_TIMEOUT)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Weather lookup for %r failed: %s", city, e)
            return f"Error: could not fetch the weather for {city}: {e}"
        return resp.text.strip()

    @tool
    def lookup_user(name: str) -> str:
        """Fetch user info from the local database. Input: a user name or email address."""
        needle = name.strip().lower()
        with session_factory() as db:
            user = (
                db.query(User)
                .filter(or_(User.email == needle, User.email.like(f"{needle}@%")))
                .order_by(User.created_at)
                .first()
            )
        if not user:
            return f'No user found with name "{name}"'
        return f"User: {user.email}, id: {user.id}"

    return [get_weather, lookup_user]
