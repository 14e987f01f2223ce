"""FastAPI router aggregation."""

from fastapi import APIRouter

from api.agent import router as agent_router
from api.users import router as users_router

api_router = APIRouter()

api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(agent_router, prefix="/agent", tags=["agent"])
