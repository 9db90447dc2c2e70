"""API router aggregator."""
from fastapi import APIRouter

from chat_accounts.api.routes import accounts, auth, users

api_router = APIRouter(prefix="/api")
api_router.include_router(accounts.router)
api_router.include_router(users.router)
api_router.include_router(auth.router)

__all__ = ["api_router"]
