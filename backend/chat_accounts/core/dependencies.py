"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from chat_accounts.db.session import get_session
from chat_accounts.services.mail import MailgunProvider, MailProvider


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_session() as session:
        yield session


async def get_mail_provider() -> MailProvider:
    return MailgunProvider()
