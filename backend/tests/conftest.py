"""Shared fixtures: a fresh SQLite database per test and recording mailers."""
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chat_accounts import models  # noqa: F401
from chat_accounts.db.base import Base
from chat_accounts.db.session import build_engine, build_session_factory
from chat_accounts.models.account import Account
from chat_accounts.models.user import User
from chat_accounts.services.mail import MailMessage
from chat_accounts.services.users import create_account, create_user


class RecordingMailer:
    def __init__(self) -> None:
        self.messages: list[MailMessage] = []

    async def send(self, message: MailMessage) -> None:
        self.messages.append(message)


class FailingMailer:
    async def send(self, message: MailMessage) -> None:
        raise RuntimeError("smtp relay unavailable")


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def account(session: AsyncSession) -> Account:
    return (await create_account(session, "Acme Support")).unwrap()


@pytest_asyncio.fixture
async def user(session: AsyncSession, account: Account) -> User:
    result = await create_user(session, account.id, {"email": "a@x.com", "password": "correct horse"})
    return result.unwrap()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def failing_mailer() -> FailingMailer:
    return FailingMailer()
