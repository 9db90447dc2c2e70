"""Database session and engine management."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm.exc import StaleDataError

from chat_accounts.core.config import get_settings
from chat_accounts.core.errors import Conflict

logger = logging.getLogger(__name__)

# Unique indexes whose collisions are resolved by minting a new value and retrying.
# SQLite reports the indexed columns, other backends the constraint name.
_RETRYABLE_CONSTRAINTS = (
    "uq_users_password_reset_token",
    "uq_users_email_confirmation_token",
    "users.password_reset_token",
    "users.email_confirmation_token",
)


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine; SQLite connections get foreign key enforcement."""

    engine = create_async_engine(url, future=True, echo=echo)
    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    return engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False, class_=AsyncSession)


_settings = get_settings()
engine = build_engine(_settings.database_url, echo=_settings.database_echo)
async_session_factory = build_session_factory(engine)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Provide a transactional scope around a series of operations."""

    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def is_retryable_violation(exc: IntegrityError) -> bool:
    """Whether the violated constraint is one a fresh token value would satisfy.

    Only the first line of the driver message is inspected; later lines may
    echo the offending values.
    """

    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None) or str(exc.orig).split("\n", 1)[0]
    return any(name in constraint for name in _RETRYABLE_CONSTRAINTS)


async def commit_or_conflict(session: AsyncSession, message: str, reload: Iterable[object] = ()) -> None:
    """Commit the session, turning storage conflicts into ``Conflict``.

    The session is rolled back before the error is raised. Rolling back
    expires every loaded instance, so the persistent ones in ``reload`` are
    refreshed from the database and can be used for a retry.
    """

    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        await _reload(session, reload)
        retryable = is_retryable_violation(exc)
        logger.info("Commit rejected by unique constraint (retryable=%s): %s", retryable, message)
        raise Conflict(message, retryable=retryable) from exc
    except StaleDataError as exc:
        await session.rollback()
        await _reload(session, reload)
        logger.info("Commit rejected by concurrent update: %s", message)
        raise Conflict(f"{message}: record was modified concurrently") from exc


async def _reload(session: AsyncSession, instances: Iterable[object]) -> None:
    for instance in instances:
        await session.refresh(instance)
