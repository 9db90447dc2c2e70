"""Read-only user lookups.

Every lookup returns the matching ``User`` or ``None``. The ``*_any_account``
variants cross tenant boundaries and are meant for trusted internal flows
such as password reset by email.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chat_accounts.models.user import User
from chat_accounts.services.provisioning import profile_provisioner, settings_provisioner


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def find_by_id(session: AsyncSession, user_id: int, account_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id, User.account_id == account_id))
    return result.scalar_one_or_none()


async def find_by_id_any_account(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


async def find_user_by_email(session: AsyncSession, email: str | None, account_id: int) -> User | None:
    if not email:
        return None
    result = await session.execute(
        select(User).where(User.account_id == account_id, User.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def find_user_by_email_any_account(session: AsyncSession, email: str | None) -> User | None:
    """Return the oldest user with this address in any account."""

    users = await list_users_by_email(session, email)
    return users[0] if users else None


async def list_users_by_email(session: AsyncSession, email: str | None) -> list[User]:
    if not email:
        return []
    result = await session.execute(select(User).where(User.email == normalize_email(email)).order_by(User.id))
    return list(result.scalars().all())


async def find_by_email_confirmation_token(session: AsyncSession, token: str | None) -> User | None:
    if not token:
        return None
    result = await session.execute(select(User).where(User.email_confirmation_token == token))
    return result.scalar_one_or_none()


async def find_by_password_reset_token(session: AsyncSession, token: str | None) -> User | None:
    if not token:
        return None
    result = await session.execute(select(User).where(User.password_reset_token == token))
    return result.scalar_one_or_none()


async def get_user_info(session: AsyncSession, user_id: int) -> User | None:
    """Return the user with profile and settings attached, creating either if missing."""

    if await find_by_id_any_account(session, user_id) is None:
        return None

    await profile_provisioner.get_or_create(session, user_id)
    await settings_provisioner.get_or_create(session, user_id)

    # Reload so the user is fresh even if provisioning had to roll back.
    result = await session.execute(
        select(User)
        .options(selectinload(User.profile), selectinload(User.settings))
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
