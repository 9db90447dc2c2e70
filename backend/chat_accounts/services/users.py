"""User service functions for account creation and profile/settings access."""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_accounts.core.errors import Conflict, NotFound, ValidationError
from chat_accounts.core.results import Err, as_result
from chat_accounts.core.security import PasswordHasher, TokenIssuer
from chat_accounts.db.session import commit_or_conflict
from chat_accounts.models.account import Account
from chat_accounts.models.user import User, UserProfile, UserSettings
from chat_accounts.schemas.user import AccountCreate, UserCreate
from chat_accounts.services import account_state
from chat_accounts.services.directory import find_by_email_confirmation_token, find_user_by_email
from chat_accounts.services.provisioning import profile_provisioner, settings_provisioner

logger = logging.getLogger(__name__)


@as_result
async def create_account(session: AsyncSession, company_name: str) -> Account:
    try:
        account_in = AccountCreate(company_name=company_name)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc
    account = Account(company_name=account_in.company_name)
    session.add(account)
    await commit_or_conflict(session, "Could not create account")
    logger.info("Created account %s", account.id)
    return account


async def _create_user(
    session: AsyncSession, account_id: int, attrs: dict[str, Any], issuer: TokenIssuer | None
) -> User:
    try:
        user_in = UserCreate.model_validate(attrs)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc

    if await session.get(Account, account_id) is None:
        raise NotFound(f"Account {account_id} not found")
    if await find_user_by_email(session, user_in.email, account_id) is not None:
        raise Conflict("Email is already taken in this account")

    issuer = issuer or TokenIssuer()
    user = User(
        account_id=account_id,
        email=user_in.email,
        password_hash=PasswordHasher.hash(user_in.password),
        role=user_in.role,
        email_confirmation_token=issuer.issue(),
    )
    session.add(user)
    await commit_or_conflict(session, "Could not create user")
    logger.info("Created %s %s in account %s", user.role, user.id, account_id)
    return user


@as_result
async def create_user(
    session: AsyncSession, account_id: int, attrs: dict[str, Any], issuer: TokenIssuer | None = None
) -> User:
    return await _create_user(session, account_id, attrs, issuer)


@as_result
async def create_admin(
    session: AsyncSession, account_id: int, attrs: dict[str, Any], issuer: TokenIssuer | None = None
) -> User:
    return await _create_user(session, account_id, {**attrs, "role": "admin"}, issuer)


async def confirm_email_by_token(session: AsyncSession, token: str):
    user = await find_by_email_confirmation_token(session, token)
    if user is None:
        return Err(NotFound("Email confirmation token is invalid"))
    return await account_state.confirm_email(session, user)


@as_result
async def get_user_profile(session: AsyncSession, user_id: int) -> UserProfile:
    return await profile_provisioner.get_or_create(session, user_id)


@as_result
async def update_user_profile(session: AsyncSession, user_id: int, attrs: dict[str, Any]) -> UserProfile:
    return await profile_provisioner.update(session, user_id, attrs)


@as_result
async def delete_user_profile(session: AsyncSession, profile: UserProfile) -> None:
    await profile_provisioner.delete(session, profile)


@as_result
async def get_user_settings(session: AsyncSession, user_id: int) -> UserSettings:
    return await settings_provisioner.get_or_create(session, user_id)


@as_result
async def update_user_settings(session: AsyncSession, user_id: int, attrs: dict[str, Any]) -> UserSettings:
    return await settings_provisioner.update(session, user_id, attrs)


@as_result
async def delete_user_settings(session: AsyncSession, user_settings: UserSettings) -> None:
    await settings_provisioner.delete(session, user_settings)
