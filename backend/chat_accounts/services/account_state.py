"""Role, verification, lifecycle and password-reset transitions for users.

Each transition validates an explicit partial-update schema before touching
the row, then commits through :func:`commit_or_conflict`. The ``version_id``
column on ``users`` makes a concurrent write to the same user fail with
``Conflict`` instead of silently overwriting it.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_accounts.core.errors import DeliveryFailure, NotFound, ValidationError
from chat_accounts.core.results import as_result
from chat_accounts.core.security import PasswordHasher, TokenIssuer
from chat_accounts.db.session import commit_or_conflict
from chat_accounts.models.user import User
from chat_accounts.schemas.user import AvailabilityUpdate, PasswordUpdate, RoleUpdate
from chat_accounts.services.directory import find_by_password_reset_token
from chat_accounts.services.mail import MailProvider, NotificationError, send_password_reset_email

logger = logging.getLogger(__name__)

SchemaT = type[BaseModel]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validated(schema: SchemaT, data: dict[str, Any]) -> BaseModel:
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


async def _persist(session: AsyncSession, user: User, changes: dict[str, Any], action: str) -> User:
    if not changes:
        return user
    user_id = user.id
    for field, value in changes.items():
        setattr(user, field, value)
    await commit_or_conflict(session, f"Could not {action} for user {user_id}", reload=(user,))
    return user


@as_result
async def request_password_reset(
    session: AsyncSession,
    user: User,
    mailer: MailProvider,
    issuer: TokenIssuer | None = None,
) -> User:
    """Store a fresh reset token on the user and email the reset link.

    A token collision surfaces as a retryable ``Conflict``. A mail failure
    surfaces as ``DeliveryFailure``; the token is kept either way.
    """

    issuer = issuer or TokenIssuer()
    await _persist(session, user, {"password_reset_token": issuer.issue()}, "issue password reset token")
    logger.info("Issued password reset token for user %s", user.id)

    try:
        await send_password_reset_email(mailer, user)
    except NotificationError as exc:
        raise DeliveryFailure(f"Password reset email could not be delivered: {exc}", user) from exc
    return user


@as_result
async def consume_password_reset(session: AsyncSession, token: str, password: str) -> User:
    """Set a new password for the holder of ``token`` and clear the token.

    An unknown token is reported as ``NotFound`` before the password is checked.
    """

    user = await find_by_password_reset_token(session, token)
    if user is None:
        raise NotFound("Password reset token is invalid or has already been used")
    update = _validated(PasswordUpdate, {"password": password})

    changes = {
        "password_hash": PasswordHasher.hash(update.password),
        "password_reset_token": None,
    }
    await _persist(session, user, changes, "reset password")
    logger.info("Password reset completed for user %s", user.id)
    return user


@as_result
async def confirm_email(session: AsyncSession, user: User) -> User:
    # The confirmation token is left in place; clearing it is the caller's call.
    if user.email_confirmed_at is not None:
        return user
    await _persist(session, user, {"email_confirmed_at": _utcnow()}, "confirm email")
    logger.info("Email confirmed for user %s", user.id)
    return user


@as_result
async def set_role(session: AsyncSession, user: User, role: str) -> User:
    update = _validated(RoleUpdate, {"role": role})
    if user.role == update.role:
        return user
    previous = user.role
    await _persist(session, user, {"role": update.role}, "change role")
    logger.info("Changed role of user %s from %s to %s", user.id, previous, update.role)
    return user


def _availability_changes(user: User, target: str) -> dict[str, Any]:
    current = user.availability
    if current == target:
        return {}
    if current == "archived":
        raise ValidationError.for_field("availability", "archived users cannot be restored or disabled")
    if target == "active":
        return {"disabled_at": None}
    if target == "disabled":
        return {"disabled_at": _utcnow()}
    return {"archived_at": _utcnow()}


@as_result
async def set_availability(session: AsyncSession, user: User, availability: str) -> User:
    update = _validated(AvailabilityUpdate, {"availability": availability})
    previous = user.availability
    changes = _availability_changes(user, update.availability)
    await _persist(session, user, changes, f"set availability to {update.availability}")
    if changes:
        logger.info("Changed availability of user %s from %s to %s", user.id, previous, update.availability)
    return user


async def disable_user(session: AsyncSession, user: User):
    return await set_availability(session, user, "disabled")


async def enable_user(session: AsyncSession, user: User):
    return await set_availability(session, user, "active")


async def archive_user(session: AsyncSession, user: User):
    return await set_availability(session, user, "archived")


async def set_admin_role(session: AsyncSession, user: User):
    return await set_role(session, user, "admin")


async def set_user_role(session: AsyncSession, user: User):
    return await set_role(session, user, "user")
