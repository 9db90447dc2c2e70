"""Password reset and email confirmation endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chat_accounts.api.errors import unwrap
from chat_accounts.core.dependencies import get_db, get_mail_provider
from chat_accounts.core.results import Err
from chat_accounts.schemas.auth import Accepted, EmailConfirmation, PasswordResetConfirm, PasswordResetRequest
from chat_accounts.schemas.user import UserRead
from chat_accounts.services import account_state, directory
from chat_accounts.services import users as user_service
from chat_accounts.services.mail import MailProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/password-reset", response_model=Accepted, status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(
    payload: PasswordResetRequest,
    session: AsyncSession = Depends(get_db),
    mailer: MailProvider = Depends(get_mail_provider),
) -> Accepted:
    # Same response whether or not the address exists.
    user_ids = [user.id for user in await directory.list_users_by_email(session, payload.email)]
    for user_id in user_ids:
        # Refetch, as a failed commit for an earlier user expires every loaded row.
        user = await directory.find_by_id_any_account(session, user_id)
        if user is None:
            continue
        result = await account_state.request_password_reset(session, user, mailer)
        if isinstance(result, Err):
            logger.warning("Password reset for user %s failed: %s", user_id, result.error.code)
    return Accepted()


@router.post("/password-reset/confirm", response_model=UserRead)
async def confirm_password_reset(payload: PasswordResetConfirm, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = unwrap(await account_state.consume_password_reset(session, payload.token, payload.password))
    return UserRead.model_validate(user)


@router.post("/email-confirmation", response_model=UserRead)
async def confirm_email(payload: EmailConfirmation, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = unwrap(await user_service.confirm_email_by_token(session, payload.token))
    return UserRead.model_validate(user)
