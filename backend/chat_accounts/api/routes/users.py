"""User info, profile, settings and state transition endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from chat_accounts.api.errors import unwrap
from chat_accounts.core.dependencies import get_db
from chat_accounts.models.user import User
from chat_accounts.schemas.profile import ProfileRead, ProfileUpdate, SettingsRead, SettingsUpdate
from chat_accounts.schemas.user import AvailabilityUpdate, RoleUpdate, UserInfoRead, UserRead
from chat_accounts.services import account_state, directory
from chat_accounts.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await directory.find_by_id_any_account(session, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/{user_id}/info", response_model=UserInfoRead)
async def get_user_info(user_id: int, session: AsyncSession = Depends(get_db)) -> UserInfoRead:
    user = await directory.get_user_info(session, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserInfoRead.model_validate(user)


@router.put("/{user_id}/profile", response_model=ProfileRead)
async def update_profile(user_id: int, payload: ProfileUpdate, session: AsyncSession = Depends(get_db)) -> ProfileRead:
    profile = unwrap(await user_service.update_user_profile(session, user_id, payload.model_dump(exclude_unset=True)))
    return ProfileRead.model_validate(profile)


@router.put("/{user_id}/settings", response_model=SettingsRead)
async def update_settings(
    user_id: int, payload: SettingsUpdate, session: AsyncSession = Depends(get_db)
) -> SettingsRead:
    user_settings = unwrap(
        await user_service.update_user_settings(session, user_id, payload.model_dump(exclude_unset=True))
    )
    return SettingsRead.model_validate(user_settings)


@router.put("/{user_id}/role", response_model=UserRead)
async def update_role(user_id: int, payload: RoleUpdate, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = await _get_user_or_404(session, user_id)
    return UserRead.model_validate(unwrap(await account_state.set_role(session, user, payload.role)))


@router.put("/{user_id}/availability", response_model=UserRead)
async def update_availability(
    user_id: int, payload: AvailabilityUpdate, session: AsyncSession = Depends(get_db)
) -> UserRead:
    user = await _get_user_or_404(session, user_id)
    return UserRead.model_validate(unwrap(await account_state.set_availability(session, user, payload.availability)))
