"""Account and tenant-scoped user endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from chat_accounts.api.errors import unwrap
from chat_accounts.core.dependencies import get_db
from chat_accounts.schemas.user import AccountCreate, AccountRead, UserCreate, UserRead
from chat_accounts.services import directory
from chat_accounts.services import users as user_service

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("/", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
async def create_account(payload: AccountCreate, session: AsyncSession = Depends(get_db)) -> AccountRead:
    account = unwrap(await user_service.create_account(session, payload.company_name))
    return AccountRead.model_validate(account)


@router.post("/{account_id}/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(account_id: int, payload: UserCreate, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = unwrap(await user_service.create_user(session, account_id, payload.model_dump()))
    return UserRead.model_validate(user)


@router.get("/{account_id}/users", response_model=UserRead)
async def find_user_by_email(
    account_id: int,
    email: str = Query(..., min_length=3),
    session: AsyncSession = Depends(get_db),
) -> UserRead:
    user = await directory.find_user_by_email(session, email, account_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserRead.model_validate(user)


@router.get("/{account_id}/users/{user_id}", response_model=UserRead)
async def get_user(account_id: int, user_id: int, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = await directory.find_by_id(session, user_id, account_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserRead.model_validate(user)
