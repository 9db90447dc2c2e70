"""Pydantic schemas for user operations."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .profile import ProfileRead, SettingsRead

Role = Literal["user", "admin"]
Availability = Literal["active", "disabled", "archived"]


class AccountCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)


class AccountRead(AccountCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserBase(BaseModel):
    email: EmailStr
    role: Role = "user"

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class UserRead(UserBase):
    id: int
    account_id: int
    email_confirmed_at: datetime | None = None
    disabled_at: datetime | None = None
    archived_at: datetime | None = None
    availability: Availability
    verification: Literal["unconfirmed", "confirmed"]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserInfoRead(UserRead):
    profile: ProfileRead
    settings: SettingsRead


class RoleUpdate(BaseModel):
    """Permitted fields for a role transition."""

    role: Role

    model_config = ConfigDict(extra="forbid")


class AvailabilityUpdate(BaseModel):
    """Permitted fields for an availability transition."""

    availability: Availability

    model_config = ConfigDict(extra="forbid")


class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=8, max_length=128)

    model_config = ConfigDict(extra="forbid")
