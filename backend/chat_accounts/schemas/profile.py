"""Pydantic schemas for user profile and settings resources."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=255)
    display_name: str | None = Field(default=None, max_length=255)
    profile_photo_url: str | None = Field(default=None, max_length=1024, pattern=r"^https?://\S+$")
    slack_user_id: str | None = Field(default=None, max_length=64)

    model_config = ConfigDict(extra="forbid")


class ProfileRead(BaseModel):
    user_id: int
    full_name: str | None = None
    display_name: str | None = None
    profile_photo_url: str | None = None
    slack_user_id: str | None = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SettingsUpdate(BaseModel):
    email_alert_on_new_message: bool | None = None
    email_alert_on_new_conversation: bool | None = None

    model_config = ConfigDict(extra="forbid")


class SettingsRead(BaseModel):
    user_id: int
    email_alert_on_new_message: bool
    email_alert_on_new_conversation: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
