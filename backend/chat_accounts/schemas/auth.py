"""Schemas for password reset and email confirmation flows."""
from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=8, max_length=128)


class EmailConfirmation(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class Accepted(BaseModel):
    detail: str = "accepted"
