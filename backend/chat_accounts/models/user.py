"""Database models for users and their lazily provisioned profile and settings."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_accounts.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Identity record with role, verification and soft lifecycle state."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("account_id", "email", name="uq_users_account_id_email"),
        UniqueConstraint("email_confirmation_token", name="uq_users_email_confirmation_token"),
        UniqueConstraint("password_reset_token", name="uq_users_password_reset_token"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), default="user", nullable=False)
    email_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    email_confirmation_token: Mapped[str | None] = mapped_column(String(128), default=None)
    password_reset_token: Mapped[str | None] = mapped_column(String(128), default=None)
    disabled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    profile: Mapped[UserProfile | None] = relationship(
        "UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    settings: Mapped[UserSettings | None] = relationship(
        "UserSettings", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    # Every UPDATE is guarded by the version seen at load time.
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def availability(self) -> str:
        if self.archived_at is not None:
            return "archived"
        if self.disabled_at is not None:
            return "disabled"
        return "active"

    @property
    def verification(self) -> str:
        return "confirmed" if self.email_confirmed_at is not None else "unconfirmed"


class UserProfile(Base):
    """Display data for a user; at most one row per user."""

    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), default=None)
    display_name: Mapped[str | None] = mapped_column(String(255), default=None)
    profile_photo_url: Mapped[str | None] = mapped_column(String(1024), default=None)
    slack_user_id: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user: Mapped[User] = relationship("User", back_populates="profile")


class UserSettings(Base):
    """Notification preferences for a user; at most one row per user."""

    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    email_alert_on_new_message: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_alert_on_new_conversation: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user: Mapped[User] = relationship("User", back_populates="settings")
