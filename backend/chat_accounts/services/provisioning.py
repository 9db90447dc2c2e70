"""Get-or-create handling for the one-per-user profile and settings rows."""
from __future__ import annotations

import enum
import logging
from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chat_accounts.core.errors import NotFound, ValidationError
from chat_accounts.db.session import commit_or_conflict
from chat_accounts.models.user import UserProfile, UserSettings
from chat_accounts.schemas.profile import ProfileUpdate, SettingsUpdate

logger = logging.getLogger(__name__)

ResourceT = TypeVar("ResourceT", UserProfile, UserSettings)


class ResourceKind(str, enum.Enum):
    PROFILE = "profile"
    SETTINGS = "settings"


class LazyResourceProvisioner(Generic[ResourceT]):
    """Fetch a user's child row, inserting a default one on first access.

    The unique index on ``user_id`` decides which of several concurrent
    first accesses creates the row. Losers see an ``IntegrityError`` and read
    back the winner's row instead of failing.
    """

    def __init__(self, model: type[ResourceT], update_schema: type[BaseModel], kind: ResourceKind) -> None:
        self.model = model
        self.update_schema = update_schema
        self.kind = kind

    async def find(self, session: AsyncSession, user_id: int) -> ResourceT | None:
        result = await session.execute(
            select(self.model)
            .options(selectinload(self.model.user))
            .where(self.model.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, session: AsyncSession, user_id: int) -> ResourceT:
        resource = await self.find(session, user_id)
        if resource is not None:
            return resource

        session.add(self.model(user_id=user_id))
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            resource = await self.find(session, user_id)
            if resource is None:
                # Nothing to fall back to, so the insert failed on the user reference.
                raise NotFound(f"User {user_id} not found") from None
            logger.info("Recovered concurrent %s provisioning for user %s", self.kind.value, user_id)
            return resource

        logger.info("Provisioned %s for user %s", self.kind.value, user_id)
        resource = await self.find(session, user_id)
        if resource is None:
            raise NotFound(f"{self.kind.value.capitalize()} for user {user_id} disappeared after insert")
        return resource

    def validate(self, attrs: dict) -> dict:
        try:
            update = self.update_schema.model_validate(attrs)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc
        return update.model_dump(exclude_unset=True)

    async def update(self, session: AsyncSession, user_id: int, attrs: dict) -> ResourceT:
        changes = self.validate(attrs)
        resource = await self.get_or_create(session, user_id)
        for field, value in changes.items():
            setattr(resource, field, value)
        await commit_or_conflict(
            session, f"Could not update {self.kind.value} for user {user_id}", reload=(resource,)
        )
        logger.info("Updated %s for user %s (%s)", self.kind.value, user_id, ", ".join(sorted(changes)) or "no changes")
        return await self.find(session, user_id) or resource

    async def delete(self, session: AsyncSession, resource: ResourceT) -> None:
        user_id = resource.user_id
        await session.delete(resource)
        await commit_or_conflict(session, f"Could not delete {self.kind.value} for user {user_id}")
        logger.info("Deleted %s for user %s", self.kind.value, user_id)


profile_provisioner: LazyResourceProvisioner[UserProfile] = LazyResourceProvisioner(UserProfile, ProfileUpdate, ResourceKind.PROFILE)
settings_provisioner: LazyResourceProvisioner[UserSettings] = LazyResourceProvisioner(
    UserSettings, SettingsUpdate, ResourceKind.SETTINGS
)

PROVISIONERS: dict[ResourceKind, LazyResourceProvisioner] = {
    ResourceKind.PROFILE: profile_provisioner,
    ResourceKind.SETTINGS: settings_provisioner,
}


def provisioner_for(kind: ResourceKind | str) -> LazyResourceProvisioner:
    try:
        return PROVISIONERS[ResourceKind(kind)]
    except ValueError as exc:
        raise ValidationError.for_field("resource_kind", f"unknown resource kind {kind!r}") from exc


async def get_or_create(session: AsyncSession, user_id: int, kind: ResourceKind | str):
    return await provisioner_for(kind).get_or_create(session, user_id)
