"""Lazy profile/settings provisioning, including the duplicate-insert race."""
from __future__ import annotations

import asyncio
import logging

import pytest
from sqlalchemy import func, select

from chat_accounts.core.errors import NotFound, ValidationError
from chat_accounts.core.results import Err, Ok
from chat_accounts.models.user import UserProfile, UserSettings
from chat_accounts.schemas.profile import ProfileUpdate
from chat_accounts.services import users as user_service
from chat_accounts.services.provisioning import (
    LazyResourceProvisioner,
    ResourceKind,
    get_or_create,
    profile_provisioner,
    settings_provisioner,
)


async def _count(session, model, user_id: int) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(model.user_id == user_id))
    return result.scalar_one()


class BlindFirstReadProvisioner(LazyResourceProvisioner):
    """Reports the row as missing on the first read, like a request that lost the race."""

    def __init__(self) -> None:
        super().__init__(UserProfile, ProfileUpdate, ResourceKind.PROFILE)
        self.reads = 0

    async def find(self, session, user_id):
        self.reads += 1
        if self.reads == 1:
            return None
        return await super().find(session, user_id)


@pytest.mark.asyncio
async def test_first_access_creates_profile_with_user_attached(session, user):
    profile = await profile_provisioner.get_or_create(session, user.id)

    assert profile.user_id == user.id
    assert profile.user.email == "a@x.com"
    assert profile.full_name is None

    again = await profile_provisioner.get_or_create(session, user.id)
    assert again.id == profile.id
    assert await _count(session, UserProfile, user.id) == 1


@pytest.mark.asyncio
async def test_settings_are_created_with_defaults(session, user):
    user_settings = await get_or_create(session, user.id, "settings")

    assert isinstance(user_settings, UserSettings)
    assert user_settings.email_alert_on_new_message is False
    assert user_settings.email_alert_on_new_conversation is True


@pytest.mark.asyncio
async def test_unknown_resource_kind_is_rejected(session, user):
    with pytest.raises(ValidationError) as excinfo:
        await get_or_create(session, user.id, "avatar")
    assert "resource_kind" in excinfo.value.fields


@pytest.mark.asyncio
async def test_concurrent_first_access_settles_on_one_row(session_factory, session, user):
    async def provision() -> int:
        async with session_factory() as own_session:
            profile = await profile_provisioner.get_or_create(own_session, user.id)
            return profile.id

    ids = await asyncio.gather(*(provision() for _ in range(5)))

    assert len(set(ids)) == 1
    assert await _count(session, UserProfile, user.id) == 1


@pytest.mark.asyncio
async def test_losing_insert_falls_back_to_existing_row(session_factory, session, user, caplog):
    winner = await profile_provisioner.get_or_create(session, user.id)
    provisioner = BlindFirstReadProvisioner()

    caplog.set_level(logging.INFO, logger="chat_accounts.services.provisioning")
    async with session_factory() as other_session:
        profile = await provisioner.get_or_create(other_session, user.id)
        assert profile.user.id == user.id

    assert profile.id == winner.id
    assert provisioner.reads == 2
    assert "Recovered concurrent profile provisioning" in caplog.text
    assert await _count(session, UserProfile, user.id) == 1


@pytest.mark.asyncio
async def test_provisioning_for_missing_user_is_not_found(session):
    with pytest.raises(NotFound):
        await settings_provisioner.get_or_create(session, 4242)

    result = await user_service.get_user_profile(session, 4242)
    assert isinstance(result, Err)
    assert isinstance(result.error, NotFound)


@pytest.mark.asyncio
async def test_update_profile_creates_and_applies_partial_changes(session, user):
    result = await user_service.update_user_profile(session, user.id, {"display_name": "Ada"})
    assert isinstance(result, Ok)
    assert result.value.display_name == "Ada"

    result = await user_service.update_user_profile(session, user.id, {"full_name": "Ada Lovelace"})
    profile = result.unwrap()
    assert profile.display_name == "Ada"
    assert profile.full_name == "Ada Lovelace"
    assert await _count(session, UserProfile, user.id) == 1


@pytest.mark.asyncio
async def test_update_profile_reports_field_level_causes(session, user):
    result = await user_service.update_user_profile(
        session, user.id, {"profile_photo_url": "not a url", "nickname": "ada"}
    )

    assert isinstance(result, Err)
    assert isinstance(result.error, ValidationError)
    assert set(result.error.fields) == {"profile_photo_url", "nickname"}
    # Validation runs before provisioning.
    assert await _count(session, UserProfile, user.id) == 0


@pytest.mark.asyncio
async def test_update_settings(session, user):
    result = await user_service.update_user_settings(session, user.id, {"email_alert_on_new_message": True})

    user_settings = result.unwrap()
    assert user_settings.email_alert_on_new_message is True
    assert user_settings.email_alert_on_new_conversation is True


@pytest.mark.asyncio
async def test_deleted_profile_is_reprovisioned_on_next_access(session, user):
    profile = (await user_service.update_user_profile(session, user.id, {"display_name": "Ada"})).unwrap()

    assert isinstance(await user_service.delete_user_profile(session, profile), Ok)
    assert await _count(session, UserProfile, user.id) == 0

    fresh = (await user_service.get_user_profile(session, user.id)).unwrap()
    assert fresh.display_name is None


@pytest.mark.asyncio
async def test_delete_settings(session, user):
    user_settings = (await user_service.get_user_settings(session, user.id)).unwrap()

    assert isinstance(await user_service.delete_user_settings(session, user_settings), Ok)
    assert await _count(session, UserSettings, user.id) == 0
