"""HTTP surface exercised through the ASGI app with test dependencies."""
from __future__ import annotations

import importlib
import warnings
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from chat_accounts.api import errors as api_errors
from chat_accounts.core.dependencies import get_db, get_mail_provider
from chat_accounts.core.errors import ValidationError
from chat_accounts.main import app
from chat_accounts.services.directory import find_by_id_any_account


@pytest_asyncio.fixture
async def client(session_factory, mailer) -> AsyncIterator[httpx.AsyncClient]:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_provider] = lambda: mailer
    try:
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def _create_user(client: httpx.AsyncClient, email: str = "a@x.com") -> tuple[int, dict]:
    response = await client.post("/api/accounts/", json={"company_name": "Acme Support"})
    assert response.status_code == 201
    account_id = response.json()["id"]
    response = await client.post(
        f"/api/accounts/{account_id}/users", json={"email": email, "password": "correct horse"}
    )
    assert response.status_code == 201
    return account_id, response.json()


@pytest.mark.asyncio
async def test_create_and_look_up_user(client):
    account_id, created = await _create_user(client)

    assert created["availability"] == "active"
    assert created["verification"] == "unconfirmed"
    assert "password_hash" not in created
    assert "email_confirmation_token" not in created

    response = await client.get(f"/api/accounts/{account_id}/users", params={"email": "a@x.com"})
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]

    response = await client.get(f"/api/accounts/{account_id + 1}/users", params={"email": "a@x.com"})
    assert response.status_code == 404

    response = await client.get(f"/api/accounts/{account_id}/users/{created['id']}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(client):
    account_id, _ = await _create_user(client)

    response = await client.post(
        f"/api/accounts/{account_id}/users", json={"email": "a@x.com", "password": "correct horse"}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_user_info_includes_profile_and_settings(client):
    _, created = await _create_user(client)

    response = await client.get(f"/api/users/{created['id']}/info")

    assert response.status_code == 200
    body = response.json()
    assert body["profile"]["user_id"] == created["id"]
    assert body["settings"]["email_alert_on_new_message"] is False

    assert (await client.get("/api/users/9999/info")).status_code == 404


@pytest.mark.asyncio
async def test_update_profile_and_settings(client):
    _, created = await _create_user(client)

    response = await client.put(f"/api/users/{created['id']}/profile", json={"display_name": "Ada"})
    assert response.status_code == 200
    assert response.json()["display_name"] == "Ada"

    response = await client.put(f"/api/users/{created['id']}/profile", json={"profile_photo_url": "ftp://nope"})
    assert response.status_code == 422

    response = await client.put(f"/api/users/{created['id']}/settings", json={"email_alert_on_new_message": True})
    assert response.status_code == 200
    assert response.json()["email_alert_on_new_message"] is True

    response = await client.put("/api/users/9999/settings", json={"email_alert_on_new_message": True})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_role_and_availability_transitions(client):
    _, created = await _create_user(client)
    user_url = f"/api/users/{created['id']}"

    assert (await client.put(f"{user_url}/role", json={"role": "superuser"})).status_code == 422
    response = await client.put(f"{user_url}/role", json={"role": "admin"})
    assert response.json()["role"] == "admin"

    response = await client.put(f"{user_url}/availability", json={"availability": "disabled"})
    assert response.json()["availability"] == "disabled"
    response = await client.put(f"{user_url}/availability", json={"availability": "active"})
    assert response.json()["availability"] == "active"

    response = await client.put(f"{user_url}/availability", json={"availability": "archived"})
    assert response.json()["availability"] == "archived"
    response = await client.put(f"{user_url}/availability", json={"availability": "active"})
    assert response.status_code == 422
    assert "availability" in response.json()["detail"]["fields"]


@pytest.mark.asyncio
async def test_password_reset_flow(client, mailer):
    _, created = await _create_user(client)

    response = await client.post("/api/auth/password-reset", json={"email": "A@x.com"})
    assert response.status_code == 202
    assert len(mailer.messages) == 1
    token = mailer.messages[0].body.split("token=", 1)[1].split()[0]

    payload = {"token": token, "password": "brand new secret"}
    response = await client.post("/api/auth/password-reset/confirm", json=payload)
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]

    response = await client.post("/api/auth/password-reset/confirm", json=payload)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_password_reset_for_unknown_email_looks_the_same(client, mailer):
    response = await client.post("/api/auth/password-reset", json={"email": "nobody@x.com"})

    assert response.status_code == 202
    assert mailer.messages == []


@pytest.mark.asyncio
async def test_password_reset_delivery_failure_still_accepted(client, failing_mailer):
    await _create_user(client)
    app.dependency_overrides[get_mail_provider] = lambda: failing_mailer

    response = await client.post("/api/auth/password-reset", json={"email": "a@x.com"})

    assert response.status_code == 202


@pytest.mark.asyncio
async def test_email_confirmation(client, session_factory):
    _, created = await _create_user(client)
    async with session_factory() as session:
        token = (await find_by_id_any_account(session, created["id"])).email_confirmation_token

    response = await client.post("/api/auth/email-confirmation", json={"token": token})
    assert response.status_code == 200
    assert response.json()["verification"] == "confirmed"

    response = await client.post("/api/auth/email-confirmation", json={"token": "unknown"})
    assert response.status_code == 404


def test_error_mapping_uses_current_status_names():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        module = importlib.reload(api_errors)

    error = module.http_error(ValidationError.for_field("role", "invalid role"))
    assert error.status_code == 422
    assert error.detail["fields"] == {"role": ["invalid role"]}
