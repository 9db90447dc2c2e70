"""Outbound email delivery for account security flows."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from chat_accounts.core.config import Settings, get_settings
from chat_accounts.models.user import User

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Raised when an email could not be handed to the provider."""


@dataclass(slots=True)
class MailMessage:
    to: str
    subject: str
    body: str


class MailProvider(Protocol):
    async def send(self, message: MailMessage) -> None:
        ...


class MailgunProvider:
    """Send plain-text mail through the Mailgun HTTP API."""

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    async def send(self, message: MailMessage) -> None:
        settings = self._settings
        if not settings.mailgun_api_key or not settings.mailgun_domain:
            raise NotificationError("Mailgun is not configured")

        url = f"{settings.mailgun_base_url.rstrip('/')}/{settings.mailgun_domain}/messages"
        data = {
            "from": settings.mail_from,
            "to": message.to,
            "subject": message.subject,
            "text": message.body,
        }
        try:
            async with httpx.AsyncClient(timeout=settings.mail_timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, auth=("api", settings.mailgun_api_key), data=data)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Mailgun request failed: {exc}") from exc
        if response.status_code >= 400:
            raise NotificationError(f"Mailgun response {response.status_code}: {response.text}")


def password_reset_message(user: User, settings: Settings | None = None) -> MailMessage:
    settings = settings or get_settings()
    link = f"{settings.frontend_url.rstrip('/')}/reset?token={user.password_reset_token}"
    body = (
        "Someone requested a password reset for your account.\n\n"
        f"Follow this link to choose a new password:\n{link}\n\n"
        "If you did not request this, you can ignore this email."
    )
    return MailMessage(to=user.email, subject=f"Reset your {settings.app_name} password", body=body)


async def send_password_reset_email(provider: MailProvider, user: User) -> None:
    try:
        await provider.send(password_reset_message(user))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to deliver password reset email for user %s", user.id)
        raise NotificationError(str(exc)) from exc
