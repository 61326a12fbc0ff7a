"""Transactional email client.

Messages are rendered here and posted to an HTTP email API. The client is
disabled when no API key is configured; callers that send fire-and-forget
notifications log failures and carry on.
"""

from __future__ import annotations

import asyncio
import html
import logging
from dataclasses import dataclass
from datetime import datetime

import httpx

from townsquare.core.settings import settings

logger = logging.getLogger(__name__)


class EmailError(RuntimeError):
    """Base exception raised for email delivery failures."""


class EmailDisabledError(EmailError):
    """Raised when a message is sent while email delivery is not configured."""


@dataclass(frozen=True)
class EmailConfig:
    """Connection settings for the email API."""

    api_url: str
    api_key: str | None
    sender: str
    timeout_seconds: float

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.api_url)


def load_email_config() -> EmailConfig:
    """Build configuration object from global settings."""
    return EmailConfig(
        api_url=settings.email_api_url,
        api_key=settings.email_api_key,
        sender=settings.email_from,
        timeout_seconds=float(settings.email_http_timeout_seconds),
    )


@dataclass(frozen=True)
class RsvpConfirmation:
    """Details rendered into an RSVP confirmation email."""

    to: str
    user_name: str | None
    event_title: str
    community_name: str
    start_time: datetime
    location: str | None
    event_url: str


def render_rsvp_confirmation(message: RsvpConfirmation) -> tuple[str, str, str]:
    """Return subject, HTML body and text body for an RSVP confirmation."""
    when = message.start_time.strftime("%A, %B %d, %Y at %H:%M UTC")
    greeting = f"Hi {message.user_name}," if message.user_name else "Hi,"
    where = message.location or "See event page"
    subject = f"You're going to {message.event_title}"
    text = (
        f"{greeting}\n\n"
        f"You're confirmed for {message.event_title} in {message.community_name}.\n"
        f"When: {when}\nWhere: {where}\n\n{message.event_url}\n"
    )
    body = (
        f"<p>{html.escape(greeting)}</p>"
        f"<p>You're confirmed for <strong>{html.escape(message.event_title)}</strong> "
        f"in {html.escape(message.community_name)}.</p>"
        f"<p>When: {html.escape(when)}<br>Where: {html.escape(where)}</p>"
        f'<p><a href="{html.escape(message.event_url)}">View event</a></p>'
    )
    return subject, body, text


@dataclass(frozen=True)
class CommunityInviteMessage:
    """Details rendered into a community invitation email."""

    to: str
    community_name: str
    community_description: str | None
    inviter_name: str
    accept_url: str
    expires_in_days: int
    reminder: bool = False


def render_community_invite(message: CommunityInviteMessage) -> tuple[str, str, str]:
    """Return subject, HTML body and text body for a community invitation."""
    subject = f"You're invited to join {message.community_name}"
    if message.reminder:
        subject = f"Reminder: {subject}"
    about = f"\n{message.community_description}\n" if message.community_description else ""
    text = (
        f"{message.inviter_name} invited you to join {message.community_name}.\n{about}\n"
        f"Accept the invitation: {message.accept_url}\n"
        f"This link expires in {message.expires_in_days} days.\n"
    )
    body = (
        f"<p>{html.escape(message.inviter_name)} invited you to join "
        f"<strong>{html.escape(message.community_name)}</strong>.</p>"
    )
    if message.community_description:
        body += f"<p>{html.escape(message.community_description)}</p>"
    body += (
        f'<p><a href="{html.escape(message.accept_url)}">Accept invitation</a></p>'
        f"<p>This link expires in {message.expires_in_days} days.</p>"
    )
    return subject, body, text


class EmailClient:
    """HTTP client wrapper for the email delivery API."""

    def __init__(self, config: EmailConfig | None = None) -> None:
        self.config = config or load_email_config()
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise EmailDisabledError("Email delivery is not configured")
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    async def send(self, *, to: str, subject: str, html_body: str, text_body: str) -> None:
        """Deliver one message.

        Raises:
            EmailDisabledError: If no API key is configured.
            EmailError: If the API rejects the message or cannot be reached.
        """
        client = await self._ensure_client()
        try:
            response = await client.post(
                self.config.api_url,
                json={
                    "from": self.config.sender,
                    "to": [to],
                    "subject": subject,
                    "html": html_body,
                    "text": text_body,
                },
                headers={"Authorization": f"Bearer {self.config.api_key}"},
            )
        except httpx.HTTPError as exc:
            raise EmailError(f"Email request failed: {exc}") from exc
        if response.is_error:
            raise EmailError(f"Email API responded with {response.status_code}")

    async def send_rsvp_confirmation(self, message: RsvpConfirmation) -> bool:
        """Send an RSVP confirmation without propagating delivery failures.

        Returns:
            True if the message was accepted, False if it was skipped or failed.
        """
        subject, html_body, text_body = render_rsvp_confirmation(message)
        try:
            await self.send(
                to=message.to, subject=subject, html_body=html_body, text_body=text_body
            )
        except EmailDisabledError:
            logger.debug("Email disabled; skipping RSVP confirmation to %s", message.to)
            return False
        except EmailError:
            logger.exception("Failed to send RSVP confirmation to %s", message.to)
            return False
        return True

    async def send_community_invite(self, message: CommunityInviteMessage) -> bool:
        """Send an invitation email; failures are logged and reported as False."""
        subject, html_body, text_body = render_community_invite(message)
        try:
            await self.send(
                to=message.to, subject=subject, html_body=html_body, text_body=text_body
            )
        except EmailDisabledError:
            logger.debug("Email disabled; skipping invite to %s", message.to)
            return False
        except EmailError:
            logger.exception("Failed to send community invite to %s", message.to)
            return False
        return True

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _EmailClientSingleton:
    """Singleton wrapper for EmailClient."""

    _instance: EmailClient | None = None

    @classmethod
    def get_instance(cls) -> EmailClient:
        if cls._instance is None:
            cls._instance = EmailClient()
        return cls._instance


def get_email_client() -> EmailClient:
    """Return a singleton email client instance."""
    return _EmailClientSingleton.get_instance()
