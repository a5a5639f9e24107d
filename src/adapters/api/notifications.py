"""Canales de notificación (`/config/notifications/channels`).

Cada canal se guarda con su propio PUT; los secretos (password, auth_token,
secret) nunca vienen del servidor, así que los formularios arrancan vacíos en
esos campos.
"""

from __future__ import annotations

from core.domain.admin import NotificationChannels, SMSChannel, SMTPChannel, WebhookChannel
from core.domain.models import OperationResult
from core.interfaces import ApiTransport
from core.services.forms import SMSConfigRequest, SMTPConfigRequest, WebhookConfigRequest

_BASE = "/config/notifications/channels"


def smtp_form_from(channel: SMTPChannel) -> SMTPConfigRequest:
    """Formulario SMTP precargado con la config actual (sin password)."""

    return SMTPConfigRequest(
        enabled=channel.enabled,
        host=channel.host or "smtp.gmail.com",
        port=channel.port or 587,
        user=channel.user or "",
        use_tls=channel.use_tls,
        from_email=channel.from_email or "",
        from_name=channel.from_name or "",
    )


def sms_form_from(channel: SMSChannel) -> SMSConfigRequest:
    return SMSConfigRequest(
        enabled=channel.enabled,
        provider=channel.provider or "twilio",
        account_sid=channel.account_sid or "",
        from_number=channel.from_number or "",
    )


def webhook_form_from(channel: WebhookChannel) -> WebhookConfigRequest:
    return WebhookConfigRequest(
        enabled=channel.enabled,
        url=channel.url or "",
        timeout=channel.timeout or 30,
    )


class NotificationsApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._api = transport

    async def get_channels(self) -> NotificationChannels:
        return await self._api.fetch_one("GET", _BASE, NotificationChannels)

    async def update_smtp(self, form: SMTPConfigRequest) -> SMTPChannel:
        return await self._api.fetch_one("PUT", f"{_BASE}/smtp", SMTPChannel, json=form.to_payload())

    async def update_sms(self, form: SMSConfigRequest) -> SMSChannel:
        return await self._api.fetch_one("PUT", f"{_BASE}/sms", SMSChannel, json=form.to_payload())

    async def update_webhook(self, form: WebhookConfigRequest) -> WebhookChannel:
        return await self._api.fetch_one("PUT", f"{_BASE}/webhook", WebhookChannel, json=form.to_payload())

    async def test_smtp(self) -> OperationResult:
        return await self._api.fetch_one("POST", f"{_BASE}/smtp/test", OperationResult)

    async def test_webhook(self) -> OperationResult:
        return await self._api.fetch_one("POST", f"{_BASE}/webhook/test", OperationResult)
