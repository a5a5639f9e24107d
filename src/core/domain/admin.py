"""Modelos de configuración administrativa: roles, usuarios, notificaciones,
integraciones.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from core.domain.models import ApiModel


class RoleWithPermissions(ApiModel):
    role: str
    permissions: list[str] = Field(default_factory=list)


class UserRole(ApiModel):
    role: str
    granted_by: str | None = None
    created_at: datetime | None = None


class UserRolesResponse(ApiModel):
    """`GET /auth/roles/{user_id}` no usa el sobre estándar."""

    roles: list[UserRole] = Field(default_factory=list)
    total: int = 0


class User(ApiModel):
    id: str
    email: str
    full_name: str | None = None
    is_active: bool = True


class UserWithRole(User):
    user_role: UserRole


class SMTPChannel(ApiModel):
    enabled: bool = False
    host: str = "smtp.gmail.com"
    port: int = 587
    user: str = ""
    use_tls: bool = True
    from_email: str = ""
    from_name: str | None = None


class SMSChannel(ApiModel):
    enabled: bool = False
    provider: str = "twilio"
    account_sid: str | None = None
    from_number: str | None = None


class WebhookChannel(ApiModel):
    enabled: bool = False
    url: str = ""
    timeout: int = 30


class NotificationChannels(ApiModel):
    smtp: SMTPChannel = Field(default_factory=SMTPChannel)
    sms: SMSChannel = Field(default_factory=SMSChannel)
    webhook: WebhookChannel = Field(default_factory=WebhookChannel)


class Integration(ApiModel):
    id: str
    tenant_id: str | None = None
    name: str
    type: str
    status: str = "inactive"
    config: dict[str, Any] | None = None
    last_sync_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class IntegrationLog(ApiModel):
    id: str
    integration_id: str | None = None
    level: str = "info"
    message: str
    created_at: datetime | None = None


class IntegrationStats(ApiModel):
    total_integrations: int = 0
    active_integrations: int = 0
    inactive_integrations: int = 0
    error_integrations: int = 0


class AuthTokens(ApiModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"


class CurrentUser(ApiModel):
    id: str
    email: str
    full_name: str | None = None
    tenant_id: str | None = None
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
