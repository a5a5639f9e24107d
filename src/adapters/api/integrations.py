"""Integraciones externas (`/integrations`).

Todas las lecturas exigen cuerpo: una respuesta vacía es un error
("API response is empty"), igual que en la página de configuración.
"""

from __future__ import annotations

from typing import Any

from core.domain.admin import Integration, IntegrationLog, IntegrationStats
from core.domain.models import OperationResult, StandardListResponse
from core.errors import ApiError
from core.interfaces import ApiTransport
from core.services.forms import IntegrationForm, IntegrationUpdateForm

_EMPTY = "API response is empty"


class IntegrationsApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._api = transport

    async def list(self, integration_type: str | None = None) -> StandardListResponse[Integration]:
        return await self._api.fetch_list("/integrations", Integration, params={"type": integration_type})

    async def get(self, integration_id: str) -> Integration:
        return await self._api.fetch_one("GET", f"/integrations/{integration_id}", Integration)

    async def create(self, form: IntegrationForm) -> Integration:
        return await self._api.fetch_one("POST", "/integrations", Integration, json=form.to_payload())

    async def update(self, integration_id: str, form: IntegrationUpdateForm) -> Integration:
        return await self._api.fetch_one(
            "PUT",
            f"/integrations/{integration_id}",
            Integration,
            json=form.to_payload(),
        )

    async def delete(self, integration_id: str) -> str:
        raw = await self._api.fetch_raw("DELETE", f"/integrations/{integration_id}")
        if raw is None:
            raise ApiError(_EMPTY)
        return str(raw.get("message", "")) if isinstance(raw, dict) else str(raw)

    async def activate(self, integration_id: str, config: dict[str, Any] | None = None) -> Integration:
        return await self._api.fetch_one(
            "POST",
            f"/integrations/{integration_id}/activate",
            Integration,
            json={"config": config or {}},
        )

    async def deactivate(self, integration_id: str) -> Integration:
        return await self._api.fetch_one("POST", f"/integrations/{integration_id}/deactivate", Integration)

    async def test(self, integration_id: str) -> OperationResult:
        return await self._api.fetch_one("POST", f"/integrations/{integration_id}/test", OperationResult)

    async def stats(self) -> IntegrationStats:
        return await self._api.fetch_one("GET", "/integrations/stats", IntegrationStats)

    async def logs(
        self,
        integration_id: str,
        *,
        level: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> StandardListResponse[IntegrationLog]:
        params = {"level": level, "limit": limit or None, "offset": offset or None}
        return await self._api.fetch_list(
            f"/integrations/{integration_id}/logs",
            IntegrationLog,
            params=params,
        )
