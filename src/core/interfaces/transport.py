"""Contrato del transporte que usan los recursos de la API.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- `adapters.http_client.ApiClient` lo cumple; en tests se puede sustituir por
  cualquier objeto con los mismos métodos.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from core.domain.models import StandardListResponse

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class ApiTransport(Protocol):
    """Operaciones mínimas sobre el sobre `{data, meta, error}`.

    Reglas de diseño:
    - Todo es asíncrono porque hace I/O (HTTP).
    - Los errores se propagan como `core.errors.ApiError`.
    """

    async def fetch_one(self, method: str, path: str, model: type[M], **kwargs: Any) -> M:
        ...

    async def fetch_list(
        self,
        path: str,
        model: type[M],
        *,
        params: dict[str, Any] | None = None,
    ) -> StandardListResponse[M]:
        ...

    async def fetch_raw(self, method: str, path: str, **kwargs: Any) -> Any:
        ...

    async def send(self, method: str, path: str, **kwargs: Any) -> None:
        ...

    async def download(
        self,
        path: str,
        output_path: Path,
        *,
        params: dict[str, Any] | None = None,
    ) -> Path:
        ...
