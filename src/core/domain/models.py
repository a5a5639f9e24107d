"""Modelos comunes del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación y documentación autocontenida (Field) sin acoplar el Core
  a librerías de I/O.
- El backend envuelve todas las respuestas en `{data, meta, error}`; estos
  modelos describen ese sobre una sola vez para todos los módulos.

Nota:
- Estos modelos describen *qué* devuelve la API, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base de todas las entidades reflejadas de la API.

    `extra="ignore"`: campos nuevos del backend no rompen el parseo.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorBody(ApiModel):
    code: str | None = None
    message: str = Field(default="Error desconocido")
    details: Any = None


class ListMeta(ApiModel):
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)
    total_pages: int = Field(default=0, ge=0)
    has_next: bool | None = None
    has_prev: bool | None = None

    @property
    def more_pages(self) -> bool:
        if self.has_next is not None:
            return self.has_next
        return self.page < self.total_pages


class StandardResponse(ApiModel, Generic[T]):
    """Respuesta simple: `{data, message?, error?}`."""

    data: T | None = None
    message: str | None = None
    error: ErrorBody | None = None


class StandardListResponse(ApiModel, Generic[T]):
    """Respuesta de listado: `{data: [...], meta, error?}`."""

    data: list[T] = Field(default_factory=list)
    meta: ListMeta = Field(default_factory=ListMeta)
    error: ErrorBody | None = None


class UserSummary(ApiModel):
    """Usuario embebido en otras entidades (asignado, creador)."""

    id: str
    name: str | None = None
    email: str | None = None
    avatar: str | None = None


class OperationResult(ApiModel):
    """Resultado genérico de pruebas de conexión/operaciones puntuales."""

    success: bool = False
    message: str | None = None
    details: dict[str, Any] | None = None
