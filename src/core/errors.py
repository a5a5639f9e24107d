"""Errores del cliente.

Por qué una jerarquía mínima:
- La CLI solo necesita distinguir "falló la API" (toast rojo) de "el formulario
  no es válido" (mensajes por campo). El resto del detalle viaja en atributos.
- Los adaptadores propagan; solo el borde (CLI) captura y presenta.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError


class ApiError(Exception):
    """Fallo HTTP/red devuelto por el backend o por el transporte."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    def __str__(self) -> str:
        if self.status_code:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


class AuthenticationError(ApiError):
    """401 sin token o con refresh fallido."""


class NotFoundError(ApiError):
    """404 del backend."""


class TransportError(ApiError):
    """Fallo de red/timeout tras agotar reintentos."""


class FormValidationError(ValueError):
    """Rechazo síncrono de un formulario antes de enviarlo.

    `errors` mapea campo -> lista de mensajes legibles.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        flat = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in errors.items())
        super().__init__(flat or "Formulario inválido")

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "FormValidationError":
        errors: dict[str, list[str]] = {}
        for item in exc.errors():
            loc = ".".join(str(part) for part in item.get("loc", ())) or "__root__"
            message = str(item.get("msg", "invalid"))
            # pydantic antepone "Value error, " a los ValueError de validadores propios.
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            errors.setdefault(loc, []).append(message)
        return cls(errors)
