"""Piezas compartidas por todos los comandos.

Por qué aquí:
- Un único punto convierte `ApiError`/`FormValidationError` en un "toast"
  rojo y exit code 1; los adaptadores solo propagan.
- Cada comando abre un `ApiClient` corto dentro de `asyncio.run`.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from adapters.http_client import ApiClient
from adapters.json_exporter import dumps
from core.config import AppSettings
from core.domain.language import Language
from core.errors import ApiError, FormValidationError
from core.services.jobs import JobWatchTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    settings: AppSettings
    language: Language


def get_state(ctx: typer.Context) -> CliState:
    state = ctx.obj
    if not isinstance(state, CliState):
        # Subcomando invocado sin pasar por el callback raíz (p.ej. en tests).
        settings = AppSettings()
        state = CliState(settings=settings, language=settings.default_language)
        ctx.obj = state
    return state


def toast_success(message: str) -> None:
    err_console.print(f"[green]✓[/green] {escape(message)}", highlight=False)


def toast_error(message: str) -> None:
    err_console.print(f"[bold red]✗[/bold red] {escape(message)}", highlight=False)


def toast_warning(message: str) -> None:
    err_console.print(f"[yellow]![/yellow] {escape(message)}", highlight=False)


def handle_errors(func: Callable[..., T]) -> Callable[..., T]:
    """Decorador de comandos: errores esperados -> toast + exit 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except FormValidationError as exc:
            for field, messages in exc.errors.items():
                for message in messages:
                    toast_error(f"{field}: {message}")
            raise typer.Exit(code=1) from None
        except ApiError as exc:
            toast_error(str(exc))
            raise typer.Exit(code=1) from None
        except JobWatchTimeout as exc:
            toast_error(str(exc))
            raise typer.Exit(code=1) from None

    return wrapper


def run_api(state: CliState, action: Callable[[ApiClient], Awaitable[T]]) -> T:
    """Abre un `ApiClient`, ejecuta `action` y lo cierra."""

    async def _runner() -> T:
        async with ApiClient(state.settings) as client:
            return await action(client)

    return asyncio.run(_runner())


def print_json(value: Any) -> None:
    typer.echo(dumps(value))


def confirm_or_abort(message: str, *, yes: bool) -> None:
    if yes:
        return
    if not typer.confirm(message, default=False):
        toast_warning("Operación cancelada")
        raise typer.Exit(code=1)
