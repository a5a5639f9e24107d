"""Comandos de sesión: login, logout, whoami."""

from __future__ import annotations

import typer
from rich.table import Table

from adapters.api import AuthApi
from adapters.http_client import ApiClient
from cli.common import console, get_state, handle_errors, print_json, run_api, toast_success
from core.config import get_user_env_file

app = typer.Typer(no_args_is_help=True, help="Inicio y cierre de sesión.")


@app.command()
@handle_errors
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Email del usuario."),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Contraseña."),
) -> None:
    """Inicia sesión y guarda los tokens en la config del usuario."""

    state = get_state(ctx)
    run_api(state, lambda client: AuthApi(client).login(email, password))
    toast_success(f"Sesión iniciada como {email} (tokens en {get_user_env_file()})")


@app.command()
@handle_errors
def logout(ctx: typer.Context) -> None:
    """Borra los tokens guardados."""

    state = get_state(ctx)
    AuthApi(ApiClient(state.settings)).logout()
    toast_success("Sesión cerrada")


@app.command()
@handle_errors
def whoami(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Imprime el JSON de la respuesta."),
) -> None:
    """Muestra el usuario de la sesión actual."""

    state = get_state(ctx)
    user = run_api(state, lambda client: AuthApi(client).me())
    if json_output:
        print_json(user)
        return

    table = Table(show_header=False, title="Usuario actual")
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Email", user.email)
    table.add_row("Nombre", user.full_name or "-")
    table.add_row("Tenant", user.tenant_id or "-")
    table.add_row("Roles", ", ".join(user.roles) or "-")
    table.add_row("Permisos", str(len(user.permissions)))
    console.print(table)
