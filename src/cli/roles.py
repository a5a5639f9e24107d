"""Roles globales: permisos por módulo y asignación a usuarios."""

from __future__ import annotations

import typer
from rich.table import Table

from adapters.api import RolesApi
from cli.common import console, get_state, handle_errors, print_json, run_api, toast_error, toast_success
from cli.ui_components import build_roles_tree, build_users_with_role_table
from core.services.permissions import ROLE_INFO, is_system_role, role_display_name

app = typer.Typer(no_args_is_help=True, help="Roles y permisos.")


@app.command("list")
@handle_errors
def list_roles(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Roles con sus permisos agrupados por módulo."""

    state = get_state(ctx)
    response = run_api(state, lambda client: RolesApi(client).list_roles())
    if json_output:
        print_json(response.data)
        return
    console.print(build_roles_tree(response.data))


@app.command()
@handle_errors
def users(
    ctx: typer.Context,
    role: str = typer.Argument(..., help=f"Rol ({', '.join(ROLE_INFO)})."),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Usuarios que tienen un rol."""

    state = get_state(ctx)
    matched = run_api(state, lambda client: RolesApi(client).users_with_role(role))
    if json_output:
        print_json(matched)
        return
    console.print(build_users_with_role_table(role, matched))


@app.command()
@handle_errors
def user(
    ctx: typer.Context,
    user_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Roles de un usuario."""

    state = get_state(ctx)
    response = run_api(state, lambda client: RolesApi(client).get_user_roles(user_id))
    if json_output:
        print_json(response)
        return
    table = Table(title=f"Roles de {user_id} ({response.total})")
    table.add_column("Rol", style="cyan")
    table.add_column("Nombre")
    table.add_column("Otorgado por", style="dim")
    for item in response.roles:
        table.add_row(item.role, role_display_name(item.role), item.granted_by or "-")
    console.print(table)


@app.command()
@handle_errors
def assign(
    ctx: typer.Context,
    user_id: str = typer.Argument(...),
    role: str = typer.Argument(...),
) -> None:
    """Asigna un rol a un usuario."""

    state = get_state(ctx)
    run_api(state, lambda client: RolesApi(client).assign_role(user_id, role))
    toast_success(f"Rol {role_display_name(role)} asignado a {user_id}")


@app.command()
@handle_errors
def remove(
    ctx: typer.Context,
    user_id: str = typer.Argument(...),
    role: str = typer.Argument(...),
) -> None:
    """Quita un rol a un usuario (owner/admin no se pueden quitar desde aquí)."""

    if is_system_role(role):
        toast_error(f"El rol {role_display_name(role)} es de sistema y no se puede quitar desde la consola")
        raise typer.Exit(code=1)
    state = get_state(ctx)
    run_api(state, lambda client: RolesApi(client).remove_role(user_id, role))
    toast_success(f"Rol {role_display_name(role)} retirado de {user_id}")
