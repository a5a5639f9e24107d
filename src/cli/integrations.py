"""Integraciones externas."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.table import Table

from adapters.api import IntegrationsApi
from cli.common import (
    confirm_or_abort,
    console,
    get_state,
    handle_errors,
    print_json,
    run_api,
    toast_error,
    toast_success,
)
from cli.ui_components import build_integrations_table
from core.services.forms import IntegrationForm, IntegrationUpdateForm, validate_form

app = typer.Typer(no_args_is_help=True, help="Integraciones externas.")


def _parse_config(raw: str | None) -> dict | None:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--config debe ser JSON: {exc.msg}") from exc
    if not isinstance(value, dict):
        raise typer.BadParameter("--config debe ser un objeto JSON")
    return value


@app.command("list")
@handle_errors
def list_integrations(
    ctx: typer.Context,
    integration_type: Optional[str] = typer.Option(None, "--type", "-t"),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista integraciones."""

    state = get_state(ctx)
    response = run_api(state, lambda client: IntegrationsApi(client).list(integration_type))
    if json_output:
        print_json(response.data)
        return
    console.print(build_integrations_table(response.data))


@app.command()
@handle_errors
def show(
    ctx: typer.Context,
    integration_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Detalle de una integración."""

    state = get_state(ctx)
    item = run_api(state, lambda client: IntegrationsApi(client).get(integration_id))
    if json_output:
        print_json(item)
        return
    console.print(build_integrations_table([item]))
    if item.error_message:
        toast_error(item.error_message)


@app.command()
@handle_errors
def create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name"),
    integration_type: str = typer.Option(..., "--type", "-t"),
    config: Optional[str] = typer.Option(None, "--config", help="Configuración como objeto JSON."),
) -> None:
    """Crea una integración."""

    form = validate_form(IntegrationForm, name=name, type=integration_type, config=_parse_config(config) or {})
    state = get_state(ctx)
    item = run_api(state, lambda client: IntegrationsApi(client).create(form))
    toast_success(f"Integración creada: {item.name} ({item.id})")


@app.command()
@handle_errors
def update(
    ctx: typer.Context,
    integration_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    config: Optional[str] = typer.Option(None, "--config"),
) -> None:
    """Actualiza nombre o configuración."""

    form = validate_form(IntegrationUpdateForm, name=name, config=_parse_config(config))
    state = get_state(ctx)
    item = run_api(state, lambda client: IntegrationsApi(client).update(integration_id, form))
    toast_success(f"Integración actualizada: {item.name}")


@app.command()
@handle_errors
def delete(
    ctx: typer.Context,
    integration_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Elimina una integración."""

    confirm_or_abort(f"¿Eliminar la integración {integration_id}?", yes=yes)
    state = get_state(ctx)
    message = run_api(state, lambda client: IntegrationsApi(client).delete(integration_id))
    toast_success(message or "Integración eliminada")


@app.command()
@handle_errors
def activate(
    ctx: typer.Context,
    integration_id: str = typer.Argument(...),
    config: Optional[str] = typer.Option(None, "--config"),
) -> None:
    """Activa una integración."""

    state = get_state(ctx)
    item = run_api(state, lambda client: IntegrationsApi(client).activate(integration_id, _parse_config(config)))
    toast_success(f"{item.name}: {item.status}")


@app.command()
@handle_errors
def deactivate(ctx: typer.Context, integration_id: str = typer.Argument(...)) -> None:
    """Desactiva una integración."""

    state = get_state(ctx)
    item = run_api(state, lambda client: IntegrationsApi(client).deactivate(integration_id))
    toast_success(f"{item.name}: {item.status}")


@app.command()
@handle_errors
def test(ctx: typer.Context, integration_id: str = typer.Argument(...)) -> None:
    """Prueba la conexión de una integración."""

    state = get_state(ctx)
    result = run_api(state, lambda client: IntegrationsApi(client).test(integration_id))
    if result.success:
        toast_success(result.message or "Conexión correcta")
    else:
        toast_error(result.message or "La prueba falló")
        raise typer.Exit(code=1)


@app.command()
@handle_errors
def stats(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Totales de integraciones por estado."""

    state = get_state(ctx)
    result = run_api(state, lambda client: IntegrationsApi(client).stats())
    if json_output:
        print_json(result)
        return
    table = Table(title="Integraciones")
    table.add_column("Estado", style="cyan")
    table.add_column("Total", justify="right")
    table.add_row("total", str(result.total_integrations))
    table.add_row("activas", str(result.active_integrations))
    table.add_row("inactivas", str(result.inactive_integrations))
    table.add_row("con error", str(result.error_integrations))
    console.print(table)


@app.command()
@handle_errors
def logs(
    ctx: typer.Context,
    integration_id: str = typer.Argument(...),
    level: Optional[str] = typer.Option(None, "--level"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1),
    offset: Optional[int] = typer.Option(None, "--offset", min=0),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Logs de una integración."""

    state = get_state(ctx)
    response = run_api(
        state,
        lambda client: IntegrationsApi(client).logs(integration_id, level=level, limit=limit, offset=offset),
    )
    if json_output:
        print_json(response.data)
        return
    styles = {"error": "red", "warning": "yellow", "info": "white", "debug": "dim"}
    table = Table(title=f"Logs de {integration_id}")
    table.add_column("Fecha", no_wrap=True)
    table.add_column("Nivel")
    table.add_column("Mensaje")
    for entry in response.data:
        when = entry.created_at.strftime("%Y-%m-%d %H:%M:%S") if entry.created_at else "-"
        table.add_row(when, entry.level, entry.message, style=styles.get(entry.level))
    console.print(table)
