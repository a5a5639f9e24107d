"""Plantillas de importación (mapeo de columnas a campos)."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.table import Table

from adapters.api import ImportExportApi
from cli.common import confirm_or_abort, console, get_state, handle_errors, print_json, run_api, toast_success
from cli.ui_components import build_templates_table
from core.services.forms import ImportTemplateForm, ImportTemplateUpdateForm, validate_form

app = typer.Typer(no_args_is_help=True, help="Plantillas de importación.")


def _parse_mapping(pairs: List[str] | None) -> dict[str, str] | None:
    if not pairs:
        return None
    mapping: dict[str, str] = {}
    for pair in pairs:
        source, sep, target = pair.partition("=")
        if not sep or not source.strip() or not target.strip():
            raise typer.BadParameter(f"Mapeo inválido: {pair!r} (usa columna=campo)")
        mapping[source.strip()] = target.strip()
    return mapping


@app.command("list")
@handle_errors
def list_templates(
    ctx: typer.Context,
    module: Optional[str] = typer.Option(None, "--module", "-m"),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista plantillas, opcionalmente de un módulo."""

    state = get_state(ctx)
    response = run_api(state, lambda client: ImportExportApi(client).list_templates(module=module))
    if json_output:
        print_json(response.data)
        return
    console.print(build_templates_table(response.data))


@app.command()
@handle_errors
def show(
    ctx: typer.Context,
    template_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Muestra el mapeo de una plantilla."""

    state = get_state(ctx)
    template = run_api(state, lambda client: ImportExportApi(client).get_template(template_id))
    if json_output:
        print_json(template)
        return
    table = Table(title=f"{template.name} ({template.module})", caption=template.description)
    table.add_column("Columna", style="cyan")
    table.add_column("Campo")
    table.add_column("Por defecto", style="dim")
    defaults = template.default_values or {}
    for source, target in template.field_mapping.items():
        table.add_row(source, target, str(defaults.get(target, "")))
    console.print(table)


@app.command()
@handle_errors
def create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", prompt="Nombre"),
    module: str = typer.Option(..., "--module", "-m", prompt="Módulo"),
    mapping: Optional[List[str]] = typer.Option(None, "--map", help="columna=campo (repetible)."),
    description: Optional[str] = typer.Option(None, "--description"),
    delimiter: str = typer.Option(",", "--delimiter"),
    encoding: str = typer.Option("utf-8", "--encoding"),
    skip_header: bool = typer.Option(True, "--header/--no-header", help="La primera fila es cabecera."),
) -> None:
    """Crea una plantilla."""

    form = validate_form(
        ImportTemplateForm,
        name=name,
        module=module,
        field_mapping=_parse_mapping(mapping) or {},
        description=description,
        delimiter=delimiter,
        encoding=encoding,
        skip_header=skip_header,
    )
    state = get_state(ctx)
    template = run_api(state, lambda client: ImportExportApi(client).create_template(form))
    toast_success(f"Plantilla creada: {template.name} ({template.id})")


@app.command()
@handle_errors
def update(
    ctx: typer.Context,
    template_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    mapping: Optional[List[str]] = typer.Option(None, "--map"),
    description: Optional[str] = typer.Option(None, "--description"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter"),
    encoding: Optional[str] = typer.Option(None, "--encoding"),
) -> None:
    """Actualiza una plantilla (el mapeo se reemplaza completo)."""

    form = validate_form(
        ImportTemplateUpdateForm,
        name=name,
        field_mapping=_parse_mapping(mapping),
        description=description,
        delimiter=delimiter,
        encoding=encoding,
    )
    state = get_state(ctx)
    template = run_api(state, lambda client: ImportExportApi(client).update_template(template_id, form))
    toast_success(f"Plantilla actualizada: {template.name}")


@app.command()
@handle_errors
def delete(
    ctx: typer.Context,
    template_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Elimina una plantilla."""

    confirm_or_abort(f"¿Eliminar la plantilla {template_id}?", yes=yes)
    state = get_state(ctx)
    run_api(state, lambda client: ImportExportApi(client).delete_template(template_id))
    toast_success("Plantilla eliminada")
