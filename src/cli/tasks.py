"""Comandos de tareas (listado, detalle, formulario, checklist, asignaciones,
agenda, vistas guardadas y adjuntos)."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from adapters.api import TasksApi
from cli.common import (
    confirm_or_abort,
    console,
    get_state,
    handle_errors,
    print_json,
    run_api,
    toast_success,
)
from cli.ui_components import (
    build_agenda_table,
    build_calendar_sources_table,
    build_task_files_table,
    build_task_panel,
    build_tasks_table,
    build_views_table,
)
from core.domain.tasks import CalendarDisplayOptions, CalendarSourcePreferences, TaskPriority, TaskStatus
from core.services.files import FileInfo, guess_mime_type
from core.services.forms import SavedViewForm, TaskFileForm, TaskForm, TaskUpdateForm, validate_form

app = typer.Typer(no_args_is_help=True, help="Gestión de tareas.")


@app.command("list")
@handle_errors
def list_tasks(
    ctx: typer.Context,
    mine: bool = typer.Option(False, "--mine", help="Solo tareas visibles para mí (/tasks/my-tasks)."),
    status: Optional[TaskStatus] = typer.Option(None, "--status", "-s"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", "-p"),
    assigned_to: Optional[str] = typer.Option(None, "--assigned-to", help="ID de usuario asignado."),
    page: int = typer.Option(1, "--page", min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, max=500),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista tareas con filtros y paginación."""

    state = get_state(ctx)
    size = page_size or state.settings.default_page_size

    async def _action(client):
        api = TasksApi(client)
        if mine:
            return await api.list_my_tasks(page=page, page_size=size, status=status, priority=priority)
        return await api.list_tasks(
            page=page,
            page_size=size,
            status=status,
            assigned_to_id=assigned_to,
            priority=priority,
        )

    response = run_api(state, _action)
    if json_output:
        print_json(response.data)
        return
    console.print(build_tasks_table(response.data, state.language, response.meta))


@app.command()
@handle_errors
def show(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="ID de la tarea."),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Muestra una tarea (estado, vencimiento, checklist)."""

    state = get_state(ctx)
    task = run_api(state, lambda client: TasksApi(client).get_task(task_id))
    if json_output:
        print_json(task)
        return
    console.print(build_task_panel(task, state.language))


@app.command()
@handle_errors
def create(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t", prompt="Título"),
    description: str = typer.Option("", "--description", "-d"),
    status: TaskStatus = typer.Option(TaskStatus.TODO, "--status", "-s"),
    priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority", "-p"),
    due: Optional[datetime] = typer.Option(None, "--due", help="Fecha límite (YYYY-MM-DD[THH:MM:SS])."),
    duration: Optional[int] = typer.Option(None, "--duration", help="Duración estimada en minutos."),
    assigned_to: Optional[str] = typer.Option(None, "--assigned-to"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="ID de etiqueta (repetible)."),
    color: Optional[str] = typer.Option(None, "--color"),
    checklist: Optional[List[str]] = typer.Option(None, "--checklist", "-c", help="Elemento de checklist (repetible)."),
) -> None:
    """Crea una tarea. El formulario se valida antes de enviarlo."""

    form = validate_form(
        TaskForm,
        title=title,
        description=description,
        status=status,
        priority=priority,
        due_date=due,
        estimated_duration=duration,
        assigned_to_id=assigned_to,
        tag_ids=tag or None,
        color_override=color,
        checklist=[{"title": item} for item in checklist] if checklist else None,
    )
    state = get_state(ctx)
    task = run_api(state, lambda client: TasksApi(client).create_task(form))
    toast_success(f"Tarea creada: {task.title} ({task.id})")


@app.command()
@handle_errors
def update(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    status: Optional[TaskStatus] = typer.Option(None, "--status", "-s"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", "-p"),
    due: Optional[datetime] = typer.Option(None, "--due"),
    duration: Optional[int] = typer.Option(None, "--duration"),
    assigned_to: Optional[str] = typer.Option(None, "--assigned-to"),
    color: Optional[str] = typer.Option(None, "--color"),
) -> None:
    """Actualiza solo los campos indicados."""

    form = validate_form(
        TaskUpdateForm,
        title=title,
        description=description,
        status=status,
        priority=priority,
        due_date=due,
        estimated_duration=duration,
        assigned_to_id=assigned_to,
        color_override=color,
    )
    state = get_state(ctx)
    task = run_api(state, lambda client: TasksApi(client).update_task(task_id, form))
    toast_success(f"Tarea actualizada: {task.title}")


@app.command("status")
@handle_errors
def set_status(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    status: TaskStatus = typer.Argument(..., help="Nuevo estado."),
) -> None:
    """Cambio rápido de estado."""

    state = get_state(ctx)
    task = run_api(state, lambda client: TasksApi(client).update_status(task_id, status))
    toast_success(f"{task.title}: {task.status.value}")


@app.command()
@handle_errors
def delete(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="No pedir confirmación."),
) -> None:
    """Elimina una tarea."""

    confirm_or_abort(f"¿Eliminar la tarea {task_id}?", yes=yes)
    state = get_state(ctx)
    run_api(state, lambda client: TasksApi(client).delete_task(task_id))
    toast_success("Tarea eliminada")


# Checklist


@app.command("check-add")
@handle_errors
def check_add(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    title: str = typer.Argument(...),
) -> None:
    """Añade un elemento al checklist."""

    if not title.strip():
        raise typer.BadParameter("El elemento del checklist necesita un título")
    state = get_state(ctx)
    item = run_api(state, lambda client: TasksApi(client).add_checklist_item(task_id, title))
    toast_success(f"Añadido: {item.title} ({item.id})")


@app.command("check")
@handle_errors
def check_toggle(
    ctx: typer.Context,
    item_id: str = typer.Argument(...),
    done: bool = typer.Option(True, "--done/--undone", help="Marca o desmarca el elemento."),
) -> None:
    """Marca un elemento del checklist como hecho (o pendiente)."""

    state = get_state(ctx)
    item = run_api(state, lambda client: TasksApi(client).update_checklist_item(item_id, completed=done))
    toast_success(f"{'[x]' if item.completed else '[ ]'} {item.title}")


@app.command("check-rm")
@handle_errors
def check_remove(ctx: typer.Context, item_id: str = typer.Argument(...)) -> None:
    """Elimina un elemento del checklist."""

    state = get_state(ctx)
    run_api(state, lambda client: TasksApi(client).delete_checklist_item(item_id))
    toast_success("Elemento eliminado")


# Asignaciones


@app.command()
@handle_errors
def assignments(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista las asignaciones de una tarea."""

    state = get_state(ctx)
    response = run_api(state, lambda client: TasksApi(client).list_assignments(task_id))
    if json_output:
        print_json(response.data)
        return
    table = Table(title=f"Asignaciones de {task_id}")
    table.add_column("ID", style="dim")
    table.add_column("Usuario/Grupo", style="cyan")
    table.add_column("Rol")
    table.add_column("Notas")
    for item in response.data:
        who = item.assigned_to_id or f"grupo {item.assigned_to_group_id}"
        table.add_row(item.id, who, item.role or "-", item.notes or "")
    console.print(table)


@app.command()
@handle_errors
def assign(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    user_id: Optional[str] = typer.Option(None, "--user"),
    group_id: Optional[str] = typer.Option(None, "--group"),
    role: Optional[str] = typer.Option(None, "--role"),
    notes: Optional[str] = typer.Option(None, "--notes"),
) -> None:
    """Asigna la tarea a un usuario o grupo."""

    if not user_id and not group_id:
        raise typer.BadParameter("Indica --user o --group")
    state = get_state(ctx)
    assignment = run_api(
        state,
        lambda client: TasksApi(client).assign(
            task_id,
            assigned_to_id=user_id,
            assigned_to_group_id=group_id,
            role=role,
            notes=notes,
        ),
    )
    toast_success(f"Asignación creada ({assignment.id})")


@app.command()
@handle_errors
def unassign(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    assignment_id: str = typer.Argument(...),
) -> None:
    """Elimina una asignación."""

    state = get_state(ctx)
    run_api(state, lambda client: TasksApi(client).unassign(task_id, assignment_id))
    toast_success("Asignación eliminada")


# Agenda y vistas


@app.command()
@handle_errors
def agenda(
    ctx: typer.Context,
    start: Optional[datetime] = typer.Option(None, "--from", formats=["%Y-%m-%d"], help="Fecha inicial (YYYY-MM-DD)."),
    end: Optional[datetime] = typer.Option(None, "--to", formats=["%Y-%m-%d"], help="Fecha final (YYYY-MM-DD)."),
    source: Optional[List[str]] = typer.Option(None, "--source", help="Fuente de calendario (repetible)."),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Agenda combinada: tareas y eventos de las fuentes activas."""

    if start and end and end < start:
        raise typer.BadParameter("--to no puede ser anterior a --from")
    state = get_state(ctx)
    response = run_api(
        state,
        lambda client: TasksApi(client).get_agenda(
            start_date=start.date() if start else None,
            end_date=end.date() if end else None,
            sources=source or None,
        ),
    )
    if json_output:
        print_json(response.data)
        return
    console.print(build_agenda_table(response.data, response.meta))


@app.command("calendar-sources")
@handle_errors
def calendar_sources(
    ctx: typer.Context,
    enable: Optional[List[str]] = typer.Option(
        None,
        "--enable",
        help="Deja activas solo estas fuentes (repetible). Sin opción: solo lista.",
    ),
    show_completed: bool = typer.Option(True, "--show-completed/--hide-completed"),
    show_cancelled: bool = typer.Option(False, "--show-cancelled/--hide-cancelled"),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista las fuentes de calendario o actualiza cuáles están activas."""

    state = get_state(ctx)
    if enable:
        preferences = CalendarSourcePreferences(
            enabled_sources=list(enable),
            display_options=CalendarDisplayOptions(
                show_completed=show_completed,
                show_cancelled=show_cancelled,
            ),
        )
        sources = run_api(state, lambda client: TasksApi(client).update_calendar_sources(preferences))
        toast_success(f"Fuentes activas: {', '.join(enable)}")
    else:
        sources = run_api(state, lambda client: TasksApi(client).get_calendar_sources()).data
    if json_output:
        print_json(sources)
        return
    console.print(build_calendar_sources_table(sources))


@app.command()
@handle_errors
def views(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista las vistas guardadas."""

    state = get_state(ctx)
    response = run_api(state, lambda client: TasksApi(client).list_views())
    if json_output:
        print_json(response.data)
        return
    console.print(build_views_table(response.data))


@app.command("view-create")
@handle_errors
def view_create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", prompt="Nombre de la vista"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    status: Optional[List[TaskStatus]] = typer.Option(None, "--status", "-s", help="Filtro de estado (repetible)."),
    priority: Optional[List[TaskPriority]] = typer.Option(None, "--priority", "-p", help="Filtro de prioridad (repetible)."),
    sort: str = typer.Option("due_date", "--sort", help="Campo de orden."),
    descending: bool = typer.Option(False, "--desc", help="Orden descendente."),
    default: bool = typer.Option(False, "--default", help="Usar como vista por defecto."),
    public: bool = typer.Option(False, "--public", help="Visible para todo el tenant."),
) -> None:
    """Guarda una vista del listado de tareas."""

    filters: dict[str, list[str]] = {}
    if status:
        filters["status"] = [item.value for item in status]
    if priority:
        filters["priority"] = [item.value for item in priority]
    form = validate_form(
        SavedViewForm,
        name=name,
        description=description,
        filters=filters,
        sort_field=sort,
        sort_direction="desc" if descending else "asc",
        is_default=default,
        is_public=public,
    )
    state = get_state(ctx)
    view = run_api(state, lambda client: TasksApi(client).create_view(form))
    toast_success(f"Vista creada: {view.name} ({view.id})")


# Adjuntos


@app.command()
@handle_errors
def files(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista los archivos adjuntos de una tarea."""

    state = get_state(ctx)
    response = run_api(state, lambda client: TasksApi(client).list_files(task_id))
    if json_output:
        print_json(response.data)
        return
    console.print(build_task_files_table(task_id, response.data))


@app.command()
@handle_errors
def attach(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    file_id: str = typer.Argument(..., help="ID del archivo ya subido."),
    url: str = typer.Option(..., "--url", help="URL del archivo."),
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        exists=True,
        dir_okay=False,
        help="Copia local: de aquí salen nombre, tamaño y tipo.",
    ),
    name: Optional[str] = typer.Option(None, "--name"),
    size: Optional[int] = typer.Option(None, "--size", min=0),
    mime_type: Optional[str] = typer.Option(None, "--type"),
) -> None:
    """Adjunta a la tarea un archivo ya subido al almacenamiento."""

    info = FileInfo.from_path(path) if path else None
    file_name = name or (info.name if info else None)
    if not file_name:
        raise typer.BadParameter("Indica --name o --path")
    form = validate_form(
        TaskFileForm,
        file_id=file_id,
        file_name=file_name,
        file_size=size if size is not None else (info.size if info else 0),
        file_type=mime_type or (info.type if info else guess_mime_type(file_name)),
        file_url=url,
    )
    state = get_state(ctx)
    attachment = run_api(state, lambda client: TasksApi(client).attach_file(task_id, form))
    toast_success(f"Adjuntado: {attachment.file_name}")


@app.command()
@handle_errors
def detach(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    file_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="No pedir confirmación."),
) -> None:
    """Quita un archivo adjunto de la tarea."""

    confirm_or_abort(f"¿Quitar el archivo {file_id} de la tarea {task_id}?", yes=yes)
    state = get_state(ctx)
    run_api(state, lambda client: TasksApi(client).detach_file(task_id, file_id))
    toast_success("Archivo desadjuntado")


@app.command()
@handle_errors
def settings(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Muestra las vistas habilitadas del módulo de tareas."""

    state = get_state(ctx)
    module_settings = run_api(state, lambda client: TasksApi(client).get_settings())
    if json_output:
        print_json(module_settings)
        return
    table = Table(title="Ajustes del módulo de tareas")
    table.add_column("Vista", style="cyan")
    table.add_column("Habilitada")
    for name, enabled in module_settings.model_dump().items():
        table.add_row(name.removesuffix("_enabled"), "sí" if enabled else "no")
    console.print(table)
