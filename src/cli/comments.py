"""Comentarios en tareas y eventos."""

from __future__ import annotations

import typer
from rich.table import Table

from adapters.api import CommentsApi
from cli.common import confirm_or_abort, console, get_state, handle_errors, print_json, run_api, toast_success
from cli.ui_components import build_comments_panel
from core.domain.comments import CommentEntity
from core.services.forms import CommentForm, validate_form

app = typer.Typer(no_args_is_help=True, help="Hilos de comentarios (tareas y eventos).")


@app.command("list")
@handle_errors
def list_comments(
    ctx: typer.Context,
    entity: CommentEntity = typer.Argument(..., help="task o event."),
    entity_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Muestra el hilo de comentarios."""

    state = get_state(ctx)
    comments = run_api(state, lambda client: CommentsApi(client).list(entity, entity_id))
    if json_output:
        print_json(comments)
        return
    console.print(build_comments_panel(comments, f"Comentarios de {entity.value} {entity_id}"))


@app.command()
@handle_errors
def add(
    ctx: typer.Context,
    entity: CommentEntity = typer.Argument(...),
    entity_id: str = typer.Argument(...),
    content: str = typer.Argument(..., help="Texto; las @menciones se detectan solas."),
) -> None:
    """Publica un comentario."""

    form = validate_form(CommentForm, content=content)
    state = get_state(ctx)
    comment = run_api(state, lambda client: CommentsApi(client).add(entity, entity_id, form))
    mentions = f" · menciones: {', '.join(form.mentions)}" if form.mentions else ""
    toast_success(f"Comentario publicado ({comment.id}){mentions}")


@app.command()
@handle_errors
def edit(
    ctx: typer.Context,
    entity: CommentEntity = typer.Argument(...),
    entity_id: str = typer.Argument(...),
    comment_id: str = typer.Argument(...),
    content: str = typer.Argument(...),
) -> None:
    """Edita un comentario propio."""

    form = validate_form(CommentForm, content=content)
    state = get_state(ctx)
    run_api(state, lambda client: CommentsApi(client).edit(entity, entity_id, comment_id, form))
    toast_success("Comentario actualizado")


@app.command()
@handle_errors
def delete(
    ctx: typer.Context,
    entity: CommentEntity = typer.Argument(...),
    entity_id: str = typer.Argument(...),
    comment_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Elimina un comentario."""

    confirm_or_abort("¿Eliminar el comentario?", yes=yes)
    state = get_state(ctx)
    run_api(state, lambda client: CommentsApi(client).delete(entity, entity_id, comment_id))
    toast_success("Comentario eliminado")


@app.command()
@handle_errors
def mentions(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(20, "--page-size", min=1, max=100),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Comentarios donde me han mencionado."""

    state = get_state(ctx)
    response = run_api(state, lambda client: CommentsApi(client).list_mentions(page=page, page_size=page_size))
    if json_output:
        print_json(response.data)
        return
    table = Table(title="Menciones")
    table.add_column("Entidad", style="cyan")
    table.add_column("Comentario")
    table.add_column("Leída")
    for item in response.data:
        where = f"{item.entity_type or '?'} {item.entity_id or ''}".strip()
        table.add_row(where, item.content or item.comment_id, "sí" if item.is_read else "no")
    console.print(table)
