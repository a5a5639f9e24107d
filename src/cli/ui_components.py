"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos (listado y detalle).

Todo lo que se muestra sale de `core.services.*`: aquí solo se decide el
formato (colores, columnas), nunca un valor.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from core.domain.admin import Integration, NotificationChannels, RoleWithPermissions, UserWithRole
from core.domain.comments import Comment
from core.domain.import_export import ExportJob, ImportJob, ImportTemplate
from core.domain.language import Language
from core.domain.models import ListMeta
from core.domain.products import Product, ProductStats
from core.domain.tasks import AgendaItem, CalendarSource, SavedView, Task, TaskFileAttachment
from core.services import jobs as job_view
from core.services.files import format_file_size
from core.services.permissions import group_permissions_by_module, is_system_role, role_description, role_display_name
from core.services.pricing import format_currency, format_margin, primary_barcode, profit
from core.services.tasks import (
    PRIORITY_STYLES,
    STATUS_STYLES,
    completion_percentage,
    estimated_hours,
    is_overdue,
    status_label,
)


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("AiutoX Console", style="bold cyan")
    subtitle = Text("Tareas • Catálogo • Import/Export • Configuración", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def pagination_caption(meta: ListMeta) -> str:
    caption = f"Página {meta.page}/{max(meta.total_pages, 1)} · {meta.total} en total"
    if meta.more_pages:
        caption += " · usa --page para ver más"
    return caption


# --- Tareas ------------------------------------------------------------------


def task_status_text(task: Task, language: Language, now: datetime | None = None) -> Text:
    text = Text(status_label(task.status, language), style=STATUS_STYLES[task.status])
    if is_overdue(task, now):
        text.append(" · vencida" if language is Language.SPANISH else " · overdue", style="bold red")
    return text


def build_tasks_table(tasks: Iterable[Task], language: Language, meta: ListMeta | None = None) -> Table:
    table = Table(title="Tareas", caption=pagination_caption(meta) if meta else None)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Título", style="white")
    table.add_column("Estado")
    table.add_column("Prioridad")
    table.add_column("Vence", no_wrap=True)
    table.add_column("Checklist", justify="right")
    for task in tasks:
        checklist = f"{completion_percentage(task.checklist)}%" if task.checklist else "-"
        table.add_row(
            task.id,
            task.title,
            task_status_text(task, language),
            Text(task.priority.value, style=PRIORITY_STYLES[task.priority]),
            _date(task.due_date),
            checklist,
        )
    return table


def build_task_panel(task: Task, language: Language) -> Panel:
    """Equivalente a la tarjeta de tarea: estado, progreso y metadatos."""

    lines = Text()
    if task.description:
        lines.append(task.description.strip() + "\n\n")
    lines.append("Estado: ", style="bold")
    lines.append_text(task_status_text(task, language))
    lines.append("\nPrioridad: ", style="bold")
    lines.append(task.priority.value, style=PRIORITY_STYLES[task.priority])
    lines.append(f"\nVence: {_date(task.due_date)}")
    if task.assigned_to is not None:
        lines.append(f"\nAsignada a: {task.assigned_to.name or task.assigned_to.email or task.assigned_to.id}")
    hours = estimated_hours(task.estimated_duration)
    if hours is not None:
        lines.append(f"\nDuración estimada: {hours}h")
    if task.tags:
        lines.append(f"\nEtiquetas: {', '.join(task.tags)}")

    parts: list[object] = [lines]
    if task.checklist:
        done = sum(1 for item in task.checklist if item.completed)
        percentage = completion_percentage(task.checklist)
        parts.append(Text(f"\nChecklist {done}/{len(task.checklist)} ({percentage}%)", style="bold"))
        parts.append(ProgressBar(total=100, completed=percentage, width=40))
        for item in task.checklist:
            mark = "[x]" if item.completed else "[ ]"
            parts.append(Text(f"{mark} {item.title}", style="dim" if item.completed else ""))

    return Panel(Group(*parts), title=Text(task.title, style="bold"), subtitle=task.id, border_style="blue")


def build_agenda_table(items: Iterable[AgendaItem], meta: ListMeta | None = None) -> Table:
    table = Table(title="Agenda", caption=pagination_caption(meta) if meta else None)
    table.add_column("Inicio", no_wrap=True)
    table.add_column("Fin", no_wrap=True)
    table.add_column("Tipo")
    table.add_column("Título", style="white")
    table.add_column("Fuente", style="cyan")
    for item in sorted(items, key=lambda i: i.start_date):
        table.add_row(_date(item.start_date), _date(item.end_date), item.type.value, item.title, item.source)
    return table


def build_calendar_sources_table(sources: Iterable[CalendarSource]) -> Table:
    table = Table(title="Fuentes de calendario")
    table.add_column("ID", style="dim")
    table.add_column("Nombre", style="cyan")
    table.add_column("Tipo")
    table.add_column("Activa")
    table.add_column("Última sincronización")
    for source in sources:
        table.add_row(
            source.id,
            source.name,
            source.type,
            Text("sí", style="green") if source.enabled else Text("no", style="dim"),
            _date(source.last_sync_at),
        )
    return table


def build_views_table(views: Iterable[SavedView]) -> Table:
    table = Table(title="Vistas guardadas")
    table.add_column("ID", style="dim")
    table.add_column("Nombre", style="cyan")
    table.add_column("Orden")
    table.add_column("Filtros")
    table.add_column("Flags")
    for view in views:
        flags = [name for name, on in (("default", view.is_default), ("pública", view.is_public)) if on]
        table.add_row(
            view.id,
            view.name,
            f"{view.sort_config.field} {view.sort_config.direction}",
            ", ".join(sorted(view.filters)) or "-",
            ", ".join(flags) or "-",
        )
    return table


def build_task_files_table(task_id: str, files: Iterable[TaskFileAttachment]) -> Table:
    table = Table(title=f"Adjuntos de {task_id}")
    table.add_column("ID", style="dim")
    table.add_column("Nombre", style="cyan")
    table.add_column("Tipo")
    table.add_column("Tamaño", justify="right")
    table.add_column("Adjuntado", no_wrap=True)
    for attachment in files:
        table.add_row(
            attachment.file_id,
            attachment.file_name,
            attachment.file_type,
            format_file_size(attachment.file_size),
            _date(attachment.attached_at),
        )
    return table


# --- Productos ---------------------------------------------------------------


def build_products_table(products: Iterable[Product], language: Language, meta: ListMeta | None = None) -> Table:
    table = Table(title="Productos", caption=pagination_caption(meta) if meta else None)
    table.add_column("SKU", style="cyan", no_wrap=True)
    table.add_column("Nombre")
    table.add_column("Precio", justify="right")
    table.add_column("Margen", justify="right")
    table.add_column("Activo")
    table.add_column("ID", style="dim")
    for product in products:
        table.add_row(
            product.sku,
            product.name,
            format_currency(product.price, product.currency, language),
            format_margin(product.price, product.cost),
            "sí" if product.is_active else "no",
            product.id,
        )
    return table


def build_product_panel(product: Product, language: Language) -> Panel:
    body = Table.grid(padding=(0, 2))
    body.add_column(style="bold")
    body.add_column()
    body.add_row("SKU", product.sku)
    if product.category is not None:
        body.add_row("Categoría", product.category.name)
    body.add_row("Precio", format_currency(product.price, product.currency, language))
    body.add_row("Coste", format_currency(product.cost, product.currency, language))
    body.add_row("Beneficio", format_currency(profit(product.price, product.cost), product.currency, language))
    body.add_row("Margen", format_margin(product.price, product.cost))
    body.add_row("Inventario", "controlado" if product.track_inventory else "no controlado")
    if product.dimensions is not None:
        d = product.dimensions
        body.add_row("Dimensiones", f"{d.length} × {d.width} × {d.height} {d.unit}")
    primary = primary_barcode(product.barcodes)
    if primary is not None:
        body.add_row("Código principal", f"{primary.barcode} ({primary.barcode_type})")
    if product.variants:
        body.add_row("Variantes", ", ".join(f"{v.sku} {v.name}" for v in product.variants))

    style = "green" if product.is_active else "grey62"
    return Panel(body, title=Text(product.name, style="bold"), subtitle=product.id, border_style=style)


def build_product_stats_table(stats: ProductStats) -> Table:
    table = Table(title="Estadísticas del catálogo")
    table.add_column("Métrica", style="cyan")
    table.add_column("Valor", justify="right")
    for name, value in stats.model_dump().items():
        table.add_row(name.replace("_", " "), str(value))
    return table


# --- Import/Export -----------------------------------------------------------


def _status_text(job: ImportJob | ExportJob) -> Text:
    return Text(job_view.STATUS_TEXT[job.status], style=job_view.STATUS_STYLES[job.status])


def build_import_jobs_table(items: Iterable[ImportJob], meta: ListMeta | None = None) -> Table:
    table = Table(title="Importaciones", caption=pagination_caption(meta) if meta else None)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Módulo", style="cyan")
    table.add_column("Archivo")
    table.add_column("Estado")
    table.add_column("Progreso", justify="right")
    table.add_column("Filas OK/Error", justify="right")
    table.add_column("Tiempo", justify="right")
    for job in items:
        table.add_row(
            job.id,
            job.module,
            job.file_name,
            _status_text(job),
            f"{job_view.job_progress(job):.0f}%",
            f"{job.successful_rows}/{job.failed_rows}",
            job_view.elapsed_time(job.started_at, job.completed_at) or "-",
        )
    return table


def build_export_jobs_table(items: Iterable[ExportJob], meta: ListMeta | None = None) -> Table:
    table = Table(title="Exportaciones", caption=pagination_caption(meta) if meta else None)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Módulo", style="cyan")
    table.add_column("Formato")
    table.add_column("Estado")
    table.add_column("Filas", justify="right")
    table.add_column("Tiempo", justify="right")
    for job in items:
        total = job.total_rows if job.total_rows is not None else "?"
        table.add_row(
            job.id,
            job.module,
            job.export_format.value,
            _status_text(job),
            f"{job.exported_rows}/{total}",
            job_view.elapsed_time(job.started_at, job.completed_at) or "-",
        )
    return table


def build_job_panel(job: ImportJob | ExportJob) -> Panel:
    """Tarjeta de job: estado, progreso, filas y errores."""

    body = Table.grid(padding=(0, 2))
    body.add_column(style="bold")
    body.add_column()
    body.add_row("Módulo", job.module)
    body.add_row("Estado", _status_text(job))
    body.add_row("Progreso", f"{job_view.job_progress(job):.0f}%")
    elapsed = job_view.elapsed_time(job.started_at, job.completed_at)
    if elapsed:
        body.add_row("Tiempo", elapsed)

    parts: list[object] = [body]
    if isinstance(job, ImportJob):
        body.add_row("Archivo", job.file_name)
        if job.total_rows is not None:
            body.add_row("Filas", f"{job.processed_rows}/{job.total_rows}")
        body.add_row("Correctas", str(job.successful_rows))
        body.add_row("Con error", str(job.failed_rows))
        for issue in (job.errors or [])[:10]:
            where = f"fila {issue.row_number}" + (f", {issue.field}" if issue.field else "")
            parts.append(Text(f"✗ {where}: {issue.message}", style="red"))
        for issue in (job.warnings or [])[:10]:
            parts.append(Text(f"! fila {issue.row_number}: {issue.message}", style="yellow"))
    else:
        body.add_row("Formato", job.export_format.value)
        body.add_row("Filas", f"{job.exported_rows}/{job.total_rows if job.total_rows is not None else '?'}")
        if job.file_name:
            body.add_row("Archivo", job.file_name)
    if job.error_message:
        parts.append(Text(job.error_message, style="red"))

    return Panel(Group(*parts), title=job.id, border_style=job_view.STATUS_STYLES[job.status])


def build_templates_table(templates: Iterable[ImportTemplate]) -> Table:
    table = Table(title="Plantillas de importación")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Nombre", style="cyan")
    table.add_column("Módulo")
    table.add_column("Campos", justify="right")
    table.add_column("Delimitador")
    table.add_column("Encoding")
    for template in templates:
        table.add_row(
            template.id,
            template.name,
            template.module,
            str(len(template.field_mapping)),
            repr(template.delimiter),
            template.encoding,
        )
    return table


# --- Configuración -----------------------------------------------------------


def build_roles_tree(roles: Iterable[RoleWithPermissions]) -> Tree:
    """Roles con sus permisos agrupados por módulo."""

    tree = Tree(Text("Roles", style="bold"))
    for item in roles:
        label = Text(role_display_name(item.role), style="bold cyan")
        label.append(f" ({item.role})", style="dim")
        if is_system_role(item.role):
            label.append(" · sistema", style="yellow")
        branch = tree.add(label)
        description = role_description(item.role)
        if description:
            branch.add(Text(description, style="dim"))
        for module, permissions in group_permissions_by_module(item.permissions).items():
            branch.add(Text(f"{module}: ", style="bold").append(", ".join(permissions), style=""))
    return tree


def build_users_with_role_table(role: str, users: Iterable[UserWithRole]) -> Table:
    table = Table(title=f"Usuarios con rol {role_display_name(role)}")
    table.add_column("Email", style="cyan")
    table.add_column("Nombre")
    table.add_column("Asignado", no_wrap=True)
    table.add_column("ID", style="dim")
    for user in users:
        table.add_row(user.email, user.full_name or "-", _date(user.user_role.created_at), user.id)
    return table


def build_channels_table(channels: NotificationChannels) -> Table:
    def _state(enabled: bool) -> Text:
        return Text("activo", style="green") if enabled else Text("inactivo", style="grey62")

    table = Table(title="Canales de notificación")
    table.add_column("Canal", style="cyan")
    table.add_column("Estado")
    table.add_column("Detalle")
    smtp = channels.smtp
    tls = "TLS" if smtp.use_tls else "sin TLS"
    table.add_row("SMTP", _state(smtp.enabled), f"{smtp.host}:{smtp.port} ({tls}) · {smtp.from_email or '-'}")
    sms = channels.sms
    table.add_row("SMS", _state(sms.enabled), f"{sms.provider} · {sms.from_number or '-'}")
    hook = channels.webhook
    table.add_row("Webhook", _state(hook.enabled), f"{hook.url or '-'} · timeout {hook.timeout}s")
    return table


def build_integrations_table(integrations: Iterable[Integration]) -> Table:
    styles = {"active": "green", "inactive": "grey62", "error": "red", "pending": "yellow"}
    table = Table(title="Integraciones")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Nombre", style="cyan")
    table.add_column("Tipo")
    table.add_column("Estado")
    table.add_column("Última sync", no_wrap=True)
    for item in integrations:
        table.add_row(
            item.id,
            item.name,
            item.type,
            Text(item.status, style=styles.get(item.status, "white")),
            _date(item.last_sync_at),
        )
    return table


def build_comments_panel(comments: list[Comment], title: str) -> Panel:
    if not comments:
        return Panel(Text("Sin comentarios", style="dim"), title=title)
    parts: list[object] = []
    for comment in comments:
        header = Text(comment.author, style="bold cyan")
        header.append(f"  {_date(comment.created_at)}", style="dim")
        if comment.is_edited:
            header.append(" (editado)", style="dim")
        header.append(f"  {comment.id}", style="dim")
        parts.append(header)
        parts.append(Text(comment.content + "\n"))
    return Panel(Group(*parts), title=f"{title} ({len(comments)})")
