"""Jobs de importación/exportación.

El procesamiento ocurre en el servidor; aquí se crean jobs, se consultan y,
con `--watch`, se re-leen cada `job_poll_interval_seconds` mostrando una
barra de progreso hasta que el job termina.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from adapters.api import ImportExportApi
from adapters.http_client import ApiClient
from cli.common import (
    CliState,
    confirm_or_abort,
    console,
    err_console,
    get_state,
    handle_errors,
    print_json,
    run_api,
    toast_error,
    toast_success,
    toast_warning,
)
from cli.ui_components import build_export_jobs_table, build_import_jobs_table, build_job_panel
from core.domain.import_export import ExportFormat, ExportJob, ImportJob, JobStatus
from core.services.forms import ExportJobForm, ImportJobForm, validate_form
from core.services.jobs import STATUS_TEXT, job_progress, watch_job

app = typer.Typer(no_args_is_help=True, help="Jobs de importación y exportación.")


async def _watch(
    api: ImportExportApi,
    state: CliState,
    job_id: str,
    *,
    export: bool,
) -> ImportJob | ExportJob:
    def fetch():
        if export:
            return api.get_export_job(job_id, fresh=True)
        return api.get_import_job(job_id, fresh=True)

    last: ImportJob | ExportJob | None = None
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        bar = progress.add_task(job_id, total=100)
        async for job in watch_job(
            fetch,
            interval=state.settings.job_poll_interval_seconds,
            timeout=state.settings.job_poll_timeout_seconds,
        ):
            progress.update(bar, completed=job_progress(job), description=f"{job_id} · {STATUS_TEXT[job.status]}")
            last = job
    if last is None:
        raise RuntimeError(f"Job {job_id} no devolvió ningún estado")
    return last


def _report_final(job: ImportJob | ExportJob) -> None:
    console.print(build_job_panel(job))
    if job.status is JobStatus.FAILED:
        toast_error(f"Job {job.id} fallido: {job.error_message or 'ver detalles'}")
        raise typer.Exit(code=1)
    if job.status is JobStatus.CANCELLED:
        toast_warning(f"Job {job.id} cancelado")
    else:
        toast_success(f"Job {job.id} completado")


@app.command("imports")
@handle_errors
def list_imports(
    ctx: typer.Context,
    module: Optional[str] = typer.Option(None, "--module", "-m"),
    status: Optional[JobStatus] = typer.Option(None, "--status", "-s"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, max=500),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista jobs de importación."""

    state = get_state(ctx)
    response = run_api(
        state,
        lambda client: ImportExportApi(client).list_import_jobs(
            module=module,
            status=status,
            page=page,
            page_size=page_size or state.settings.default_page_size,
        ),
    )
    if json_output:
        print_json(response.data)
        return
    console.print(build_import_jobs_table(response.data, response.meta))


@app.command("exports")
@handle_errors
def list_exports(
    ctx: typer.Context,
    module: Optional[str] = typer.Option(None, "--module", "-m"),
    status: Optional[JobStatus] = typer.Option(None, "--status", "-s"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, max=500),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista jobs de exportación."""

    state = get_state(ctx)
    response = run_api(
        state,
        lambda client: ImportExportApi(client).list_export_jobs(
            module=module,
            status=status,
            page=page,
            page_size=page_size or state.settings.default_page_size,
        ),
    )
    if json_output:
        print_json(response.data)
        return
    console.print(build_export_jobs_table(response.data, response.meta))


@app.command()
@handle_errors
def show(
    ctx: typer.Context,
    job_id: str = typer.Argument(...),
    export: bool = typer.Option(False, "--export", help="El ID es de un job de exportación."),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Detalle de un job."""

    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = ImportExportApi(client)
        return await (api.get_export_job(job_id) if export else api.get_import_job(job_id))

    job = run_api(state, _action)
    if json_output:
        print_json(job)
        return
    console.print(build_job_panel(job))


@app.command()
@handle_errors
def watch(
    ctx: typer.Context,
    job_id: str = typer.Argument(...),
    export: bool = typer.Option(False, "--export"),
) -> None:
    """Sigue un job hasta que termina."""

    state = get_state(ctx)
    job = run_api(state, lambda client: _watch(ImportExportApi(client), state, job_id, export=export))
    _report_final(job)


@app.command()
@handle_errors
def validate(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    module: str = typer.Option(..., "--module", "-m"),
    template: Optional[str] = typer.Option(None, "--template"),
    max_size_mb: Optional[int] = typer.Option(None, "--max-size-mb", min=1),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Valida un archivo de importación en el servidor (sin importarlo)."""

    state = get_state(ctx)
    result = run_api(
        state,
        lambda client: ImportExportApi(client).validate_import_file(
            file,
            module,
            template_id=template,
            max_size_mb=max_size_mb,
        ),
    )
    if json_output:
        print_json(result)
        return
    if result.is_valid:
        toast_success(f"{file.name} es válido")
    else:
        toast_error(f"{file.name} no es válido")
    for error in result.errors:
        console.print(f"  [red]✗[/red] {error}")
    if result.file_validation:
        console.print(f"  Archivo: {result.file_validation}")
    for field, detail in result.field_validation.items():
        console.print(f"  {field}: {detail}")
    for rule in result.business_rules:
        console.print(f"  {rule}")
    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command("import")
@handle_errors
def start_import(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    module: str = typer.Option(..., "--module", "-m"),
    template: Optional[str] = typer.Option(None, "--template"),
    skip_validation: bool = typer.Option(False, "--skip-validation"),
    watch_job_: bool = typer.Option(False, "--watch", "-w", help="Sigue el job hasta que termine."),
) -> None:
    """Valida el archivo y crea un job de importación."""

    form = validate_form(ImportJobForm, module=module, file_name=file.name, template_id=template)
    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = ImportExportApi(client)
        if not skip_validation:
            config = await api.get_config()
            validation = await api.validate_import_file(
                file,
                module,
                template_id=template,
                max_size_mb=config.max_file_size_mb,
                allowed_types=config.allowed_file_types or None,
            )
            if not validation.is_valid:
                return validation, None
        job = await api.create_import_job(form)
        if watch_job_:
            job = await _watch(api, state, job.id, export=False)
        return None, job

    failed_validation, job = run_api(state, _action)
    if failed_validation is not None:
        toast_error(f"{file.name} no pasó la validación; usa `aiutox jobs validate` para ver el detalle")
        raise typer.Exit(code=1)
    if watch_job_:
        _report_final(job)
    else:
        toast_success(f"Job de importación creado: {job.id}")


@app.command("export")
@handle_errors
def start_export(
    ctx: typer.Context,
    module: str = typer.Option(..., "--module", "-m"),
    export_format: ExportFormat = typer.Option(ExportFormat.CSV, "--format", "-f"),
    column: Optional[List[str]] = typer.Option(None, "--column", help="Columna a exportar (repetible)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Descarga el archivo al terminar (implica --watch)."),
    watch_job_: bool = typer.Option(False, "--watch", "-w"),
) -> None:
    """Crea un job de exportación y, opcionalmente, descarga el resultado."""

    form = validate_form(ExportJobForm, module=module, export_format=export_format, columns=column or None)
    state = get_state(ctx)
    should_watch = watch_job_ or output is not None

    async def _action(client: ApiClient):
        api = ImportExportApi(client)
        job = await api.create_export_job(form)
        if not should_watch:
            return job, None
        job = await _watch(api, state, job.id, export=True)
        path = None
        if output is not None and job.status is JobStatus.COMPLETED:
            path = await api.download_export(job.id, output)
        return job, path

    job, path = run_api(state, _action)
    if not should_watch:
        toast_success(f"Job de exportación creado: {job.id}")
        return
    _report_final(job)
    if path is not None:
        toast_success(f"Archivo guardado en {path}")


@app.command()
@handle_errors
def download(
    ctx: typer.Context,
    job_id: str = typer.Argument(...),
    output: Path = typer.Option(..., "--output", "-o"),
) -> None:
    """Descarga el archivo de un job de exportación completado."""

    state = get_state(ctx)
    path = run_api(state, lambda client: ImportExportApi(client).download_export(job_id, output))
    toast_success(f"Archivo guardado en {path}")


@app.command()
@handle_errors
def cancel(
    ctx: typer.Context,
    job_id: str = typer.Argument(...),
    export: bool = typer.Option(False, "--export"),
) -> None:
    """Cancela un job pendiente o en proceso."""

    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = ImportExportApi(client)
        return await (api.cancel_export_job(job_id) if export else api.cancel_import_job(job_id))

    job = run_api(state, _action)
    toast_success(f"Job {job.id}: {STATUS_TEXT[job.status]}")


@app.command()
@handle_errors
def retry(ctx: typer.Context, job_id: str = typer.Argument(...)) -> None:
    """Reintenta un job de importación fallido."""

    state = get_state(ctx)
    job = run_api(state, lambda client: ImportExportApi(client).retry_import_job(job_id))
    toast_success(f"Job {job.id}: {STATUS_TEXT[job.status]}")


@app.command()
@handle_errors
def delete(
    ctx: typer.Context,
    job_id: str = typer.Argument(...),
    export: bool = typer.Option(False, "--export"),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Elimina un job."""

    confirm_or_abort(f"¿Eliminar el job {job_id}?", yes=yes)
    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = ImportExportApi(client)
        if export:
            await api.delete_export_job(job_id)
        else:
            await api.delete_import_job(job_id)

    run_api(state, _action)
    toast_success("Job eliminado")


@app.command()
@handle_errors
def stats(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Estadísticas de import/export."""

    state = get_state(ctx)
    result = run_api(state, lambda client: ImportExportApi(client).get_stats())
    if json_output:
        print_json(result)
        return
    table = Table(title="Import/Export")
    table.add_column("Métrica", style="cyan")
    table.add_column("Valor", justify="right")
    table.add_row("Importaciones", f"{result.total_import_jobs} ({result.successful_imports} ok, {result.failed_imports} error)")
    table.add_row("Exportaciones", f"{result.total_export_jobs} ({result.successful_exports} ok, {result.failed_exports} error)")
    table.add_row("Registros importados", str(result.total_records_imported))
    table.add_row("Registros exportados", str(result.total_records_exported))
    table.add_row("Tiempo medio", f"{result.average_processing_time:.1f}s")
    for usage in result.most_used_modules:
        table.add_row(f"· {usage.module}", f"{usage.import_count} imp / {usage.export_count} exp")
    console.print(table)


@app.command()
@handle_errors
def config(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Configuración del módulo de import/export."""

    state = get_state(ctx)
    result = run_api(state, lambda client: ImportExportApi(client).get_config())
    if json_output:
        print_json(result)
        return
    table = Table(title="Configuración de import/export")
    table.add_column("Clave", style="cyan")
    table.add_column("Valor")
    for key, value in result.model_dump().items():
        table.add_row(key, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)


@app.command("set-config")
@handle_errors
def set_config(
    ctx: typer.Context,
    max_file_size_mb: Optional[int] = typer.Option(None, "--max-file-size-mb", min=1),
    max_concurrent_jobs: Optional[int] = typer.Option(None, "--max-concurrent-jobs", min=1),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", min=1),
    timeout_seconds: Optional[int] = typer.Option(None, "--timeout-seconds", min=1),
    cleanup_after_days: Optional[int] = typer.Option(None, "--cleanup-after-days", min=1),
) -> None:
    """Modifica la configuración (lee, aplica cambios y guarda)."""

    changes = {
        "max_file_size_mb": max_file_size_mb,
        "max_concurrent_jobs": max_concurrent_jobs,
        "chunk_size": chunk_size,
        "timeout_seconds": timeout_seconds,
        "cleanup_after_days": cleanup_after_days,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        raise typer.BadParameter("No hay cambios que guardar")
    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = ImportExportApi(client)
        current = await api.get_config()
        return await api.update_config(current.model_copy(update=changes))

    run_api(state, _action)
    toast_success("Configuración guardada")


@app.command()
@handle_errors
def modules(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Módulos disponibles para import/export."""

    state = get_state(ctx)
    names = run_api(state, lambda client: ImportExportApi(client).available_modules())
    if json_output:
        print_json(names)
        return
    for name in names:
        console.print(f"• {name}")


@app.command()
@handle_errors
def formats(ctx: typer.Context, module: str = typer.Argument(...)) -> None:
    """Formatos de exportación de un módulo."""

    state = get_state(ctx)
    names = run_api(state, lambda client: ImportExportApi(client).export_formats(module))
    console.print(", ".join(names) or "-")


@app.command()
@handle_errors
def sample(
    ctx: typer.Context,
    module: str = typer.Argument(...),
    export_format: ExportFormat = typer.Option(ExportFormat.CSV, "--format", "-f"),
    count: int = typer.Option(10, "--count", min=1, max=1000),
    output: Path = typer.Option(..., "--output", "-o"),
) -> None:
    """Descarga un archivo de muestra de exportación."""

    state = get_state(ctx)
    path = run_api(
        state,
        lambda client: ImportExportApi(client).export_sample(module, export_format, output, count=count),
    )
    toast_success(f"Muestra guardada en {path}")
