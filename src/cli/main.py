"""CLI raíz (`aiutox`).

Por qué Typer + Rich:
- Typer da subcomandos tipados (enums de estado/prioridad como opciones).
- Rich pinta tablas y "toasts"; los logs van a stderr vía `RichHandler`.

Cada área del ERP es un sub-Typer propio; este módulo solo los registra y
prepara el estado compartido (settings, idioma, logging).
"""

from __future__ import annotations

import logging
from typing import Optional

import typer

from cli import auth, comments, doctor, integrations, jobs, notifications, products, roles, tasks, templates
from cli.common import CliState
from core.config import AppSettings
from core.domain.language import Language
from core.logging_setup import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="aiutox",
    no_args_is_help=True,
    help="Consola del ERP AiutoX: tareas, productos, jobs de import/export y configuración.",
)

app.add_typer(auth.app, name="auth")
app.add_typer(tasks.app, name="tasks")
app.add_typer(products.app, name="products")
app.add_typer(comments.app, name="comments")
app.add_typer(jobs.app, name="jobs")
app.add_typer(templates.app, name="templates")
app.add_typer(roles.app, name="roles")
app.add_typer(notifications.app, name="notifications")
app.add_typer(integrations.app, name="integrations")
app.add_typer(doctor.app, name="doctor")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logs de depuración (peticiones HTTP) en stderr."),
    lang: Optional[Language] = typer.Option(None, "--lang", help="Idioma de etiquetas y formato de números."),
) -> None:
    settings = AppSettings()
    setup_logging(settings.log_level, verbose=verbose)
    ctx.obj = CliState(settings=settings, language=lang or settings.default_language)
    logger.debug("API root: %s", settings.api_root)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
