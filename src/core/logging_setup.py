"""Configuración de logging de la consola.

Por qué Rich:
- Los logs van a stderr con el mismo estilo que el resto de la salida, sin
  mezclarse con el JSON de `--json` (stdout).
- Se configura una sola vez al arrancar la CLI; los módulos solo hacen
  `logging.getLogger(__name__)`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "aiutox-rich"

# Paquetes propios del proyecto; el resto (httpx, httpcore) queda en WARNING.
_PROJECT_LOGGERS = ("adapters", "cli", "core")


def setup_logging(level: str = "WARNING", *, verbose: bool = False) -> logging.Logger:
    effective = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(effective, int):
        effective = logging.WARNING

    root = logging.getLogger()
    if not any(getattr(h, "name", None) == _HANDLER_NAME for h in root.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=verbose,
            rich_tracebacks=verbose,
            markup=False,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)
    root.setLevel(logging.WARNING)

    for name in _PROJECT_LOGGERS:
        logging.getLogger(name).setLevel(effective)
    return logging.getLogger("cli")
