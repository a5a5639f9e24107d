"""Exportación JSON de respuestas de la API.

Por qué JSON:
- `--json` en los comandos de lectura permite encadenar la consola con `jq` u
  otras herramientas.
- Permite guardar una respuesta completa (p.ej. la config de un módulo) sin
  depender del render de tablas.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel


def to_jsonable(value: BaseModel | Iterable[BaseModel] | Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def dumps(value: BaseModel | Iterable[BaseModel] | Any) -> str:
    """JSON UTF-8 con formato estable (claves ordenadas, indentado)."""

    return json.dumps(to_jsonable(value), ensure_ascii=False, indent=2, sort_keys=True)


def export_json(value: BaseModel | Iterable[BaseModel] | Any, *, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dumps(value) + "\n", encoding="utf-8")
    return output_path
