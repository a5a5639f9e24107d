"""Caché de consultas por clave (equivalente a los hooks de la UI).

Reglas:
- Las claves son tuplas jerárquicas: `("import-export", "import-jobs", "detail", id)`.
- Lecturas concurrentes de la misma clave comparten una sola petición.
- `invalidate(prefijo)` descarta toda entrada cuya clave empiece por el prefijo;
  la siguiente lectura vuelve a la red. Si la clave tenía una lectura en
  curso, su resultado ya no se guarda.
- Sin expiración por tiempo: una consola vive poco, se invalida tras mutar.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryKey = tuple[Hashable, ...]


def freeze_params(params: dict[str, Any] | None) -> tuple[tuple[str, Any], ...]:
    """Convierte parámetros de listado en un componente de clave hashable."""

    if not params:
        return ()
    return tuple(sorted((k, v) for k, v in params.items() if v is not None))


class QueryCache:
    def __init__(self) -> None:
        self._data: dict[QueryKey, Any] = {}
        self._inflight: dict[QueryKey, asyncio.Task[Any]] = {}
        # Se incrementa al invalidar una clave con una lectura en curso.
        self._generations: dict[QueryKey, int] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._data

    def keys(self) -> list[QueryKey]:
        return list(self._data)

    def peek(self, key: QueryKey) -> Any:
        return self._data.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        self._data[key] = value

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        if key in self._data:
            return self._data[key]

        task = self._inflight.get(key)
        if task is None:
            generation = self._generations.get(key, 0)
            task = asyncio.ensure_future(fetcher())
            self._inflight[key] = task
            try:
                value = await task
            finally:
                if self._inflight.get(key) is task:
                    del self._inflight[key]
            # Una lectura invalidada a mitad de camino no vuelve a la caché.
            if self._generations.get(key, 0) == generation:
                self._data[key] = value
            return value
        return await task

    def invalidate(self, prefix: QueryKey) -> int:
        stale = [key for key in self._data if key[: len(prefix)] == prefix]
        for key in stale:
            del self._data[key]
        pending = [key for key in self._inflight if key[: len(prefix)] == prefix]
        for key in pending:
            del self._inflight[key]
            self._generations[key] = self._generations.get(key, 0) + 1
        if stale or pending:
            logger.debug(
                "Invalidated %d cache entries (%d in flight) under %r", len(stale), len(pending), prefix
            )
        return len(stale)

    def clear(self) -> None:
        self._data.clear()
