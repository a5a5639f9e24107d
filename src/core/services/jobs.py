"""Seguimiento de jobs de import/export.

El procesamiento vive en el servidor. Aquí solo:
- se decide si un job sigue "activo" (pending/processing) para seguir
  consultándolo,
- se formatea el tiempo transcurrido como en la tarjeta de job,
- se re-lee el job cada `interval` segundos hasta que sale de los estados
  activos (`watch_job`).
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from core.domain.import_export import ExportJob, ImportJob, JobStatus

logger = logging.getLogger(__name__)

J = TypeVar("J", ImportJob, ExportJob)

ACTIVE_STATUSES = frozenset({JobStatus.PENDING, JobStatus.PROCESSING})

STATUS_STYLES: dict[JobStatus, str] = {
    JobStatus.PENDING: "yellow",
    JobStatus.PROCESSING: "blue",
    JobStatus.COMPLETED: "green",
    JobStatus.FAILED: "red",
    JobStatus.CANCELLED: "grey62",
}

STATUS_TEXT: dict[JobStatus, str] = {
    JobStatus.PENDING: "Pendiente",
    JobStatus.PROCESSING: "Procesando",
    JobStatus.COMPLETED: "Completado",
    JobStatus.FAILED: "Fallido",
    JobStatus.CANCELLED: "Cancelado",
}


class JobWatchTimeout(TimeoutError):
    """El job siguió activo más allá del tiempo máximo de espera."""


def is_active(status: JobStatus) -> bool:
    return status in ACTIVE_STATUSES


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def elapsed_time(
    started_at: datetime | None,
    completed_at: datetime | None = None,
    now: datetime | None = None,
) -> str | None:
    """`Ns`, `Nm Ns` o `Nh Nm`; `None` si el job no ha empezado."""

    if started_at is None:
        return None
    end = completed_at or now or datetime.now(timezone.utc)
    elapsed = int((_aware(end) - _aware(started_at)).total_seconds())
    elapsed = max(elapsed, 0)
    if elapsed < 60:
        return f"{elapsed}s"
    if elapsed < 3600:
        return f"{elapsed // 60}m {elapsed % 60}s"
    return f"{elapsed // 3600}h {(elapsed % 3600) // 60}m"


def job_progress(job: ImportJob | ExportJob) -> float:
    return float(job.progress)


async def watch_job(
    fetch: Callable[[], Awaitable[J]],
    *,
    interval: float = 2.0,
    timeout: float | None = None,
) -> AsyncIterator[J]:
    """Re-lee el job hasta que deja de estar activo; emite cada snapshot.

    El último valor emitido es siempre el estado terminal.
    """

    deadline = time.monotonic() + timeout if timeout else None
    while True:
        job = await fetch()
        yield job
        if not is_active(job.status):
            logger.debug("Job %s finished with status %s", job.id, job.status.value)
            return
        if deadline is not None and time.monotonic() >= deadline:
            raise JobWatchTimeout(f"Job {job.id} still {job.status.value} after {timeout:.0f}s")
        await asyncio.sleep(interval)
