"""Reglas de presentación de tareas (TaskCard).

Nada de esto se persiste: el backend es la fuente de verdad y estos valores
solo deciden qué se muestra (badge de vencida, barra de progreso).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from core.domain.language import Language
from core.domain.tasks import ChecklistItem, Task, TaskPriority, TaskStatus
from core.services.rounding import round_half_up_int

STATUS_LABELS: dict[Language, dict[TaskStatus, str]] = {
    Language.SPANISH: {
        TaskStatus.TODO: "Por hacer",
        TaskStatus.IN_PROGRESS: "En progreso",
        TaskStatus.ON_HOLD: "En espera",
        TaskStatus.BLOCKED: "Bloqueada",
        TaskStatus.REVIEW: "En revisión",
        TaskStatus.DONE: "Completada",
        TaskStatus.CANCELLED: "Cancelada",
    },
    Language.ENGLISH: {
        TaskStatus.TODO: "To do",
        TaskStatus.IN_PROGRESS: "In progress",
        TaskStatus.ON_HOLD: "On hold",
        TaskStatus.BLOCKED: "Blocked",
        TaskStatus.REVIEW: "Review",
        TaskStatus.DONE: "Done",
        TaskStatus.CANCELLED: "Cancelled",
    },
}

STATUS_STYLES: dict[TaskStatus, str] = {
    TaskStatus.TODO: "grey62",
    TaskStatus.IN_PROGRESS: "blue",
    TaskStatus.DONE: "green",
    TaskStatus.CANCELLED: "red",
    TaskStatus.ON_HOLD: "yellow",
    TaskStatus.BLOCKED: "bold red",
    TaskStatus.REVIEW: "magenta",
}

PRIORITY_STYLES: dict[TaskPriority, str] = {
    TaskPriority.LOW: "green",
    TaskPriority.MEDIUM: "yellow",
    TaskPriority.HIGH: "dark_orange",
    TaskPriority.URGENT: "bold red",
}


def completion_percentage(items: Iterable[ChecklistItem]) -> int:
    """Porcentaje de checklist completado, redondeado; 0 si no hay items."""

    items = list(items)
    if not items:
        return 0
    done = sum(1 for item in items if item.completed)
    return round_half_up_int(done / len(items) * 100)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    """Vencida si tiene fecha límite pasada y no está en `done`.

    Las tareas canceladas también cuentan como vencidas: la UI web solo
    excluye `done`.
    """

    if task.due_date is None or task.status is TaskStatus.DONE:
        return False
    now = _as_aware(now or datetime.now(timezone.utc))
    return _as_aware(task.due_date) < now


def estimated_hours(minutes: int | None) -> int | None:
    if minutes is None:
        return None
    return round_half_up_int(minutes / 60)


def status_label(status: TaskStatus, language: Language = Language.SPANISH) -> str:
    return STATUS_LABELS[language][status]
