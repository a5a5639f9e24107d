"""Modelos del módulo de tareas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from core.domain.models import ApiModel, UserSummary


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    BLOCKED = "blocked"
    REVIEW = "review"
    DONE = "done"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ChecklistItem(ApiModel):
    id: str
    title: str
    completed: bool = False
    completed_at: datetime | None = None


class Task(ApiModel):
    """Tarea tal como la devuelve `GET /tasks/{id}`."""

    id: str
    tenant_id: str | None = None
    title: str
    description: str = ""
    assigned_to_id: str | None = None
    created_by_id: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    all_day: bool | None = None
    tag_ids: list[str] | None = None
    color_override: str | None = None
    completed_at: datetime | None = None
    checklist: list[ChecklistItem] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    source_module: str | None = None
    source_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Campos de vista: algunos endpoints los expanden.
    assigned_to: UserSummary | None = None
    tags: list[str] | None = None
    estimated_duration: int | None = Field(
        default=None,
        description="Duración estimada en minutos.",
    )


class TaskAssignment(ApiModel):
    id: str
    task_id: str
    assigned_to_id: str | None = None
    assigned_to_group_id: str | None = None
    assigned_by_id: str | None = None
    role: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class TaskModuleSettings(ApiModel):
    calendar_enabled: bool = True
    board_enabled: bool = True
    inbox_enabled: bool = True
    list_enabled: bool = True
    stats_enabled: bool = True


class AgendaItemType(str, Enum):
    TASK = "task"
    EVENT = "event"
    MEETING = "meeting"
    DEADLINE = "deadline"


class AgendaItem(ApiModel):
    """Entrada de agenda: tareas y eventos de otras fuentes en un mismo listado."""

    id: str
    title: str
    description: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    source: str
    source_id: str | None = None
    type: AgendaItemType = AgendaItemType.TASK
    status: str | None = None
    priority: TaskPriority | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CalendarSource(ApiModel):
    id: str
    name: str
    type: str = "internal"
    enabled: bool = True
    color: str | None = None
    url: str | None = None
    sync_enabled: bool = False
    last_sync_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CalendarDisplayOptions(ApiModel):
    show_completed: bool = True
    show_cancelled: bool = False
    group_by_source: bool = False


class CalendarSourcePreferences(ApiModel):
    enabled_sources: list[str] = Field(default_factory=list)
    default_colors: dict[str, str] = Field(default_factory=dict)
    sync_intervals: dict[str, int] = Field(default_factory=dict)
    display_options: CalendarDisplayOptions = Field(default_factory=CalendarDisplayOptions)


class ViewSortConfig(ApiModel):
    field: str = "due_date"
    direction: str = "asc"


class SavedView(ApiModel):
    """Vista guardada del listado de tareas (filtros, orden y columnas)."""

    id: str
    name: str
    description: str | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    sort_config: ViewSortConfig = Field(default_factory=ViewSortConfig)
    column_config: dict[str, dict[str, Any]] = Field(default_factory=dict)
    is_default: bool = False
    is_public: bool = False
    created_by_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskFileAttachment(ApiModel):
    file_id: str
    file_name: str
    file_size: int = 0
    file_type: str = "application/octet-stream"
    file_url: str | None = None
    attached_at: datetime | None = None
    attached_by: str | None = None
