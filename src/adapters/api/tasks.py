"""Recurso `/tasks`: CRUD, checklist, asignaciones, agenda, vistas, adjuntos y ajustes."""

from __future__ import annotations

import logging
from datetime import date

from core.domain.models import StandardListResponse
from core.domain.tasks import (
    AgendaItem,
    CalendarSource,
    CalendarSourcePreferences,
    ChecklistItem,
    SavedView,
    Task,
    TaskAssignment,
    TaskFileAttachment,
    TaskModuleSettings,
    TaskPriority,
    TaskStatus,
)
from core.interfaces import ApiTransport
from core.services.forms import SavedViewForm, TaskFileForm, TaskForm, TaskUpdateForm

logger = logging.getLogger(__name__)


class TasksApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._api = transport

    async def list_tasks(
        self,
        *,
        page: int = 1,
        page_size: int = 20,
        status: TaskStatus | None = None,
        assigned_to_id: str | None = None,
        priority: TaskPriority | None = None,
    ) -> StandardListResponse[Task]:
        params = {
            "page": page or 1,
            "page_size": page_size or 20,
            "status": status.value if status else None,
            "assigned_to_id": assigned_to_id,
            "priority": priority.value if priority else None,
        }
        return await self._api.fetch_list("/tasks", Task, params=params)

    async def list_my_tasks(
        self,
        *,
        page: int = 1,
        page_size: int = 20,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
    ) -> StandardListResponse[Task]:
        params = {
            "page": page or 1,
            "page_size": page_size or 20,
            "status": status.value if status else None,
            "priority": priority.value if priority else None,
        }
        return await self._api.fetch_list("/tasks/my-tasks", Task, params=params)

    async def get_task(self, task_id: str) -> Task:
        return await self._api.fetch_one("GET", f"/tasks/{task_id}", Task)

    async def create_task(self, form: TaskForm) -> Task:
        return await self._api.fetch_one("POST", "/tasks", Task, json=form.to_payload())

    async def update_task(self, task_id: str, form: TaskUpdateForm) -> Task:
        return await self._api.fetch_one("PUT", f"/tasks/{task_id}", Task, json=form.to_payload())

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """Cambio rápido de estado desde la tarjeta de la tarea."""

        logger.info("Task %s -> %s", task_id, status.value)
        return await self._api.fetch_one("PUT", f"/tasks/{task_id}", Task, json={"status": status.value})

    async def delete_task(self, task_id: str) -> None:
        await self._api.send("DELETE", f"/tasks/{task_id}")

    # Checklist

    async def list_checklist(self, task_id: str) -> StandardListResponse[ChecklistItem]:
        return await self._api.fetch_list(f"/tasks/{task_id}/checklist", ChecklistItem)

    async def add_checklist_item(self, task_id: str, title: str, *, completed: bool = False) -> ChecklistItem:
        return await self._api.fetch_one(
            "POST",
            f"/tasks/{task_id}/checklist",
            ChecklistItem,
            json={"title": title, "completed": completed},
        )

    async def update_checklist_item(
        self,
        item_id: str,
        *,
        title: str | None = None,
        completed: bool | None = None,
    ) -> ChecklistItem:
        payload = {k: v for k, v in {"title": title, "completed": completed}.items() if v is not None}
        return await self._api.fetch_one("PUT", f"/tasks/checklist/{item_id}", ChecklistItem, json=payload)

    async def delete_checklist_item(self, item_id: str) -> None:
        await self._api.send("DELETE", f"/tasks/checklist/{item_id}")

    # Asignaciones

    async def list_assignments(self, task_id: str) -> StandardListResponse[TaskAssignment]:
        return await self._api.fetch_list(f"/tasks/{task_id}/assignments", TaskAssignment)

    async def assign(
        self,
        task_id: str,
        *,
        assigned_to_id: str | None = None,
        assigned_to_group_id: str | None = None,
        role: str | None = None,
        notes: str | None = None,
        created_by_id: str | None = None,
    ) -> TaskAssignment:
        if not assigned_to_id and not assigned_to_group_id:
            raise ValueError("assigned_to_id or assigned_to_group_id is required")
        payload = {
            "task_id": task_id,
            "assigned_to_id": assigned_to_id,
            "assigned_to_group_id": assigned_to_group_id,
            "role": role,
            "notes": notes,
            "created_by_id": created_by_id,
        }
        return await self._api.fetch_one(
            "POST",
            f"/tasks/{task_id}/assignments",
            TaskAssignment,
            json={k: v for k, v in payload.items() if v is not None},
        )

    async def unassign(self, task_id: str, assignment_id: str) -> None:
        await self._api.send("DELETE", f"/tasks/{task_id}/assignments/{assignment_id}")

    # Ajustes del módulo

    async def get_settings(self) -> TaskModuleSettings:
        return await self._api.fetch_one("GET", "/tasks/settings", TaskModuleSettings)

    async def update_settings(self, **changes: bool) -> TaskModuleSettings:
        return await self._api.fetch_one("PUT", "/tasks/settings", TaskModuleSettings, json=changes)

    # Agenda y calendario

    async def get_agenda(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        sources: list[str] | None = None,
    ) -> StandardListResponse[AgendaItem]:
        params = {
            "start_date": start_date.isoformat() if start_date else None,
            "end_date": end_date.isoformat() if end_date else None,
            "sources": ",".join(sources) if sources else None,
        }
        return await self._api.fetch_list("/tasks/agenda", AgendaItem, params=params)

    async def get_calendar_sources(self) -> StandardListResponse[CalendarSource]:
        return await self._api.fetch_list("/tasks/calendar-sources", CalendarSource)

    async def update_calendar_sources(self, preferences: CalendarSourcePreferences) -> list[CalendarSource]:
        raw = await self._api.fetch_raw(
            "PUT",
            "/tasks/calendar-sources",
            json=preferences.model_dump(mode="json"),
        )
        return [CalendarSource.model_validate(item) for item in raw or []]

    # Vistas guardadas

    async def list_views(self) -> StandardListResponse[SavedView]:
        return await self._api.fetch_list("/tasks/views", SavedView)

    async def create_view(self, form: SavedViewForm) -> SavedView:
        return await self._api.fetch_one("POST", "/tasks/views", SavedView, json=form.to_payload())

    # Adjuntos

    async def list_files(self, task_id: str) -> StandardListResponse[TaskFileAttachment]:
        return await self._api.fetch_list(f"/tasks/{task_id}/files", TaskFileAttachment)

    async def attach_file(self, task_id: str, form: TaskFileForm) -> TaskFileAttachment:
        # Los metadatos viajan como query string; el cuerpo va vacío.
        return await self._api.fetch_one(
            "POST",
            f"/tasks/{task_id}/files",
            TaskFileAttachment,
            params=form.to_payload(),
            json={},
        )

    async def detach_file(self, task_id: str, file_id: str) -> None:
        logger.info("Detaching file %s from task %s", file_id, task_id)
        await self._api.send("DELETE", f"/tasks/{task_id}/files/{file_id}")
