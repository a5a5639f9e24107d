"""Modelos de comentarios (tareas/eventos) y menciones."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from core.domain.models import ApiModel


class CommentEntity(str, Enum):
    """Entidades que admiten hilo de comentarios."""

    TASK = "task"
    EVENT = "event"

    @property
    def collection(self) -> str:
        return f"{self.value}s"


class Comment(ApiModel):
    id: str
    content: str
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    parent_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_edited: bool = False
    edited_at: datetime | None = None
    mentions: list[str] = Field(default_factory=list)

    @property
    def author(self) -> str:
        return self.user_name or self.user_email or self.user_id or "?"


class CommentMention(ApiModel):
    id: str
    comment_id: str
    mentioned_user_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    content: str | None = None
    is_read: bool = False
    created_at: datetime | None = None
