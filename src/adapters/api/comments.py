"""Hilos de comentarios de tareas y eventos (`/{tipo}s/{id}/comments`)."""

from __future__ import annotations

from core.domain.comments import Comment, CommentEntity, CommentMention
from core.domain.models import StandardListResponse
from core.interfaces import ApiTransport
from core.services.forms import CommentForm


class CommentsApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._api = transport

    @staticmethod
    def _base(entity: CommentEntity, entity_id: str) -> str:
        return f"/{entity.collection}/{entity_id}/comments"

    async def list(self, entity: CommentEntity, entity_id: str) -> list[Comment]:
        raw = await self._api.fetch_raw("GET", self._base(entity, entity_id))
        return [Comment.model_validate(item) for item in raw or []]

    async def add(self, entity: CommentEntity, entity_id: str, form: CommentForm) -> Comment:
        return await self._api.fetch_one(
            "POST",
            self._base(entity, entity_id),
            Comment,
            json={"content": form.content, "mentions": form.mentions or []},
        )

    async def edit(
        self,
        entity: CommentEntity,
        entity_id: str,
        comment_id: str,
        form: CommentForm,
    ) -> Comment:
        return await self._api.fetch_one(
            "PUT",
            f"{self._base(entity, entity_id)}/{comment_id}",
            Comment,
            json={"content": form.content},
        )

    async def delete(self, entity: CommentEntity, entity_id: str, comment_id: str) -> None:
        await self._api.send("DELETE", f"{self._base(entity, entity_id)}/{comment_id}")

    async def list_mentions(self, *, page: int = 1, page_size: int = 20) -> StandardListResponse[CommentMention]:
        return await self._api.fetch_list(
            "/comments/mentions",
            CommentMention,
            params={"page": page, "page_size": page_size},
        )
