"""Roles globales y su asignación a usuarios (`/auth/roles`, `/users`)."""

from __future__ import annotations

import asyncio
import logging

from core.domain.admin import RoleWithPermissions, User, UserRole, UserRolesResponse, UserWithRole
from core.domain.models import StandardListResponse
from core.errors import ApiError
from core.interfaces import ApiTransport

logger = logging.getLogger(__name__)


class RolesApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._api = transport

    async def list_roles(self) -> StandardListResponse[RoleWithPermissions]:
        return await self._api.fetch_list("/auth/roles", RoleWithPermissions)

    async def list_users(self, *, page_size: int = 100) -> StandardListResponse[User]:
        return await self._api.fetch_list("/users", User, params={"page_size": page_size})

    async def get_user_roles(self, user_id: str) -> UserRolesResponse:
        # Este endpoint devuelve `{roles, total}` sin sobre.
        raw = await self._api.fetch_raw("GET", f"/auth/roles/{user_id}")
        return UserRolesResponse.model_validate(raw or {})

    async def assign_role(self, user_id: str, role: str) -> UserRole:
        return await self._api.fetch_one("POST", f"/auth/roles/{user_id}", UserRole, json={"role": role})

    async def remove_role(self, user_id: str, role: str) -> None:
        await self._api.send("DELETE", f"/auth/roles/{user_id}/{role}")

    async def users_with_role(self, role: str, users: list[User] | None = None) -> list[UserWithRole]:
        """Usuarios que tienen `role`, en el orden del listado de usuarios.

        Un usuario cuya consulta de roles falla se omite (warning), no aborta
        el resto.
        """

        if users is None:
            users = (await self.list_users()).data

        results = await asyncio.gather(
            *(self.get_user_roles(user.id) for user in users),
            return_exceptions=True,
        )

        matched: list[UserWithRole] = []
        for user, result in zip(users, results):
            if isinstance(result, ApiError):
                logger.warning("Could not fetch roles for user %s: %s", user.id, result)
                continue
            if isinstance(result, BaseException):
                raise result
            user_role = next((item for item in result.roles if item.role == role), None)
            if user_role is not None:
                matched.append(UserWithRole(**user.model_dump(), user_role=user_role))
        return matched
