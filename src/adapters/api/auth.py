"""Sesión: login, refresh y usuario actual (`/auth`).

A diferencia del resto de recursos, necesita el `ApiClient` concreto: guarda
los tokens en el cliente (y en el `.env` del usuario) tras un login.
"""

from __future__ import annotations

import logging

from adapters.http_client import ApiClient
from core.domain.admin import AuthTokens, CurrentUser
from core.errors import AuthenticationError

logger = logging.getLogger(__name__)


class AuthApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def login(self, email: str, password: str) -> AuthTokens:
        tokens = await self._client.fetch_one(
            "POST",
            "/auth/login",
            AuthTokens,
            json={"email": email, "password": password},
        )
        self._client.set_tokens(tokens.access_token, tokens.refresh_token)
        logger.info("Logged in as %s", email)
        return tokens

    async def refresh(self, refresh_token: str | None = None) -> AuthTokens:
        token = refresh_token or self._client.refresh_token
        if not token:
            raise AuthenticationError("No hay refresh token guardado", status_code=401)
        tokens = await self._client.fetch_one(
            "POST",
            "/auth/refresh",
            AuthTokens,
            json={"refresh_token": token},
        )
        self._client.set_tokens(tokens.access_token, tokens.refresh_token or token)
        return tokens

    async def me(self) -> CurrentUser:
        return await self._client.fetch_one("GET", "/auth/me", CurrentUser)

    def logout(self) -> None:
        self._client.clear_tokens()
