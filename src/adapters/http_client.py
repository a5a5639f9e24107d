"""Wrapper de httpx para la API del ERP.

Por qué un wrapper:
- Estandariza timeouts, headers, auth Bearer, reintentos y logging.
- Desenvuelve el sobre `{data, meta, error}` en un único sitio y traduce los
  fallos HTTP a `core.errors`.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from pathlib import Path
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from core.config import AppSettings, clear_user_env_vars, write_user_env_vars
from core.domain.models import StandardListResponse, StandardResponse
from core.errors import ApiError, AuthenticationError, NotFoundError, TransportError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_RETRYABLE_STATUS = frozenset({502, 503, 504})
_REFRESH_PATH = "/auth/refresh"
# Un 401 aquí es un fallo de credenciales, no un token caducado.
_NO_REFRESH_PATHS = frozenset({_REFRESH_PATH, "/auth/login"})


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza base_url/timeouts/headers para que todos los recursos se
      comporten igual.
    - `transport` permite sustituir la red por un backend falso en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.api_root,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Descarta valores `None` (el backend interpreta ausencia != vacío)."""

    if not params:
        return None
    out = {k: v for k, v in params.items() if v is not None and v != ""}
    return out or None


def _error_from_response(response: httpx.Response) -> ApiError:
    message = response.reason_phrase or "Error desconocido"
    code: str | None = None
    details: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = str(error.get("message") or message)
            code = error.get("code")
            details = error.get("details")
        elif isinstance(body.get("detail"), str):
            message = body["detail"]
        elif body.get("detail") is not None:
            message = "Validation error"
            details = body["detail"]

    status = response.status_code
    if status == 401:
        cls: type[ApiError] = AuthenticationError
    elif status == 404:
        cls = NotFoundError
    else:
        cls = ApiError
    return cls(message, status_code=status, code=code, details=details)


class ApiClient:
    """Cliente compartido por todos los recursos (`adapters.api.*`).

    Uso:
        async with ApiClient(settings) as api:
            tasks = await TasksApi(api).list_tasks()
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        persist_tokens: bool = True,
        backoff_seconds: float = 0.5,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport
        self._persist_tokens = persist_tokens
        self._backoff_seconds = backoff_seconds
        self._client: httpx.AsyncClient | None = None
        self._refresh_lock = asyncio.Lock()
        self.access_token = self._settings.access_token
        self.refresh_token = self._settings.refresh_token

    @property
    def settings(self) -> AppSettings:
        return self._settings

    async def __aenter__(self) -> "ApiClient":
        self._client = build_async_client(self._settings, transport=self._transport)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("ApiClient must be used as an async context manager")
        return self._client

    def set_tokens(self, access_token: str, refresh_token: str | None = None) -> None:
        self.access_token = access_token
        if refresh_token is not None:
            self.refresh_token = refresh_token
        if self._persist_tokens:
            write_user_env_vars(
                {
                    "AIUTOX_ACCESS_TOKEN": access_token,
                    "AIUTOX_REFRESH_TOKEN": refresh_token,
                }
            )

    def clear_tokens(self) -> None:
        self.access_token = None
        self.refresh_token = None
        if self._persist_tokens:
            clear_user_env_vars()

    def _auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _send_once(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {**kwargs.pop("headers", {}), **self._auth_headers()}
        started = time.perf_counter()
        response = await self.http.request(method, path, headers=headers, **kwargs)
        logger.debug(
            "%s %s -> %s (%.0f ms)",
            method,
            path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    async def _send_with_retries(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        retries = self._settings.http_max_retries if method == "GET" else 0
        attempt = 0
        while True:
            try:
                response = await self._send_once(method, path, **kwargs)
            except httpx.TransportError as exc:
                if attempt >= retries:
                    raise TransportError(f"No se pudo conectar con el servidor: {exc}") from exc
                logger.info("GET %s failed (%s); retrying", path, type(exc).__name__)
            else:
                if response.status_code not in _RETRYABLE_STATUS or attempt >= retries:
                    return response
                logger.info("GET %s -> %s; retrying", path, response.status_code)

            delay = self._backoff_seconds * (2**attempt)
            if delay:
                await asyncio.sleep(delay + random.uniform(0.0, delay / 2))
            attempt += 1

    async def _refresh_access_token(self, stale_token: str | None) -> bool:
        """Renueva el access token una sola vez aunque haya 401 concurrentes."""

        async with self._refresh_lock:
            if self.access_token and self.access_token != stale_token:
                # Otra corrutina ya lo renovó mientras esperábamos el lock.
                return True
            if not self.refresh_token:
                return False
            logger.info("Access token rejected; refreshing")
            try:
                response = await self.http.post(_REFRESH_PATH, json={"refresh_token": self.refresh_token})
            except httpx.TransportError as exc:
                logger.warning("Token refresh failed: %s", type(exc).__name__)
                self.clear_tokens()
                return False
            if response.status_code >= 400:
                logger.warning("Token refresh rejected with HTTP %s", response.status_code)
                self.clear_tokens()
                return False
            try:
                payload = response.json()
            except ValueError:
                logger.warning("Token refresh returned a non-JSON body")
                self.clear_tokens()
                return False
            body = payload.get("data", payload) if isinstance(payload, dict) else {}
            token = body.get("access_token") if isinstance(body, dict) else None
            if not token:
                self.clear_tokens()
                return False
            self.set_tokens(token, self.refresh_token)
            return True

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: Any = None,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Envía una petición y devuelve la respuesta 2xx o lanza `ApiError`."""

        method = method.upper()
        kwargs: dict[str, Any] = {"params": clean_params(params)}
        if json is not None:
            kwargs["json"] = json
        if files is not None:
            kwargs["files"] = files
        if data is not None:
            kwargs["data"] = data

        token_used = self.access_token
        response = await self._send_with_retries(method, path, **kwargs)

        if response.status_code == 401 and path not in _NO_REFRESH_PATHS:
            if await self._refresh_access_token(token_used):
                response = await self._send_with_retries(method, path, **kwargs)
            else:
                raise AuthenticationError(
                    "Refresh token expired" if token_used else "Sesión no iniciada: ejecuta `aiutox auth login`",
                    status_code=401,
                )

        if response.status_code >= 400:
            raise _error_from_response(response)
        return response

    async def _json(self, response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError("Respuesta no es JSON", status_code=response.status_code) from exc
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            error = payload["error"]
            raise ApiError(
                str(error.get("message") or "Error desconocido"),
                status_code=response.status_code,
                code=error.get("code"),
                details=error.get("details"),
            )
        return payload

    async def fetch_one(
        self,
        method: str,
        path: str,
        model: type[M],
        **kwargs: Any,
    ) -> M:
        """Petición cuyo `data` es un único objeto de tipo `model`."""

        payload = await self._json(await self.request(method, path, **kwargs))
        if payload is None:
            raise ApiError("API response is empty")
        envelope = StandardResponse[model].model_validate(payload)  # type: ignore[valid-type]
        if envelope.data is None:
            raise ApiError("API response is empty")
        return envelope.data

    async def fetch_list(
        self,
        path: str,
        model: type[M],
        *,
        params: dict[str, Any] | None = None,
    ) -> StandardListResponse[M]:
        payload = await self._json(await self.request("GET", path, params=params))
        if payload is None:
            raise ApiError("API response is empty")
        return StandardListResponse[model].model_validate(payload)  # type: ignore[valid-type]

    async def fetch_raw(self, method: str, path: str, **kwargs: Any) -> Any:
        """Petición que devuelve el `data` sin modelar (listas de strings, etc.)."""

        payload = await self._json(await self.request(method, path, **kwargs))
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    async def send(self, method: str, path: str, **kwargs: Any) -> None:
        """Mutación cuya respuesta no interesa (DELETE, acciones)."""

        await self._json(await self.request(method, path, **kwargs))

    async def download(
        self,
        path: str,
        output_path: Path,
        *,
        params: dict[str, Any] | None = None,
    ) -> Path:
        """Descarga binaria (export/sample) directamente a disco."""

        response = await self.request("GET", path, params=params)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(response.content)
        logger.info("Downloaded %s bytes to %s", len(response.content), output_path)
        return output_path
