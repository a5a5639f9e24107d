from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Awaitable, Callable

import httpx
import pytest

from adapters import http_client
from adapters.http_client import ApiClient
from core.config import AppSettings

API_PREFIX = "/api/v1"


def envelope(data: Any, **extra: Any) -> dict[str, Any]:
    return {"data": data, **extra}


def list_envelope(items: list[Any], *, page: int = 1, page_size: int = 20, total: int | None = None) -> dict[str, Any]:
    total = len(items) if total is None else total
    return {
        "data": items,
        "meta": {
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": max(1, -(-total // page_size)),
        },
    }


class FakeBackend:
    """Backend en memoria: rutas (método, path) -> respuestas en cola.

    La última respuesta de cada ruta se repite indefinidamente.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Any) -> "FakeBackend":
        self.routes[(method.upper(), API_PREFIX + path)] = list(responses)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        full = API_PREFIX + path
        return [r for r in self.requests if r.method == method.upper() and r.url.path == full]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": {"code": "NOT_FOUND", "message": "Ruta no encontrada"}})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(item):
            item = item(request)
        if isinstance(item, httpx.Response):
            return item
        if isinstance(item, Exception):
            raise item
        return httpx.Response(200, json=item)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Config de usuario en tmp y sin variables AIUTOX_* heredadas."""

    config_dir = tmp_path / "config"
    for key in list(os.environ):
        if key.startswith("AIUTOX_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AIUTOX_CONFIG_DIR", str(config_dir))
    monkeypatch.chdir(tmp_path)
    return config_dir


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        api_base_url="http://erp.test",
        access_token="access-1",
        refresh_token="refresh-1",
        http_max_retries=2,
    )


@pytest.fixture
def call(settings, backend) -> Callable[[Callable[[ApiClient], Awaitable[Any]]], Any]:
    """Ejecuta `action(client)` contra el backend falso."""

    def _call(action: Callable[[ApiClient], Awaitable[Any]], *, client_settings: AppSettings | None = None) -> Any:
        async def _runner() -> Any:
            async with ApiClient(
                client_settings or settings,
                transport=backend.transport,
                persist_tokens=False,
                backoff_seconds=0,
            ) as client:
                return await action(client)

        return asyncio.run(_runner())

    return _call


@pytest.fixture
def cli_backend(backend, monkeypatch) -> FakeBackend:
    """Hace que la CLI hable con el backend falso en lugar de la red."""

    original = http_client.build_async_client

    def _build(settings=None, *, extra_headers=None, transport=None):
        return original(settings, extra_headers=extra_headers, transport=backend.transport)

    monkeypatch.setattr(http_client, "build_async_client", _build)
    monkeypatch.setenv("AIUTOX_API_BASE_URL", "http://erp.test")
    monkeypatch.setenv("AIUTOX_ACCESS_TOKEN", "access-1")
    return backend
