from __future__ import annotations

import asyncio

import httpx
import pytest

from adapters.http_client import ApiClient
from conftest import envelope, list_envelope, request_json
from core.config import AppSettings, read_user_env_vars
from core.domain.tasks import Task
from core.errors import ApiError, AuthenticationError, NotFoundError, TransportError


def test_unwraps_single_envelope_and_sends_bearer(call, backend):
    backend.add("GET", "/tasks/t1", envelope({"id": "t1", "title": "Inventario"}))

    task = call(lambda client: client.fetch_one("GET", "/tasks/t1", Task))

    assert task.title == "Inventario"
    request = backend.calls("GET", "/tasks/t1")[0]
    assert request.headers["Authorization"] == "Bearer access-1"
    assert request.headers["User-Agent"].startswith("aiutox-console/")


def test_unwraps_list_envelope_and_drops_empty_params(call, backend):
    backend.add("GET", "/tasks", list_envelope([{"id": "t1", "title": "A"}], total=41, page_size=20))

    response = call(
        lambda client: client.fetch_list("/tasks", Task, params={"page": 1, "status": None, "q": ""})
    )

    assert [task.id for task in response.data] == ["t1"]
    assert response.meta.total == 41
    assert response.meta.more_pages
    assert dict(backend.requests[0].url.params) == {"page": "1"}


def test_error_envelope_becomes_api_error(call, backend):
    backend.add(
        "POST",
        "/products",
        httpx.Response(409, json={"error": {"code": "DUPLICATE_SKU", "message": "SKU ya existe"}}),
    )

    with pytest.raises(ApiError) as exc_info:
        call(lambda client: client.send("POST", "/products", json={}))

    assert exc_info.value.status_code == 409
    assert exc_info.value.code == "DUPLICATE_SKU"
    assert str(exc_info.value) == "HTTP 409: SKU ya existe"


def test_error_inside_200_body_is_raised(call, backend):
    backend.add("GET", "/products/stats", {"data": None, "error": {"code": "X", "message": "Fallo interno"}})

    with pytest.raises(ApiError, match="Fallo interno"):
        call(lambda client: client.fetch_raw("GET", "/products/stats"))


def test_not_found_and_validation_detail(call, backend):
    backend.add("GET", "/tasks/missing", httpx.Response(404, json={"detail": "Task not found"}))
    backend.add("POST", "/tasks", httpx.Response(422, json={"detail": [{"loc": ["body", "title"]}]}))

    with pytest.raises(NotFoundError, match="Task not found"):
        call(lambda client: client.send("GET", "/tasks/missing"))
    with pytest.raises(ApiError) as exc_info:
        call(lambda client: client.send("POST", "/tasks", json={}))
    assert exc_info.value.message == "Validation error"
    assert exc_info.value.details == [{"loc": ["body", "title"]}]


def test_empty_body_is_an_error_for_fetch_one(call, backend):
    backend.add("GET", "/tasks/t1", httpx.Response(204))

    with pytest.raises(ApiError, match="API response is empty"):
        call(lambda client: client.fetch_one("GET", "/tasks/t1", Task))


def test_refreshes_token_once_on_401(call, backend):
    def protected(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") == "Bearer access-2":
            return httpx.Response(200, json=envelope({"id": "t1", "title": "Inventario"}))
        return httpx.Response(401, json={"detail": "Token expired"})

    backend.add("GET", "/tasks/t1", protected)
    backend.add("POST", "/auth/refresh", envelope({"access_token": "access-2"}))

    task = call(lambda client: client.fetch_one("GET", "/tasks/t1", Task))

    assert task.id == "t1"
    refresh = backend.calls("POST", "/auth/refresh")
    assert len(refresh) == 1
    assert request_json(refresh[0]) == {"refresh_token": "refresh-1"}
    assert len(backend.calls("GET", "/tasks/t1")) == 2


def test_failed_refresh_clears_session(call, backend):
    backend.add("GET", "/auth/me", httpx.Response(401, json={"detail": "expired"}))
    backend.add("POST", "/auth/refresh", httpx.Response(401, json={"detail": "refresh expired"}))
    seen = {}

    async def action(client):
        try:
            await client.send("GET", "/auth/me")
        finally:
            seen["tokens"] = (client.access_token, client.refresh_token)

    with pytest.raises(AuthenticationError, match="Refresh token expired"):
        call(action)
    assert seen["tokens"] == (None, None)


def test_concurrent_401s_share_one_refresh(call, backend):
    def protected(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") == "Bearer access-2":
            return httpx.Response(200, json=envelope({"id": "t1", "title": "Inventario"}))
        return httpx.Response(401, json={"detail": "Token expired"})

    backend.add("GET", "/tasks/t1", protected)
    backend.add("POST", "/auth/refresh", envelope({"access_token": "access-2"}))

    async def action(client):
        return await asyncio.gather(*(client.fetch_one("GET", "/tasks/t1", Task) for _ in range(5)))

    tasks = call(action)

    assert [task.id for task in tasks] == ["t1"] * 5
    assert len(backend.calls("POST", "/auth/refresh")) == 1


def test_refresh_with_non_json_body_clears_session(call, backend):
    backend.add("GET", "/tasks/t1", httpx.Response(401, json={"detail": "Token expired"}))
    backend.add("POST", "/auth/refresh", httpx.Response(200, text="<html>proxy</html>"))
    seen = {}

    async def action(client):
        try:
            await client.send("GET", "/tasks/t1")
        finally:
            seen["tokens"] = (client.access_token, client.refresh_token)

    with pytest.raises(AuthenticationError, match="Refresh token expired"):
        call(action)
    assert seen["tokens"] == (None, None)


def test_401_without_session_asks_to_login(call, backend):
    backend.add("GET", "/auth/me", httpx.Response(401, json={"detail": "Not authenticated"}))
    anonymous = AppSettings(api_base_url="http://erp.test")

    with pytest.raises(AuthenticationError, match="Sesión no iniciada"):
        call(lambda client: client.send("GET", "/auth/me"), client_settings=anonymous)
    assert backend.calls("POST", "/auth/refresh") == []


def test_login_401_is_not_refreshed(call, backend):
    backend.add(
        "POST",
        "/auth/login",
        httpx.Response(401, json={"error": {"code": "INVALID_CREDENTIALS", "message": "Credenciales inválidas"}}),
    )

    with pytest.raises(AuthenticationError, match="Credenciales inválidas"):
        call(lambda client: client.send("POST", "/auth/login", json={}))
    assert backend.calls("POST", "/auth/refresh") == []


def test_get_retries_transient_failures(call, backend):
    backend.add(
        "GET",
        "/products/stats",
        httpx.Response(503),
        httpx.ConnectError("connection refused"),
        envelope({"total_products": 3}),
    )

    raw = call(lambda client: client.fetch_raw("GET", "/products/stats"))

    assert raw == {"total_products": 3}
    assert len(backend.calls("GET", "/products/stats")) == 3


def test_get_gives_up_after_max_retries(call, backend):
    backend.add("GET", "/products/stats", httpx.ConnectError("connection refused"))

    with pytest.raises(TransportError):
        call(lambda client: client.fetch_raw("GET", "/products/stats"))
    # 1 intento + 2 reintentos
    assert len(backend.calls("GET", "/products/stats")) == 3


def test_mutations_are_not_retried(call, backend):
    backend.add("POST", "/tasks", httpx.Response(503))

    with pytest.raises(ApiError) as exc_info:
        call(lambda client: client.send("POST", "/tasks", json={"title": "x"}))
    assert exc_info.value.status_code == 503
    assert len(backend.calls("POST", "/tasks")) == 1


def test_set_tokens_persists_to_user_env(settings, backend):
    async def scenario():
        async with ApiClient(settings, transport=backend.transport, backoff_seconds=0) as client:
            client.set_tokens("new-access", "new-refresh")

    asyncio.run(scenario())
    stored = read_user_env_vars()
    assert stored["AIUTOX_ACCESS_TOKEN"] == "new-access"
    assert stored["AIUTOX_REFRESH_TOKEN"] == "new-refresh"
