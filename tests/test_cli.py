from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from cli.main import app
from conftest import envelope, list_envelope, request_json
from core.config import read_user_env_vars, write_user_env_vars

runner = CliRunner()

TASK = {"id": "t1", "title": "Inventario", "status": "todo", "priority": "high"}


@pytest.fixture
def fast_polling(monkeypatch):
    monkeypatch.setenv("AIUTOX_JOB_POLL_INTERVAL_SECONDS", "0.01")


def test_tasks_list_renders_table(cli_backend):
    cli_backend.add("GET", "/tasks", list_envelope([TASK]))

    result = runner.invoke(app, ["tasks", "list"])

    assert result.exit_code == 0, result.output
    assert "Inventario" in result.output
    assert "Por hacer" in result.output


def test_tasks_list_json(cli_backend):
    cli_backend.add("GET", "/tasks/my-tasks", list_envelope([TASK]))

    result = runner.invoke(app, ["tasks", "list", "--mine", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)[0]["id"] == "t1"


def test_english_labels(cli_backend):
    cli_backend.add("GET", "/tasks", list_envelope([TASK]))

    result = runner.invoke(app, ["--lang", "en", "tasks", "list"])

    assert result.exit_code == 0, result.output
    assert "To do" in result.output


def test_invalid_form_never_reaches_the_api(cli_backend):
    result = runner.invoke(app, ["tasks", "create", "--title", "", "--duration", "0"])

    assert result.exit_code == 1
    assert "El título es requerido" in result.output
    assert cli_backend.requests == []


def test_create_task(cli_backend):
    cli_backend.add("POST", "/tasks", envelope(TASK))

    result = runner.invoke(app, ["tasks", "create", "--title", "Inventario", "-c", "Contar", "-c", "Anotar"])

    assert result.exit_code == 0, result.output
    body = request_json(cli_backend.calls("POST", "/tasks")[0])
    assert [item["title"] for item in body["checklist"]] == ["Contar", "Anotar"]


def test_api_error_is_shown_as_toast(cli_backend):
    cli_backend.add("GET", "/tasks/nope", httpx.Response(404, json={"detail": "Task not found"}))

    result = runner.invoke(app, ["tasks", "show", "nope"])

    assert result.exit_code == 1
    assert "Task not found" in result.output


def test_delete_requires_confirmation(cli_backend):
    result = runner.invoke(app, ["tasks", "delete", "t1"], input="n\n")

    assert result.exit_code == 1
    assert "cancelada" in result.output
    assert cli_backend.requests == []


def test_agenda_renders_items_in_range(cli_backend):
    cli_backend.add(
        "GET",
        "/tasks/agenda",
        list_envelope([{"id": "a1", "title": "Recuento", "start_date": "2025-03-03T09:00:00Z", "source": "internal"}]),
    )

    result = runner.invoke(app, ["tasks", "agenda", "--from", "2025-03-01", "--to", "2025-03-31", "--source", "internal"])

    assert result.exit_code == 0, result.output
    assert "Recuento" in result.output
    params = dict(cli_backend.calls("GET", "/tasks/agenda")[0].url.params)
    assert params == {"start_date": "2025-03-01", "end_date": "2025-03-31", "sources": "internal"}


def test_agenda_rejects_inverted_range(cli_backend):
    result = runner.invoke(app, ["tasks", "agenda", "--from", "2025-03-31", "--to", "2025-03-01"])

    assert result.exit_code != 0
    assert cli_backend.requests == []


def test_view_create_builds_sort_config(cli_backend):
    cli_backend.add("POST", "/tasks/views", envelope({"id": "v1", "name": "Urgentes"}))

    result = runner.invoke(app, ["tasks", "view-create", "--name", "Urgentes", "-p", "urgent", "--sort", "priority", "--desc"])

    assert result.exit_code == 0, result.output
    body = request_json(cli_backend.calls("POST", "/tasks/views")[0])
    assert body["filters"] == {"priority": ["urgent"]}
    assert body["sort_config"] == {"field": "priority", "direction": "desc"}


def test_attach_reads_metadata_from_local_file(cli_backend, tmp_path):
    source = tmp_path / "albaran.pdf"
    source.write_bytes(b"%PDF-1.4 demo")
    cli_backend.add(
        "POST",
        "/tasks/t1/files",
        envelope({"file_id": "f1", "file_name": "albaran.pdf", "file_size": 13, "file_type": "application/pdf"}),
    )

    result = runner.invoke(
        app,
        ["tasks", "attach", "t1", "f1", "--url", "https://files.test/f1", "--path", str(source)],
    )

    assert result.exit_code == 0, result.output
    params = dict(cli_backend.calls("POST", "/tasks/t1/files")[0].url.params)
    assert params["file_name"] == "albaran.pdf"
    assert params["file_size"] == "13"
    assert params["file_type"] == "application/pdf"


def test_detach_with_yes_sends_delete(cli_backend):
    cli_backend.add("DELETE", "/tasks/t1/files/f1", httpx.Response(204))

    result = runner.invoke(app, ["tasks", "detach", "t1", "f1", "--yes"])

    assert result.exit_code == 0, result.output
    assert len(cli_backend.calls("DELETE", "/tasks/t1/files/f1")) == 1


def test_system_roles_cannot_be_removed(cli_backend):
    result = runner.invoke(app, ["roles", "remove", "u1", "owner"])

    assert result.exit_code == 1
    assert "sistema" in result.output
    assert cli_backend.requests == []


def test_login_persists_tokens_and_logout_clears_them(cli_backend):
    cli_backend.add("POST", "/auth/login", envelope({"access_token": "new-a", "refresh_token": "new-r"}))

    result = runner.invoke(app, ["auth", "login", "--email", "ana@acme.com", "--password", "secreto"])

    assert result.exit_code == 0, result.output
    assert read_user_env_vars()["AIUTOX_ACCESS_TOKEN"] == "new-a"

    result = runner.invoke(app, ["auth", "logout"])

    assert result.exit_code == 0, result.output
    assert "AIUTOX_ACCESS_TOKEN" not in read_user_env_vars()


def test_logout_keeps_other_settings(cli_backend):
    write_user_env_vars({"AIUTOX_DEFAULT_PAGE_SIZE": "50", "AIUTOX_REFRESH_TOKEN": "r"})

    runner.invoke(app, ["auth", "logout"])

    assert read_user_env_vars() == {"AIUTOX_DEFAULT_PAGE_SIZE": "50"}


def test_products_list_formats_prices(cli_backend):
    product = {"id": "p1", "sku": "TOR-001", "name": "Tornillo", "price": 12345.5, "cost": 10000, "currency": "EUR"}
    cli_backend.add("GET", "/products", list_envelope([product]))

    result = runner.invoke(app, ["products", "list"])

    assert result.exit_code == 0, result.output
    assert "TOR-001" in result.output
    assert "12.345,50" in result.output


def test_export_with_output_waits_and_downloads(cli_backend, fast_polling, tmp_path):
    job = {"id": "e1", "module": "products", "export_format": "csv"}
    cli_backend.add("POST", "/import-export/export/jobs", envelope({**job, "status": "pending"}))
    cli_backend.add(
        "GET",
        "/import-export/export/jobs/e1",
        envelope({**job, "status": "processing", "total_rows": 10, "exported_rows": 5}),
        envelope({**job, "status": "completed", "total_rows": 10, "exported_rows": 10}),
    )
    cli_backend.add("GET", "/import-export/export/jobs/e1/download", httpx.Response(200, content=b"sku\nTOR-001\n"))
    target = tmp_path / "export.csv"

    result = runner.invoke(app, ["jobs", "export", "-m", "products", "--output", str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_bytes() == b"sku\nTOR-001\n"
    assert len(cli_backend.calls("GET", "/import-export/export/jobs/e1")) == 2


def test_watch_failed_job_exits_non_zero(cli_backend, fast_polling):
    cli_backend.add(
        "GET",
        "/import-export/import/jobs/j1",
        envelope({"id": "j1", "module": "products", "file_name": "a.csv", "status": "failed", "error_message": "Fila 3"}),
    )

    result = runner.invoke(app, ["jobs", "watch", "j1"])

    assert result.exit_code == 1
    assert "Fila 3" in result.output


def test_import_stops_when_server_validation_fails(cli_backend, tmp_path):
    source = tmp_path / "stock.csv"
    source.write_text("SKU\nA1\n", encoding="utf-8")
    cli_backend.add("GET", "/import-export/config", envelope({"max_file_size_mb": 5, "allowed_file_types": ["text/csv"]}))
    cli_backend.add("POST", "/import-export/import/validate", envelope({"is_valid": False, "errors": ["Falta columna"]}))

    result = runner.invoke(app, ["jobs", "import", str(source), "-m", "products"])

    assert result.exit_code == 1
    assert "stock.csv" in result.output
    assert cli_backend.calls("POST", "/import-export/import/jobs") == []


def test_notification_test_failure_exits_non_zero(cli_backend):
    cli_backend.add(
        "POST",
        "/config/notifications/channels/webhook/test",
        envelope({"success": False, "message": "timeout"}),
    )

    result = runner.invoke(app, ["notifications", "test-webhook"])

    assert result.exit_code == 1
    assert "timeout" in result.output
