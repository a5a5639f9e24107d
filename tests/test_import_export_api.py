from __future__ import annotations

import httpx
import pytest

from adapters.api import ImportExportApi, ImportExportKeys
from conftest import envelope, list_envelope, request_json
from core.domain.import_export import ExportFormat, ImportExportConfig, JobStatus
from core.errors import FormValidationError
from core.services.forms import ExportJobForm, ImportJobForm, ImportTemplateForm, validate_form

BASE = "/import-export"
JOB = {"id": "j1", "module": "products", "file_name": "stock.csv", "status": "processing", "progress": 40}


def test_keys_are_hierarchical():
    assert ImportExportKeys.import_job("j1") == ("import-export", "import-jobs", "detail", "j1")
    assert ImportExportKeys.template("t1")[:2] == ImportExportKeys.templates()[:2]
    assert ImportExportKeys.export_formats("products") == ("import-export", "export-formats", "products")


def test_reads_are_cached(call, backend):
    backend.add("GET", f"{BASE}/import/jobs", list_envelope([JOB]))
    backend.add("GET", f"{BASE}/stats", envelope({"total_import_jobs": 1}))

    async def action(client):
        api = ImportExportApi(client)
        await api.list_import_jobs(module="products")
        await api.list_import_jobs(module="products")
        await api.get_stats()
        return await api.get_stats()

    stats = call(action)

    assert stats.total_import_jobs == 1
    assert len(backend.calls("GET", f"{BASE}/import/jobs")) == 1
    assert len(backend.calls("GET", f"{BASE}/stats")) == 1


def test_different_filters_use_different_keys(call, backend):
    backend.add("GET", f"{BASE}/import/jobs", list_envelope([JOB]))

    async def action(client):
        api = ImportExportApi(client)
        await api.list_import_jobs(module="products")
        await api.list_import_jobs(module="products", status=JobStatus.FAILED)

    call(action)

    assert len(backend.calls("GET", f"{BASE}/import/jobs")) == 2


def test_create_import_job_invalidates_list_and_stats(call, backend):
    backend.add("GET", f"{BASE}/import/jobs", list_envelope([JOB]))
    backend.add("GET", f"{BASE}/stats", envelope({"total_import_jobs": 1}))
    backend.add("GET", f"{BASE}/config", envelope({"max_file_size_mb": 10}))
    backend.add("POST", f"{BASE}/import/jobs", envelope({**JOB, "status": "pending"}))

    async def action(client):
        api = ImportExportApi(client)
        await api.list_import_jobs()
        await api.get_stats()
        await api.get_config()
        await api.create_import_job(validate_form(ImportJobForm, module="products", file_name="stock.csv"))
        await api.list_import_jobs()
        await api.get_stats()
        await api.get_config()

    call(action)

    assert len(backend.calls("GET", f"{BASE}/import/jobs")) == 2
    assert len(backend.calls("GET", f"{BASE}/stats")) == 2
    assert len(backend.calls("GET", f"{BASE}/config")) == 1
    assert request_json(backend.calls("POST", f"{BASE}/import/jobs")[0]) == {
        "module": "products",
        "file_name": "stock.csv",
    }


def test_cancel_invalidates_job_detail_and_list(call, backend):
    backend.add("GET", f"{BASE}/import/jobs/j1", envelope(JOB), envelope({**JOB, "status": "cancelled"}))
    backend.add("GET", f"{BASE}/import/jobs", list_envelope([JOB]))
    backend.add("POST", f"{BASE}/import/jobs/j1/cancel", envelope({**JOB, "status": "cancelled"}))

    async def action(client):
        api = ImportExportApi(client)
        await api.get_import_job("j1")
        await api.list_import_jobs()
        await api.cancel_import_job("j1")
        assert ImportExportKeys.import_job("j1") not in api.cache
        job = await api.get_import_job("j1")
        await api.list_import_jobs()
        return job

    job = call(action)

    assert job.status is JobStatus.CANCELLED
    assert len(backend.calls("GET", f"{BASE}/import/jobs/j1")) == 2
    assert len(backend.calls("GET", f"{BASE}/import/jobs")) == 2


def test_fresh_read_bypasses_cache(call, backend):
    backend.add("GET", f"{BASE}/export/jobs/e1", envelope({"id": "e1", "module": "products"}))

    async def action(client):
        api = ImportExportApi(client)
        await api.get_export_job("e1")
        await api.get_export_job("e1", fresh=True)

    call(action)

    assert len(backend.calls("GET", f"{BASE}/export/jobs/e1")) == 2


def test_create_export_job(call, backend):
    backend.add("POST", f"{BASE}/export/jobs", envelope({"id": "e1", "module": "products", "export_format": "excel"}))

    job = call(
        lambda client: ImportExportApi(client).create_export_job(
            validate_form(ExportJobForm, module="products", export_format=ExportFormat.EXCEL, columns=["sku"])
        )
    )

    assert job.export_format is ExportFormat.EXCEL
    assert request_json(backend.calls("POST", f"{BASE}/export/jobs")[0]) == {
        "module": "products",
        "export_format": "excel",
        "columns": ["sku"],
    }


def test_template_update_uses_patch_and_invalidates(call, backend):
    template = {"id": "t1", "name": "Stock", "module": "products", "field_mapping": {"SKU": "sku"}}
    backend.add("GET", f"{BASE}/import/templates", list_envelope([template]))
    backend.add("POST", f"{BASE}/import/templates", envelope(template))

    async def action(client):
        api = ImportExportApi(client)
        await api.list_templates()
        await api.create_template(
            validate_form(ImportTemplateForm, name="Stock", module="products", field_mapping={"SKU": "sku"})
        )
        await api.list_templates()

    call(action)

    assert len(backend.calls("GET", f"{BASE}/import/templates")) == 2


def test_validate_import_file_uploads_multipart(call, backend, tmp_path):
    source = tmp_path / "stock.csv"
    source.write_text("SKU;Nombre\nA1;Tornillo\n", encoding="utf-8")
    backend.add(
        "POST",
        f"{BASE}/import/validate",
        envelope({"file_validation": {"rows": 1}, "field_validation": {}, "business_rules": []}),
    )

    result = call(
        lambda client: ImportExportApi(client).validate_import_file(source, "products", template_id="t1")
    )

    assert result.is_valid
    request = backend.calls("POST", f"{BASE}/import/validate")[0]
    assert b'name="module"' in request.content
    assert b'name="template_id"' in request.content
    assert b"A1;Tornillo" in request.content


def test_validate_import_file_enforces_size_limit(call, backend, tmp_path):
    source = tmp_path / "huge.csv"
    source.write_bytes(b"x" * (1024 * 1024 + 1))

    with pytest.raises(FormValidationError) as exc_info:
        call(lambda client: ImportExportApi(client).validate_import_file(source, "products", max_size_mb=1))

    assert exc_info.value.errors == {"file": ["El archivo excede el tamaño máximo de 1MB"]}
    assert backend.requests == []


def test_update_config_invalidates_config(call, backend):
    backend.add("GET", f"{BASE}/config", envelope({"max_file_size_mb": 10}), envelope({"max_file_size_mb": 20}))
    backend.add("PUT", f"{BASE}/config", envelope({"max_file_size_mb": 20}))

    async def action(client):
        api = ImportExportApi(client)
        config = await api.get_config()
        await api.update_config(ImportExportConfig(**{**config.model_dump(), "max_file_size_mb": 20}))
        return await api.get_config()

    assert call(action).max_file_size_mb == 20
    assert request_json(backend.calls("PUT", f"{BASE}/config")[0])["max_file_size_mb"] == 20


def test_modules_and_formats(call, backend):
    backend.add("GET", f"{BASE}/modules", envelope(["products", "tasks"]))
    backend.add("GET", f"{BASE}/export/formats", envelope(["csv", "excel"]))

    async def action(client):
        api = ImportExportApi(client)
        return await api.available_modules(), await api.export_formats("products")

    modules, formats = call(action)

    assert modules == ["products", "tasks"]
    assert formats == ["csv", "excel"]
    assert backend.calls("GET", f"{BASE}/export/formats")[0].url.params["module"] == "products"


def test_export_sample_download(call, backend, tmp_path):
    backend.add("GET", f"{BASE}/export/sample", httpx.Response(200, content=b"a,b\n"))

    path = call(
        lambda client: ImportExportApi(client).export_sample("products", ExportFormat.CSV, tmp_path / "s.csv", count=5)
    )

    assert path.read_bytes() == b"a,b\n"
    assert dict(backend.requests[0].url.params) == {"module": "products", "format": "csv", "count": "5"}
