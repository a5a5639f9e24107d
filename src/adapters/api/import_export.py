"""Recurso `/import-export`: jobs, plantillas, estadísticas y configuración.

Las lecturas pasan por `QueryCache` con las mismas claves jerárquicas que usa
la aplicación web; cada mutación invalida exactamente las claves afectadas.
Así, un `watch` de un job y el listado que lo contiene nunca muestran datos
anteriores a una cancelación o reintento hecho desde la misma sesión.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from core.domain.import_export import (
    ExportFormat,
    ExportJob,
    ImportExportConfig,
    ImportExportStats,
    ImportJob,
    ImportTemplate,
    ImportValidation,
    JobStatus,
)
from core.domain.models import StandardListResponse
from core.errors import FormValidationError
from core.interfaces import ApiTransport
from core.services.files import FileInfo, validate_file
from core.services.forms import (
    ExportJobForm,
    ImportJobForm,
    ImportTemplateForm,
    ImportTemplateUpdateForm,
)
from core.services.query_cache import QueryCache, QueryKey, freeze_params

logger = logging.getLogger(__name__)

_BASE = "/import-export"


class ImportExportKeys:
    """Claves de caché del módulo, en el mismo orden jerárquico que la web."""

    all: QueryKey = ("import-export",)

    @staticmethod
    def import_jobs() -> QueryKey:
        return (*ImportExportKeys.all, "import-jobs")

    @staticmethod
    def import_job(job_id: str) -> QueryKey:
        return (*ImportExportKeys.import_jobs(), "detail", job_id)

    @staticmethod
    def export_jobs() -> QueryKey:
        return (*ImportExportKeys.all, "export-jobs")

    @staticmethod
    def export_job(job_id: str) -> QueryKey:
        return (*ImportExportKeys.export_jobs(), "detail", job_id)

    @staticmethod
    def templates() -> QueryKey:
        return (*ImportExportKeys.all, "import-templates")

    @staticmethod
    def template(template_id: str) -> QueryKey:
        return (*ImportExportKeys.templates(), "detail", template_id)

    @staticmethod
    def stats() -> QueryKey:
        return (*ImportExportKeys.all, "stats")

    @staticmethod
    def config() -> QueryKey:
        return (*ImportExportKeys.all, "config")

    @staticmethod
    def modules() -> QueryKey:
        return (*ImportExportKeys.all, "modules")

    @staticmethod
    def export_formats(module: str) -> QueryKey:
        return (*ImportExportKeys.all, "export-formats", module)


def _list_params(
    *,
    module: str | None = None,
    status: JobStatus | None = None,
    page: int | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    return {
        "module": module or None,
        "status": status.value if status else None,
        "page": page or None,
        "page_size": page_size or None,
    }


class ImportExportApi:
    def __init__(self, transport: ApiTransport, cache: QueryCache | None = None) -> None:
        self._api = transport
        self.cache = cache or QueryCache()

    def _invalidate(self, *keys: QueryKey) -> None:
        for key in keys:
            self.cache.invalidate(key)

    # Import jobs

    async def list_import_jobs(
        self,
        *,
        module: str | None = None,
        status: JobStatus | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> StandardListResponse[ImportJob]:
        params = _list_params(module=module, status=status, page=page, page_size=page_size)
        key = (*ImportExportKeys.import_jobs(), freeze_params(params))
        return await self.cache.fetch(
            key,
            lambda: self._api.fetch_list(f"{_BASE}/import/jobs", ImportJob, params=params),
        )

    async def get_import_job(self, job_id: str, *, fresh: bool = False) -> ImportJob:
        key = ImportExportKeys.import_job(job_id)
        if fresh:
            self.cache.invalidate(key)
        return await self.cache.fetch(
            key,
            lambda: self._api.fetch_one("GET", f"{_BASE}/import/jobs/{job_id}", ImportJob),
        )

    async def create_import_job(self, form: ImportJobForm) -> ImportJob:
        job = await self._api.fetch_one("POST", f"{_BASE}/import/jobs", ImportJob, json=form.to_payload())
        self._invalidate(ImportExportKeys.import_jobs(), ImportExportKeys.stats())
        return job

    async def update_import_job(self, job_id: str, **changes: Any) -> ImportJob:
        job = await self._api.fetch_one("PATCH", f"{_BASE}/import/jobs/{job_id}", ImportJob, json=changes)
        self._invalidate(
            ImportExportKeys.import_job(job_id),
            ImportExportKeys.import_jobs(),
            ImportExportKeys.stats(),
        )
        return job

    async def delete_import_job(self, job_id: str) -> None:
        await self._api.send("DELETE", f"{_BASE}/import/jobs/{job_id}")
        self._invalidate(
            ImportExportKeys.import_job(job_id),
            ImportExportKeys.import_jobs(),
            ImportExportKeys.stats(),
        )

    async def cancel_import_job(self, job_id: str) -> ImportJob:
        job = await self._api.fetch_one("POST", f"{_BASE}/import/jobs/{job_id}/cancel", ImportJob)
        self._invalidate(ImportExportKeys.import_job(job_id), ImportExportKeys.import_jobs())
        return job

    async def retry_import_job(self, job_id: str) -> ImportJob:
        job = await self._api.fetch_one("POST", f"{_BASE}/import/jobs/{job_id}/retry", ImportJob)
        self._invalidate(ImportExportKeys.import_job(job_id), ImportExportKeys.import_jobs())
        return job

    async def validate_import_file(
        self,
        file_path: Path,
        module: str,
        *,
        template_id: str | None = None,
        max_size_mb: int | None = None,
        allowed_types: list[str] | None = None,
    ) -> ImportValidation:
        info = FileInfo.from_path(file_path)
        result = validate_file(info, max_size_mb=max_size_mb, allowed_types=allowed_types)
        if not result.is_valid:
            raise FormValidationError({"file": [result.error or "Archivo no válido"]})
        for warning in result.warnings:
            logger.warning("%s: %s", info.name, warning)

        data = {"module": module}
        if template_id:
            data["template_id"] = template_id
        files = {"file": (info.name, file_path.read_bytes(), info.type)}
        return await self._api.fetch_one(
            "POST",
            f"{_BASE}/import/validate",
            ImportValidation,
            files=files,
            data=data,
        )

    # Export jobs

    async def list_export_jobs(
        self,
        *,
        module: str | None = None,
        status: JobStatus | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> StandardListResponse[ExportJob]:
        params = _list_params(module=module, status=status, page=page, page_size=page_size)
        key = (*ImportExportKeys.export_jobs(), freeze_params(params))
        return await self.cache.fetch(
            key,
            lambda: self._api.fetch_list(f"{_BASE}/export/jobs", ExportJob, params=params),
        )

    async def get_export_job(self, job_id: str, *, fresh: bool = False) -> ExportJob:
        key = ImportExportKeys.export_job(job_id)
        if fresh:
            self.cache.invalidate(key)
        return await self.cache.fetch(
            key,
            lambda: self._api.fetch_one("GET", f"{_BASE}/export/jobs/{job_id}", ExportJob),
        )

    async def create_export_job(self, form: ExportJobForm) -> ExportJob:
        job = await self._api.fetch_one("POST", f"{_BASE}/export/jobs", ExportJob, json=form.to_payload())
        self._invalidate(ImportExportKeys.export_jobs(), ImportExportKeys.stats())
        return job

    async def update_export_job(self, job_id: str, **changes: Any) -> ExportJob:
        job = await self._api.fetch_one("PATCH", f"{_BASE}/export/jobs/{job_id}", ExportJob, json=changes)
        self._invalidate(
            ImportExportKeys.export_job(job_id),
            ImportExportKeys.export_jobs(),
            ImportExportKeys.stats(),
        )
        return job

    async def delete_export_job(self, job_id: str) -> None:
        await self._api.send("DELETE", f"{_BASE}/export/jobs/{job_id}")
        self._invalidate(
            ImportExportKeys.export_job(job_id),
            ImportExportKeys.export_jobs(),
            ImportExportKeys.stats(),
        )

    async def cancel_export_job(self, job_id: str) -> ExportJob:
        job = await self._api.fetch_one("POST", f"{_BASE}/export/jobs/{job_id}/cancel", ExportJob)
        self._invalidate(ImportExportKeys.export_job(job_id), ImportExportKeys.export_jobs())
        return job

    async def download_export(self, job_id: str, output_path: Path) -> Path:
        return await self._api.download(f"{_BASE}/export/jobs/{job_id}/download", output_path)

    # Plantillas

    async def list_templates(
        self,
        *,
        module: str | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> StandardListResponse[ImportTemplate]:
        params = _list_params(module=module, page=page, page_size=page_size)
        key = (*ImportExportKeys.templates(), freeze_params(params))
        return await self.cache.fetch(
            key,
            lambda: self._api.fetch_list(f"{_BASE}/import/templates", ImportTemplate, params=params),
        )

    async def get_template(self, template_id: str) -> ImportTemplate:
        return await self.cache.fetch(
            ImportExportKeys.template(template_id),
            lambda: self._api.fetch_one("GET", f"{_BASE}/import/templates/{template_id}", ImportTemplate),
        )

    async def create_template(self, form: ImportTemplateForm) -> ImportTemplate:
        template = await self._api.fetch_one(
            "POST",
            f"{_BASE}/import/templates",
            ImportTemplate,
            json=form.to_payload(),
        )
        self._invalidate(ImportExportKeys.templates())
        return template

    async def update_template(self, template_id: str, form: ImportTemplateUpdateForm) -> ImportTemplate:
        template = await self._api.fetch_one(
            "PATCH",
            f"{_BASE}/import/templates/{template_id}",
            ImportTemplate,
            json=form.to_payload(),
        )
        self._invalidate(ImportExportKeys.template(template_id), ImportExportKeys.templates())
        return template

    async def delete_template(self, template_id: str) -> None:
        await self._api.send("DELETE", f"{_BASE}/import/templates/{template_id}")
        self._invalidate(ImportExportKeys.template(template_id), ImportExportKeys.templates())

    # Estadísticas, configuración y catálogos

    async def get_stats(self) -> ImportExportStats:
        return await self.cache.fetch(
            ImportExportKeys.stats(),
            lambda: self._api.fetch_one("GET", f"{_BASE}/stats", ImportExportStats),
        )

    async def get_config(self) -> ImportExportConfig:
        return await self.cache.fetch(
            ImportExportKeys.config(),
            lambda: self._api.fetch_one("GET", f"{_BASE}/config", ImportExportConfig),
        )

    async def update_config(self, config: ImportExportConfig) -> ImportExportConfig:
        updated = await self._api.fetch_one(
            "PUT",
            f"{_BASE}/config",
            ImportExportConfig,
            json=config.model_dump(mode="json"),
        )
        self._invalidate(ImportExportKeys.config())
        return updated

    async def available_modules(self) -> list[str]:
        raw = await self.cache.fetch(
            ImportExportKeys.modules(),
            lambda: self._api.fetch_raw("GET", f"{_BASE}/modules"),
        )
        return [str(item) for item in raw or []]

    async def export_formats(self, module: str) -> list[str]:
        raw = await self.cache.fetch(
            ImportExportKeys.export_formats(module),
            lambda: self._api.fetch_raw("GET", f"{_BASE}/export/formats", params={"module": module}),
        )
        return [str(item) for item in raw or []]

    async def export_sample(
        self,
        module: str,
        export_format: ExportFormat,
        output_path: Path,
        *,
        count: int = 10,
    ) -> Path:
        return await self._api.download(
            f"{_BASE}/export/sample",
            output_path,
            params={"module": module, "format": export_format.value, "count": count},
        )
