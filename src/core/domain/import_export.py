"""Modelos de import/export.

Los jobs se procesan en el servidor; aquí solo reflejamos su estado
(`status`, `progress`, contadores) para mostrarlo.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from core.domain.models import ApiModel


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"
    JSON = "json"


class ImportJobIssue(ApiModel):
    """Error o advertencia por fila."""

    row_number: int
    field: str | None = None
    value: Any = None
    message: str
    error_code: str | None = None
    warning_code: str | None = None


class ImportJobResultSummary(ApiModel):
    total_rows: int = 0
    successful_rows: int = 0
    failed_rows: int = 0
    skipped_rows: int = 0
    created_records: int = 0
    updated_records: int = 0
    processing_time_seconds: float = 0.0


class ImportJob(ApiModel):
    id: str
    tenant_id: str | None = None
    module: str
    file_name: str
    file_path: str | None = None
    file_size: int | None = None
    status: JobStatus = JobStatus.PENDING
    progress: float = 0.0
    total_rows: int | None = None
    processed_rows: int = 0
    successful_rows: int = 0
    failed_rows: int = 0
    errors: list[ImportJobIssue] | None = None
    warnings: list[ImportJobIssue] | None = None
    result_summary: ImportJobResultSummary | None = None
    created_by: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    error_message: str | None = None


class ExportJob(ApiModel):
    id: str
    tenant_id: str | None = None
    module: str
    export_format: ExportFormat = ExportFormat.CSV
    file_name: str | None = None
    file_path: str | None = None
    file_size: int | None = None
    status: JobStatus = JobStatus.PENDING
    total_rows: int | None = None
    exported_rows: int = 0
    filters: dict[str, Any] | None = None
    columns: list[str] | None = None
    created_by: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    error_message: str | None = None

    @property
    def progress(self) -> float:
        if self.status is JobStatus.COMPLETED:
            return 100.0
        if not self.total_rows:
            return 0.0
        return min(100.0, self.exported_rows / self.total_rows * 100)


class ImportTemplate(ApiModel):
    id: str
    tenant_id: str | None = None
    name: str
    description: str | None = None
    module: str
    field_mapping: dict[str, str] = Field(default_factory=dict)
    default_values: dict[str, Any] | None = None
    validation_rules: dict[str, Any] | None = None
    transformations: dict[str, Any] | None = None
    skip_header: bool = True
    delimiter: str = ","
    encoding: str = "utf-8"
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ModuleUsage(ApiModel):
    module: str
    import_count: int = 0
    export_count: int = 0


class ImportExportStats(ApiModel):
    total_import_jobs: int = 0
    total_export_jobs: int = 0
    successful_imports: int = 0
    failed_imports: int = 0
    successful_exports: int = 0
    failed_exports: int = 0
    total_records_imported: int = 0
    total_records_exported: int = 0
    average_processing_time: float = 0.0
    most_used_modules: list[ModuleUsage] = Field(default_factory=list)


class ImportExportConfig(ApiModel):
    max_file_size_mb: int = 50
    allowed_file_types: list[str] = Field(default_factory=list)
    max_concurrent_jobs: int = 1
    chunk_size: int = 1000
    timeout_seconds: int = 300
    retry_attempts: int = 0
    retry_delay_seconds: int = 0
    storage_path: str | None = None
    cleanup_after_days: int = 30


class ImportValidation(ApiModel):
    """Respuesta de `POST /import-export/import/validate`."""

    # Sin veredicto explícito se asume válido: un rechazo llega como 4xx.
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)

    file_validation: dict[str, Any] = Field(default_factory=dict)
    field_validation: dict[str, dict[str, Any]] = Field(default_factory=dict)
    business_rules: list[dict[str, Any]] = Field(default_factory=list)
