"""Esquemas de formularios (validación síncrona antes de enviar).

Por qué Pydantic:
- Mismo rol que los esquemas declarativos de la UI: el formulario se rechaza
  antes de tocar la red, con mensajes por campo.
- `to_payload()` produce exactamente el JSON que espera el endpoint.

Los mensajes están en español, como en la aplicación web.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic.config import ConfigDict

from core.domain.import_export import ExportFormat
from core.domain.tasks import TaskPriority, TaskStatus
from core.errors import FormValidationError

F = TypeVar("F", bound="FormModel")

_MENTION_RE = re.compile(r"(?<![\w@])@([A-Za-z0-9_.\-]+)")


class FormModel(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def validate_form(form_cls: type[F], **data: Any) -> F:
    """Construye el formulario o lanza `FormValidationError`."""

    try:
        return form_cls(**data)
    except ValidationError as exc:
        raise FormValidationError.from_pydantic(exc) from None


def _max_len(value: str | None, limit: int, message: str) -> str | None:
    if value is not None and len(value) > limit:
        raise ValueError(message)
    return value


def _required(value: str | None, message: str) -> str | None:
    if value is not None and not value.strip():
        raise ValueError(message)
    return value


# --- Tareas -----------------------------------------------------------------


class ChecklistItemForm(FormModel):
    id: str | None = None
    title: str
    completed: bool = False

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        _required(value, "El elemento del checklist necesita un título")
        return value


class _TaskFields(FormModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def _title(cls, value: str | None) -> str | None:
        if value is not None and len(value) < 1:
            raise ValueError("El título es requerido")
        return _max_len(value, 200, "El título no puede exceder 200 caracteres")

    @field_validator("description", check_fields=False)
    @classmethod
    def _description(cls, value: str | None) -> str | None:
        return _max_len(value, 2000, "La descripción no puede exceder 2000 caracteres")

    @field_validator("estimated_duration", check_fields=False)
    @classmethod
    def _duration(cls, value: int | None) -> int | None:
        if value is None:
            return value
        if value < 1:
            raise ValueError("La duración debe ser al menos 1 minuto")
        if value > 1440:
            raise ValueError("La duración no puede exceder 24 horas")
        return value


class TaskForm(_TaskFields):
    """Formulario de creación (TaskForm)."""

    title: str = Field(default="", validate_default=True)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    estimated_duration: int | None = None
    assigned_to_id: str | None = None
    tag_ids: list[str] | None = None
    color_override: str | None = None
    checklist: list[ChecklistItemForm] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        # El backend exige la clave aunque sea null.
        payload.setdefault("assigned_to_id", None)
        payload.setdefault("description", "")
        duration = payload.pop("estimated_duration", None)
        if duration is not None:
            payload["metadata"] = {"estimated_duration": duration}
        return payload


class TaskUpdateForm(_TaskFields):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    estimated_duration: int | None = None
    assigned_to_id: str | None = None
    tag_ids: list[str] | None = None
    color_override: str | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> "TaskUpdateForm":
        if not self.model_dump(exclude_none=True):
            raise ValueError("No hay cambios que guardar")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        duration = payload.pop("estimated_duration", None)
        if duration is not None:
            payload["metadata"] = {"estimated_duration": duration}
        return payload


class SavedViewForm(FormModel):
    name: str = Field(default="", validate_default=True)
    description: str | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    sort_field: str = "due_date"
    sort_direction: str = "asc"
    column_config: dict[str, dict[str, Any]] = Field(default_factory=dict)
    is_default: bool = False
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("El nombre de la vista es requerido")
        return _max_len(value, 100, "El nombre no puede exceder 100 caracteres")

    @field_validator("sort_direction")
    @classmethod
    def _direction(cls, value: str) -> str:
        if value not in ("asc", "desc"):
            raise ValueError("La dirección debe ser asc o desc")
        return value

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["sort_config"] = {
            "field": payload.pop("sort_field"),
            "direction": payload.pop("sort_direction"),
        }
        return payload


class TaskFileForm(FormModel):
    """Metadatos de un archivo ya subido que se adjunta a una tarea."""

    file_id: str
    file_name: str
    file_size: int = Field(ge=0)
    file_type: str
    file_url: str

    @field_validator("file_id", "file_name", "file_url")
    @classmethod
    def _present(cls, value: str) -> str:
        _required(value, "Campo requerido")
        return value


# --- Productos --------------------------------------------------------------


class DimensionsForm(FormModel):
    length: float = Field(ge=0)
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    unit: str = "cm"


class _ProductFields(FormModel):
    @field_validator("sku", check_fields=False)
    @classmethod
    def _sku(cls, value: str | None) -> str | None:
        _required(value, "El SKU es requerido")
        return _max_len(value, 100, "El SKU no puede exceder 100 caracteres")

    @field_validator("name", check_fields=False)
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        _required(value, "El nombre es requerido")
        return _max_len(value, 255, "El nombre no puede exceder 255 caracteres")

    @field_validator("price", check_fields=False)
    @classmethod
    def _price(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError("El precio no puede ser negativo")
        return value

    @field_validator("cost", check_fields=False)
    @classmethod
    def _cost(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError("El costo no puede ser negativo")
        return value

    @field_validator("currency", check_fields=False)
    @classmethod
    def _currency(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not re.fullmatch(r"[A-Za-z]{3}", value):
            raise ValueError("La moneda debe ser un código ISO de 3 letras")
        return value.upper()


class ProductForm(_ProductFields):
    category_id: str
    sku: str
    name: str
    description: str | None = None
    price: float = 0.0
    cost: float = 0.0
    currency: str = "EUR"
    weight: float | None = Field(default=None, ge=0)
    dimensions: DimensionsForm | None = None
    track_inventory: bool = False
    is_active: bool = True

    @field_validator("category_id")
    @classmethod
    def _category(cls, value: str) -> str:
        _required(value, "La categoría es requerida")
        return value


class ProductUpdateForm(_ProductFields):
    category_id: str | None = None
    sku: str | None = None
    name: str | None = None
    description: str | None = None
    price: float | None = None
    cost: float | None = None
    currency: str | None = None
    weight: float | None = Field(default=None, ge=0)
    dimensions: DimensionsForm | None = None
    track_inventory: bool | None = None
    is_active: bool | None = None


class CategoryForm(FormModel):
    name: str
    description: str | None = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        _required(value, "El nombre es requerido")
        return value


class VariantForm(_ProductFields):
    sku: str
    name: str
    price: float = 0.0
    cost: float = 0.0
    attributes: dict[str, str | float | int] = Field(default_factory=dict)
    is_active: bool = True


class BarcodeForm(FormModel):
    barcode: str
    barcode_type: str = "EAN13"
    is_primary: bool = False
    variant_id: str | None = None

    @field_validator("barcode")
    @classmethod
    def _barcode(cls, value: str) -> str:
        _required(value, "El código de barras es requerido")
        return value.strip()


# --- Comentarios ------------------------------------------------------------


def extract_mentions(content: str) -> list[str]:
    """Handles `@usuario` en orden de aparición, sin duplicados."""

    seen: dict[str, None] = {}
    for match in _MENTION_RE.finditer(content):
        seen.setdefault(match.group(1).rstrip("."), None)
    return list(seen)


class CommentForm(FormModel):
    content: str
    mentions: list[str] | None = None

    @field_validator("content")
    @classmethod
    def _content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El comentario no puede estar vacío")
        return _max_len(value, 5000, "El comentario no puede exceder 5000 caracteres") or value

    @model_validator(mode="after")
    def _mentions(self) -> "CommentForm":
        if self.mentions is None:
            self.mentions = extract_mentions(self.content)
        return self


# --- Import/Export ----------------------------------------------------------


class ImportJobForm(FormModel):
    module: str
    file_name: str
    template_id: str | None = None
    mapping: dict[str, str] | None = None
    options: dict[str, Any] | None = None

    @field_validator("module")
    @classmethod
    def _module(cls, value: str) -> str:
        _required(value, "El módulo es requerido")
        return value


class ExportJobForm(FormModel):
    module: str
    export_format: ExportFormat = ExportFormat.CSV
    filters: dict[str, Any] | None = None
    columns: list[str] | None = None
    options: dict[str, Any] | None = None

    @field_validator("module")
    @classmethod
    def _module(cls, value: str) -> str:
        _required(value, "El módulo es requerido")
        return value


class _TemplateFields(FormModel):
    @field_validator("field_mapping", check_fields=False)
    @classmethod
    def _mapping(cls, value: dict[str, str] | None) -> dict[str, str] | None:
        if value is not None and not value:
            raise ValueError("Define al menos un mapeo de campo")
        return value

    @field_validator("delimiter", check_fields=False)
    @classmethod
    def _delimiter(cls, value: str | None) -> str | None:
        if value is not None and len(value) != 1:
            raise ValueError("El delimitador debe ser un único carácter")
        return value


class ImportTemplateForm(_TemplateFields):
    name: str
    description: str | None = None
    module: str
    field_mapping: dict[str, str]
    default_values: dict[str, Any] | None = None
    validation_rules: dict[str, Any] | None = None
    transformations: dict[str, Any] | None = None
    skip_header: bool = True
    delimiter: str = ","
    encoding: str = "utf-8"

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        _required(value, "El nombre es requerido")
        return value

    @field_validator("module")
    @classmethod
    def _module(cls, value: str) -> str:
        _required(value, "El módulo es requerido")
        return value


class ImportTemplateUpdateForm(_TemplateFields):
    name: str | None = None
    description: str | None = None
    field_mapping: dict[str, str] | None = None
    default_values: dict[str, Any] | None = None
    validation_rules: dict[str, Any] | None = None
    transformations: dict[str, Any] | None = None
    skip_header: bool | None = None
    delimiter: str | None = None
    encoding: str | None = None


# --- Notificaciones ---------------------------------------------------------


class SMTPConfigRequest(FormModel):
    enabled: bool = False
    host: str = "smtp.gmail.com"
    port: int = 587
    user: str = ""
    password: str = ""
    use_tls: bool = True
    from_email: str = ""
    from_name: str = ""

    @field_validator("port")
    @classmethod
    def _port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError("El puerto debe estar entre 1 y 65535")
        return value

    @model_validator(mode="after")
    def _enabled_requires(self) -> "SMTPConfigRequest":
        if self.enabled:
            if not self.host.strip():
                raise ValueError("El servidor SMTP es requerido")
            if not self.from_email or "@" not in self.from_email:
                raise ValueError("El email remitente no es válido")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SMSConfigRequest(FormModel):
    enabled: bool = False
    provider: str = "twilio"
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""

    @model_validator(mode="after")
    def _enabled_requires(self) -> "SMSConfigRequest":
        if self.enabled and not self.from_number.strip():
            raise ValueError("El número remitente es requerido")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class WebhookConfigRequest(FormModel):
    enabled: bool = False
    url: str = ""
    secret: str = ""
    timeout: int = 30

    @field_validator("timeout")
    @classmethod
    def _timeout(cls, value: int) -> int:
        if not 1 <= value <= 300:
            raise ValueError("El timeout debe estar entre 1 y 300 segundos")
        return value

    @model_validator(mode="after")
    def _enabled_requires(self) -> "WebhookConfigRequest":
        if self.enabled and not self.url.startswith(("http://", "https://")):
            raise ValueError("La URL del webhook debe empezar por http:// o https://")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# --- Integraciones ----------------------------------------------------------


class IntegrationForm(FormModel):
    name: str
    type: str
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", "type")
    @classmethod
    def _required_text(cls, value: str) -> str:
        _required(value, "Campo requerido")
        return value


class IntegrationUpdateForm(FormModel):
    name: str | None = None
    config: dict[str, Any] | None = None
