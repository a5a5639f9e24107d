from __future__ import annotations

import pytest

from core.errors import FormValidationError
from core.services.forms import (
    CommentForm,
    ImportTemplateForm,
    ProductForm,
    SavedViewForm,
    SMTPConfigRequest,
    TaskFileForm,
    TaskForm,
    TaskUpdateForm,
    WebhookConfigRequest,
    extract_mentions,
    validate_form,
)


def _errors(form_cls, **data) -> dict[str, list[str]]:
    with pytest.raises(FormValidationError) as exc_info:
        validate_form(form_cls, **data)
    return exc_info.value.errors


# Tareas


def test_task_title_is_required():
    assert _errors(TaskForm) == {"title": ["El título es requerido"]}
    assert _errors(TaskForm, title="") == {"title": ["El título es requerido"]}


def test_task_length_limits():
    errors = _errors(TaskForm, title="x" * 201, description="d" * 2001)
    assert errors["title"] == ["El título no puede exceder 200 caracteres"]
    assert errors["description"] == ["La descripción no puede exceder 2000 caracteres"]


@pytest.mark.parametrize(
    ("minutes", "message"),
    [
        (0, "La duración debe ser al menos 1 minuto"),
        (1441, "La duración no puede exceder 24 horas"),
    ],
)
def test_task_duration_bounds(minutes, message):
    assert _errors(TaskForm, title="Inventario", estimated_duration=minutes) == {
        "estimated_duration": [message]
    }


def test_task_payload_shape():
    form = validate_form(TaskForm, title="Inventario", estimated_duration=90, tag_ids=["t1"])
    payload = form.to_payload()
    assert payload["title"] == "Inventario"
    assert payload["status"] == "todo"
    assert payload["priority"] == "medium"
    assert payload["description"] == ""
    assert payload["assigned_to_id"] is None
    assert payload["metadata"] == {"estimated_duration": 90}
    assert "estimated_duration" not in payload
    assert "due_date" not in payload


def test_task_form_rejects_unknown_fields():
    assert "foo" in _errors(TaskForm, title="x", foo=1)


def test_task_update_requires_some_change():
    assert _errors(TaskUpdateForm) == {"__root__": ["No hay cambios que guardar"]}
    form = validate_form(TaskUpdateForm, priority="high")
    assert form.to_payload() == {"priority": "high"}


def test_saved_view_rules():
    assert _errors(SavedViewForm) == {"name": ["El nombre de la vista es requerido"]}
    assert _errors(SavedViewForm, name="Mías", sort_direction="up") == {
        "sort_direction": ["La dirección debe ser asc o desc"]
    }


def test_task_file_requires_metadata():
    errors = _errors(TaskFileForm, file_id=" ", file_name="a.pdf", file_size=-1, file_type="application/pdf", file_url="u")
    assert errors["file_id"] == ["Campo requerido"]
    assert "file_size" in errors


# Productos


def test_product_required_fields_and_negatives():
    errors = _errors(ProductForm, category_id=" ", sku="", name="Tornillo", price=-1, cost=-0.5)
    assert errors["category_id"] == ["La categoría es requerida"]
    assert errors["sku"] == ["El SKU es requerido"]
    assert errors["price"] == ["El precio no puede ser negativo"]
    assert errors["cost"] == ["El costo no puede ser negativo"]


def test_product_currency_is_normalized():
    form = validate_form(ProductForm, category_id="c1", sku="A-1", name="Tornillo", currency="usd")
    assert form.currency == "USD"
    assert _errors(ProductForm, category_id="c1", sku="A-1", name="Tornillo", currency="EURO") == {
        "currency": ["La moneda debe ser un código ISO de 3 letras"]
    }


# Comentarios


def test_extract_mentions():
    text = "Hola @ana y @luis.perez. cc @ana, escribe a soporte@acme.com"
    assert extract_mentions(text) == ["ana", "luis.perez"]


def test_comment_is_trimmed_and_mentions_filled():
    form = validate_form(CommentForm, content="  Revisado, @marta  ")
    assert form.content == "Revisado, @marta"
    assert form.mentions == ["marta"]


def test_comment_limits():
    assert _errors(CommentForm, content="   ") == {"content": ["El comentario no puede estar vacío"]}
    assert _errors(CommentForm, content="x" * 5001) == {
        "content": ["El comentario no puede exceder 5000 caracteres"]
    }


# Plantillas de importación


def test_import_template_rules():
    errors = _errors(ImportTemplateForm, name="Stock", module="products", field_mapping={}, delimiter=";;")
    assert errors["field_mapping"] == ["Define al menos un mapeo de campo"]
    assert errors["delimiter"] == ["El delimitador debe ser un único carácter"]

    form = validate_form(ImportTemplateForm, name="Stock", module="products", field_mapping={"SKU": "sku"})
    assert form.to_payload()["skip_header"] is True
    assert form.to_payload()["delimiter"] == ","


# Notificaciones


def test_smtp_enabled_requires_sender():
    assert _errors(SMTPConfigRequest, enabled=True, from_email="nadie") == {
        "__root__": ["El email remitente no es válido"]
    }
    assert "port" in _errors(SMTPConfigRequest, port=70000)


def test_smtp_payload_keeps_empty_password():
    form = validate_form(SMTPConfigRequest, enabled=True, from_email="erp@acme.com")
    payload = form.to_payload()
    assert payload["password"] == ""
    assert payload["host"] == "smtp.gmail.com"
    assert payload["port"] == 587


def test_webhook_url_scheme():
    assert _errors(WebhookConfigRequest, enabled=True, url="ftp://hooks") == {
        "__root__": ["La URL del webhook debe empezar por http:// o https://"]
    }
    assert validate_form(WebhookConfigRequest, enabled=False, url="").url == ""
