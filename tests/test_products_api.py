from __future__ import annotations

import httpx
import pytest

from adapters.api import ProductsApi
from conftest import envelope, list_envelope, request_json
from core.domain.products import BulkOperationKind
from core.errors import FormValidationError
from core.services.forms import BarcodeForm, ProductForm, ProductUpdateForm, validate_form

PRODUCT = {"id": "p1", "sku": "TOR-001", "name": "Tornillo", "price": 0.25, "cost": 0.1, "currency": "EUR"}


def test_list_products_lowercases_boolean_filters(call, backend):
    backend.add("GET", "/products", list_envelope([PRODUCT]))

    call(lambda client: ProductsApi(client).list_products(is_active=True, track_inventory=False))

    params = dict(backend.requests[0].url.params)
    assert params["is_active"] == "true"
    assert params["track_inventory"] == "false"
    assert "search" not in params


def test_search_uses_search_endpoint(call, backend):
    backend.add("GET", "/products/search", list_envelope([PRODUCT]))

    response = call(lambda client: ProductsApi(client).search_products("torn"))

    assert response.data[0].sku == "TOR-001"
    assert backend.requests[0].url.params["q"] == "torn"


def test_create_and_patch_product(call, backend):
    backend.add("POST", "/products", envelope(PRODUCT))
    backend.add("PATCH", "/products/p1", envelope({**PRODUCT, "price": 0.3}))

    async def action(client):
        api = ProductsApi(client)
        await api.create_product(validate_form(ProductForm, category_id="c1", sku="TOR-001", name="Tornillo"))
        return await api.update_product("p1", validate_form(ProductUpdateForm, price=0.3))

    product = call(action)

    assert product.price == 0.3
    created = request_json(backend.calls("POST", "/products")[0])
    assert created["currency"] == "EUR"
    assert created["category_id"] == "c1"
    assert request_json(backend.calls("PATCH", "/products/p1")[0]) == {"price": 0.3}


def test_find_by_barcode(call, backend):
    backend.add(
        "GET",
        "/products/by-barcode/8412345678901",
        envelope(
            {
                "product": PRODUCT,
                "barcode": {
                    "id": "b1",
                    "product_id": "p1",
                    "barcode": "8412345678901",
                    "barcode_type": "EAN13",
                    "is_primary": True,
                },
            }
        ),
    )

    result = call(lambda client: ProductsApi(client).find_by_barcode("8412345678901"))

    assert result.product.id == "p1"
    assert result.variant is None
    assert result.barcode.is_primary


def test_create_barcode_defaults_to_ean13(call, backend):
    backend.add(
        "POST",
        "/products/p1/barcodes",
        envelope({"id": "b1", "product_id": "p1", "barcode": "123", "barcode_type": "EAN13"}),
    )

    call(lambda client: ProductsApi(client).create_barcode("p1", validate_form(BarcodeForm, barcode=" 123 ")))

    assert request_json(backend.calls("POST", "/products/p1/barcodes")[0]) == {
        "barcode": "123",
        "barcode_type": "EAN13",
        "is_primary": False,
    }


def test_bulk_operation(call, backend):
    backend.add("POST", "/products/bulk", envelope([{**PRODUCT, "is_active": False}]))

    products = call(lambda client: ProductsApi(client).bulk_operation(BulkOperationKind.DEACTIVATE, ["p1"]))

    assert products[0].is_active is False
    assert request_json(backend.calls("POST", "/products/bulk")[0]) == {
        "operation": "deactivate",
        "product_ids": ["p1"],
    }


def test_bulk_operation_needs_ids(call):
    with pytest.raises(ValueError):
        call(lambda client: ProductsApi(client).bulk_operation(BulkOperationKind.DELETE, []))


def test_export_downloads_file(call, backend, tmp_path):
    backend.add("GET", "/products/export", httpx.Response(200, content=b"sku,name\n"))
    target = tmp_path / "out" / "productos.csv"

    path = call(lambda client: ProductsApi(client).export_products(target, is_active=True))

    assert path.read_bytes() == b"sku,name\n"
    assert backend.requests[0].url.params["is_active"] == "true"


def test_import_uploads_valid_csv(call, backend, tmp_path):
    source = tmp_path / "productos.csv"
    source.write_text("sku,name\nTOR-001,Tornillo\n", encoding="utf-8")
    backend.add("POST", "/products/import", envelope({"imported": 1, "errors": []}))

    result = call(lambda client: ProductsApi(client).import_products(source))

    assert result.imported == 1
    request = backend.calls("POST", "/products/import")[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert b"TOR-001,Tornillo" in request.content


def test_import_rejects_unsupported_file_locally(call, backend, tmp_path):
    source = tmp_path / "catalogo.pdf"
    source.write_bytes(b"%PDF-1.4")

    with pytest.raises(FormValidationError) as exc_info:
        call(lambda client: ProductsApi(client).import_products(source))

    assert exc_info.value.errors == {"file": ["Tipo de archivo no permitido"]}
    assert backend.requests == []
