"""Recurso `/products`: catálogo, categorías, variantes y códigos de barras."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

from core.domain.models import StandardListResponse
from core.domain.products import (
    BarcodeLookupResult,
    BulkOperationKind,
    Product,
    ProductBarcode,
    ProductCategory,
    ProductImportResult,
    ProductStats,
    ProductVariant,
)
from core.errors import FormValidationError
from core.interfaces import ApiTransport
from core.services.files import FileInfo, validate_file
from core.services.forms import BarcodeForm, CategoryForm, ProductForm, ProductUpdateForm, VariantForm

logger = logging.getLogger(__name__)

# CSV/Excel, lo que acepta `POST /products/import`.
PRODUCT_IMPORT_TYPES = [
    "text/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
]


def _filters(
    *,
    category_id: str | None = None,
    search: str | None = None,
    is_active: bool | None = None,
    track_inventory: bool | None = None,
) -> dict[str, Any]:
    # El backend espera booleanos en minúscula ("true"/"false").
    return {
        "category_id": category_id,
        "search": search,
        "is_active": str(is_active).lower() if is_active is not None else None,
        "track_inventory": str(track_inventory).lower() if track_inventory is not None else None,
    }


class ProductsApi:
    def __init__(self, transport: ApiTransport) -> None:
        self._api = transport

    # Productos

    async def list_products(
        self,
        *,
        page: int = 1,
        page_size: int = 20,
        category_id: str | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        track_inventory: bool | None = None,
    ) -> StandardListResponse[Product]:
        params = {
            "page": page,
            "page_size": page_size,
            **_filters(
                category_id=category_id,
                search=search,
                is_active=is_active,
                track_inventory=track_inventory,
            ),
        }
        return await self._api.fetch_list("/products", Product, params=params)

    async def search_products(
        self,
        query: str,
        *,
        page: int = 1,
        page_size: int = 20,
        category_id: str | None = None,
        is_active: bool | None = None,
    ) -> StandardListResponse[Product]:
        params = {
            "q": query,
            "page": page,
            "page_size": page_size,
            **_filters(category_id=category_id, is_active=is_active),
        }
        return await self._api.fetch_list("/products/search", Product, params=params)

    async def get_product(self, product_id: str) -> Product:
        return await self._api.fetch_one("GET", f"/products/{product_id}", Product)

    async def create_product(self, form: ProductForm) -> Product:
        return await self._api.fetch_one("POST", "/products", Product, json=form.to_payload())

    async def update_product(self, product_id: str, form: ProductUpdateForm) -> Product:
        return await self._api.fetch_one("PATCH", f"/products/{product_id}", Product, json=form.to_payload())

    async def delete_product(self, product_id: str) -> None:
        await self._api.send("DELETE", f"/products/{product_id}")

    # Categorías

    async def list_categories(self) -> StandardListResponse[ProductCategory]:
        return await self._api.fetch_list("/products/categories", ProductCategory)

    async def get_category(self, category_id: str) -> ProductCategory:
        return await self._api.fetch_one("GET", f"/products/categories/{category_id}", ProductCategory)

    async def create_category(self, form: CategoryForm) -> ProductCategory:
        return await self._api.fetch_one("POST", "/products/categories", ProductCategory, json=form.to_payload())

    async def update_category(self, category_id: str, **changes: Any) -> ProductCategory:
        return await self._api.fetch_one(
            "PATCH",
            f"/products/categories/{category_id}",
            ProductCategory,
            json=changes,
        )

    async def delete_category(self, category_id: str) -> None:
        await self._api.send("DELETE", f"/products/categories/{category_id}")

    # Variantes

    async def list_variants(self, product_id: str) -> StandardListResponse[ProductVariant]:
        return await self._api.fetch_list(f"/products/{product_id}/variants", ProductVariant)

    async def create_variant(self, product_id: str, form: VariantForm) -> ProductVariant:
        return await self._api.fetch_one(
            "POST",
            f"/products/{product_id}/variants",
            ProductVariant,
            json=form.to_payload(),
        )

    async def update_variant(self, variant_id: str, **changes: Any) -> ProductVariant:
        return await self._api.fetch_one("PATCH", f"/products/variants/{variant_id}", ProductVariant, json=changes)

    async def delete_variant(self, variant_id: str) -> None:
        await self._api.send("DELETE", f"/products/variants/{variant_id}")

    # Códigos de barras

    async def list_barcodes(self, product_id: str) -> StandardListResponse[ProductBarcode]:
        return await self._api.fetch_list(f"/products/{product_id}/barcodes", ProductBarcode)

    async def create_barcode(self, product_id: str, form: BarcodeForm) -> ProductBarcode:
        # Un segundo `is_primary` no se rechaza aquí: el backend decide.
        return await self._api.fetch_one(
            "POST",
            f"/products/{product_id}/barcodes",
            ProductBarcode,
            json=form.to_payload(),
        )

    async def update_barcode(self, barcode_id: str, **changes: Any) -> ProductBarcode:
        return await self._api.fetch_one("PATCH", f"/products/barcodes/{barcode_id}", ProductBarcode, json=changes)

    async def delete_barcode(self, barcode_id: str) -> None:
        await self._api.send("DELETE", f"/products/barcodes/{barcode_id}")

    async def find_by_barcode(self, barcode: str) -> BarcodeLookupResult:
        return await self._api.fetch_one(
            "GET",
            f"/products/by-barcode/{quote(barcode, safe='')}",
            BarcodeLookupResult,
        )

    # Operaciones de catálogo

    async def get_stats(self) -> ProductStats:
        return await self._api.fetch_one("GET", "/products/stats", ProductStats)

    async def bulk_operation(
        self,
        operation: BulkOperationKind,
        product_ids: list[str],
        data: dict[str, Any] | None = None,
    ) -> list[Product]:
        if not product_ids:
            raise ValueError("product_ids must not be empty")
        payload: dict[str, Any] = {"operation": operation.value, "product_ids": product_ids}
        if data:
            payload["data"] = data
        raw = await self._api.fetch_raw("POST", "/products/bulk", json=payload)
        return [Product.model_validate(item) for item in raw or []]

    async def export_products(
        self,
        output_path: Path,
        *,
        category_id: str | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        track_inventory: bool | None = None,
    ) -> Path:
        params = _filters(
            category_id=category_id,
            search=search,
            is_active=is_active,
            track_inventory=track_inventory,
        )
        return await self._api.download("/products/export", output_path, params=params)

    async def import_products(self, file_path: Path) -> ProductImportResult:
        """Sube un CSV/Excel tras validarlo localmente (tipo y tamaño)."""

        info = FileInfo.from_path(file_path)
        result = validate_file(info, allowed_types=PRODUCT_IMPORT_TYPES)
        if not result.is_valid:
            raise FormValidationError({"file": [result.error or "Archivo no válido"]})
        for warning in result.warnings:
            logger.warning("%s: %s", info.name, warning)

        files = {"file": (info.name, file_path.read_bytes(), info.type)}
        return await self._api.fetch_one("POST", "/products/import", ProductImportResult, files=files)
