"""Modelos del catálogo de productos.

Invariante de negocio (solo informativa aquí): como máximo un código de
barras primario por producto. La valida el backend; el cliente solo la
muestra.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from core.domain.models import ApiModel


class ProductDimensions(ApiModel):
    length: float
    width: float
    height: float
    unit: str = "cm"


class ProductCategory(ApiModel):
    id: str
    tenant_id: str | None = None
    name: str
    slug: str | None = None
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductVariant(ApiModel):
    id: str
    product_id: str
    sku: str
    name: str
    price: float = 0.0
    cost: float = 0.0
    attributes: dict[str, str | float | int] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductBarcode(ApiModel):
    id: str
    tenant_id: str | None = None
    product_id: str
    variant_id: str | None = None
    barcode: str
    barcode_type: str
    is_primary: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Product(ApiModel):
    id: str
    tenant_id: str | None = None
    category_id: str | None = None
    sku: str
    name: str
    description: str | None = None
    price: float = 0.0
    cost: float = 0.0
    currency: str = "EUR"
    weight: float | None = None
    dimensions: ProductDimensions | None = None
    track_inventory: bool = False
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    category: ProductCategory | None = None
    variants: list[ProductVariant] | None = None
    barcodes: list[ProductBarcode] | None = None


class BarcodeLookupResult(ApiModel):
    product: Product
    variant: ProductVariant | None = None
    barcode: ProductBarcode


class ProductStats(ApiModel):
    total_products: int = 0
    active_products: int = 0
    total_categories: int = 0
    active_categories: int = 0
    total_variants: int = 0
    active_variants: int = 0
    total_barcodes: int = 0
    low_stock_products: int = 0
    out_of_stock_products: int = 0


class BulkOperationKind(str, Enum):
    UPDATE = "update"
    DELETE = "delete"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


class ProductImportResult(ApiModel):
    imported: int = 0
    errors: list[str] = Field(default_factory=list)
