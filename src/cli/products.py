"""Comandos del catálogo de productos."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from adapters.api import ProductsApi
from cli.common import (
    confirm_or_abort,
    console,
    get_state,
    handle_errors,
    print_json,
    run_api,
    toast_success,
    toast_warning,
)
from cli.ui_components import (
    build_product_panel,
    build_product_stats_table,
    build_products_table,
)
from core.domain.products import BulkOperationKind
from core.services.forms import (
    BarcodeForm,
    CategoryForm,
    ProductForm,
    ProductUpdateForm,
    VariantForm,
    validate_form,
)
from core.services.pricing import format_currency

app = typer.Typer(no_args_is_help=True, help="Catálogo de productos.")


@app.command("list")
@handle_errors
def list_products(
    ctx: typer.Context,
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Búsqueda en todos los campos."),
    category: Optional[str] = typer.Option(None, "--category"),
    active: Optional[bool] = typer.Option(None, "--active/--inactive"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, max=500),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista productos; con --search usa el endpoint de búsqueda."""

    state = get_state(ctx)
    size = page_size or state.settings.default_page_size

    async def _action(client):
        api = ProductsApi(client)
        if search:
            return await api.search_products(search, page=page, page_size=size, category_id=category, is_active=active)
        return await api.list_products(page=page, page_size=size, category_id=category, is_active=active)

    response = run_api(state, _action)
    if json_output:
        print_json(response.data)
        return
    console.print(build_products_table(response.data, state.language, response.meta))


@app.command()
@handle_errors
def show(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Detalle de producto con precio, margen y código principal."""

    state = get_state(ctx)
    product = run_api(state, lambda client: ProductsApi(client).get_product(product_id))
    if json_output:
        print_json(product)
        return
    console.print(build_product_panel(product, state.language))


@app.command()
@handle_errors
def barcode(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Código de barras a buscar."),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Busca un producto por código de barras."""

    state = get_state(ctx)
    result = run_api(state, lambda client: ProductsApi(client).find_by_barcode(code))
    if json_output:
        print_json(result)
        return
    console.print(build_product_panel(result.product, state.language))
    if result.variant is not None:
        console.print(f"Variante: {result.variant.sku} {result.variant.name}")


@app.command()
@handle_errors
def create(
    ctx: typer.Context,
    sku: str = typer.Option(..., "--sku", prompt=True),
    name: str = typer.Option(..., "--name", prompt="Nombre"),
    category: str = typer.Option(..., "--category", prompt="Categoría (ID)"),
    price: float = typer.Option(0.0, "--price"),
    cost: float = typer.Option(0.0, "--cost"),
    currency: str = typer.Option("EUR", "--currency"),
    description: Optional[str] = typer.Option(None, "--description"),
    track_inventory: bool = typer.Option(False, "--track-inventory"),
) -> None:
    """Crea un producto."""

    form = validate_form(
        ProductForm,
        sku=sku,
        name=name,
        category_id=category,
        price=price,
        cost=cost,
        currency=currency,
        description=description,
        track_inventory=track_inventory,
    )
    state = get_state(ctx)
    product = run_api(state, lambda client: ProductsApi(client).create_product(form))
    toast_success(
        f"Producto creado: {product.sku} · {format_currency(product.price, product.currency, state.language)}"
    )


@app.command()
@handle_errors
def update(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    sku: Optional[str] = typer.Option(None, "--sku"),
    name: Optional[str] = typer.Option(None, "--name"),
    category: Optional[str] = typer.Option(None, "--category"),
    price: Optional[float] = typer.Option(None, "--price"),
    cost: Optional[float] = typer.Option(None, "--cost"),
    currency: Optional[str] = typer.Option(None, "--currency"),
    active: Optional[bool] = typer.Option(None, "--active/--inactive"),
) -> None:
    """Actualiza (PATCH) solo los campos indicados."""

    form = validate_form(
        ProductUpdateForm,
        sku=sku,
        name=name,
        category_id=category,
        price=price,
        cost=cost,
        currency=currency,
        is_active=active,
    )
    state = get_state(ctx)
    product = run_api(state, lambda client: ProductsApi(client).update_product(product_id, form))
    toast_success(f"Producto actualizado: {product.sku}")


@app.command()
@handle_errors
def delete(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Elimina un producto."""

    confirm_or_abort(f"¿Eliminar el producto {product_id}?", yes=yes)
    state = get_state(ctx)
    run_api(state, lambda client: ProductsApi(client).delete_product(product_id))
    toast_success("Producto eliminado")


@app.command()
@handle_errors
def stats(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Estadísticas del catálogo."""

    state = get_state(ctx)
    result = run_api(state, lambda client: ProductsApi(client).get_stats())
    if json_output:
        print_json(result)
        return
    console.print(build_product_stats_table(result))


@app.command()
@handle_errors
def bulk(
    ctx: typer.Context,
    operation: BulkOperationKind = typer.Argument(...),
    product_ids: List[str] = typer.Argument(..., help="IDs de producto."),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Operación masiva: activate, deactivate o delete."""

    if operation is BulkOperationKind.UPDATE:
        raise typer.BadParameter("Para 'update' usa `products update` por producto")
    if operation is BulkOperationKind.DELETE:
        confirm_or_abort(f"¿Eliminar {len(product_ids)} productos?", yes=yes)
    state = get_state(ctx)
    updated = run_api(state, lambda client: ProductsApi(client).bulk_operation(operation, product_ids))
    toast_success(f"{operation.value}: {len(product_ids)} productos ({len(updated)} devueltos)")


@app.command("export")
@handle_errors
def export_products(
    ctx: typer.Context,
    output: Path = typer.Option(Path("products_export.csv"), "--output", "-o"),
    category: Optional[str] = typer.Option(None, "--category"),
    search: Optional[str] = typer.Option(None, "--search", "-q"),
    active: Optional[bool] = typer.Option(None, "--active/--inactive"),
) -> None:
    """Descarga el catálogo a un archivo."""

    state = get_state(ctx)
    path = run_api(
        state,
        lambda client: ProductsApi(client).export_products(
            output,
            category_id=category,
            search=search,
            is_active=active,
        ),
    )
    toast_success(f"Exportado a {path}")


@app.command("import")
@handle_errors
def import_products(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
) -> None:
    """Importa productos desde CSV/Excel (validado antes de subir)."""

    state = get_state(ctx)
    result = run_api(state, lambda client: ProductsApi(client).import_products(file))
    toast_success(f"{result.imported} productos importados")
    for error in result.errors:
        toast_warning(error)


# Categorías, variantes y códigos


@app.command()
@handle_errors
def categories(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Lista las categorías."""

    state = get_state(ctx)
    response = run_api(state, lambda client: ProductsApi(client).list_categories())
    if json_output:
        print_json(response.data)
        return
    table = Table(title="Categorías")
    table.add_column("ID", style="dim")
    table.add_column("Nombre", style="cyan")
    table.add_column("Slug")
    table.add_column("Activa")
    for item in response.data:
        table.add_row(item.id, item.name, item.slug or "-", "sí" if item.is_active else "no")
    console.print(table)


@app.command("category-add")
@handle_errors
def category_add(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    description: Optional[str] = typer.Option(None, "--description"),
) -> None:
    """Crea una categoría."""

    form = validate_form(CategoryForm, name=name, description=description)
    state = get_state(ctx)
    category = run_api(state, lambda client: ProductsApi(client).create_category(form))
    toast_success(f"Categoría creada: {category.name} ({category.id})")


@app.command("category-rm")
@handle_errors
def category_remove(
    ctx: typer.Context,
    category_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Elimina una categoría."""

    confirm_or_abort(f"¿Eliminar la categoría {category_id}?", yes=yes)
    state = get_state(ctx)
    run_api(state, lambda client: ProductsApi(client).delete_category(category_id))
    toast_success("Categoría eliminada")


@app.command()
@handle_errors
def variants(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista las variantes de un producto."""

    state = get_state(ctx)
    response = run_api(state, lambda client: ProductsApi(client).list_variants(product_id))
    if json_output:
        print_json(response.data)
        return
    table = Table(title=f"Variantes de {product_id}")
    table.add_column("ID", style="dim")
    table.add_column("SKU", style="cyan")
    table.add_column("Nombre")
    table.add_column("Precio", justify="right")
    table.add_column("Atributos")
    for item in response.data:
        attrs = ", ".join(f"{k}={v}" for k, v in item.attributes.items())
        table.add_row(item.id, item.sku, item.name, format_currency(item.price, language=state.language), attrs)
    console.print(table)


@app.command("variant-add")
@handle_errors
def variant_add(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    sku: str = typer.Option(..., "--sku"),
    name: str = typer.Option(..., "--name"),
    price: float = typer.Option(0.0, "--price"),
    cost: float = typer.Option(0.0, "--cost"),
    attribute: Optional[List[str]] = typer.Option(None, "--attr", help="clave=valor (repetible)."),
) -> None:
    """Crea una variante."""

    attributes: dict[str, str] = {}
    for pair in attribute or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Atributo inválido: {pair!r} (usa clave=valor)")
        attributes[key.strip()] = value.strip()
    form = validate_form(VariantForm, sku=sku, name=name, price=price, cost=cost, attributes=attributes)
    state = get_state(ctx)
    variant = run_api(state, lambda client: ProductsApi(client).create_variant(product_id, form))
    toast_success(f"Variante creada: {variant.sku} ({variant.id})")


@app.command("variant-rm")
@handle_errors
def variant_remove(ctx: typer.Context, variant_id: str = typer.Argument(...)) -> None:
    """Elimina una variante."""

    state = get_state(ctx)
    run_api(state, lambda client: ProductsApi(client).delete_variant(variant_id))
    toast_success("Variante eliminada")


@app.command()
@handle_errors
def barcodes(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Lista los códigos de barras (marca el principal)."""

    state = get_state(ctx)
    response = run_api(state, lambda client: ProductsApi(client).list_barcodes(product_id))
    if json_output:
        print_json(response.data)
        return
    table = Table(title=f"Códigos de {product_id}")
    table.add_column("ID", style="dim")
    table.add_column("Código", style="cyan")
    table.add_column("Tipo")
    table.add_column("Principal")
    for item in response.data:
        table.add_row(item.id, item.barcode, item.barcode_type, "★" if item.is_primary else "")
    console.print(table)


@app.command("barcode-add")
@handle_errors
def barcode_add(
    ctx: typer.Context,
    product_id: str = typer.Argument(...),
    code: str = typer.Argument(...),
    barcode_type: str = typer.Option("EAN13", "--type"),
    primary: bool = typer.Option(False, "--primary"),
    variant_id: Optional[str] = typer.Option(None, "--variant"),
) -> None:
    """Añade un código de barras."""

    form = validate_form(
        BarcodeForm,
        barcode=code,
        barcode_type=barcode_type,
        is_primary=primary,
        variant_id=variant_id,
    )
    state = get_state(ctx)
    created = run_api(state, lambda client: ProductsApi(client).create_barcode(product_id, form))
    toast_success(f"Código añadido: {created.barcode}")


@app.command("barcode-rm")
@handle_errors
def barcode_remove(ctx: typer.Context, barcode_id: str = typer.Argument(...)) -> None:
    """Elimina un código de barras."""

    state = get_state(ctx)
    run_api(state, lambda client: ProductsApi(client).delete_barcode(barcode_id))
    toast_success("Código eliminado")
