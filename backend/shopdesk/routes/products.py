# Overview: Flask API routes for the product catalog, including CSV exchange.

"""
Product catalog routes.

- Reading the catalog needs the Products page or the POS page
- Creating and editing needs the Products page and the admin or manager role
- Deleting is admin only
- CSV export/import lives on the Products page
"""
from flask import Blueprint, Response, request, current_app

from ..services import csv_service
from ..services.products_service import (
    list_products as list_products_service,
    get_product,
    create_product,
    update_product,
    delete_product,
    low_stock_products,
)
from ..services.csv_service import CsvImportError
from ..models import Product
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..pages import PAGE_DASHBOARD, PAGE_POS, PAGE_PRODUCTS
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_page, require_any_page, require_role

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_cents", "cost_cents", "stock", "company", "category", "image"},
    required_on_create={"name", "price_cents", "cost_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_any_page(PAGE_PRODUCTS, PAGE_POS)
def list_products():
    """
    List the catalog ordered by name.

    Query params:
    - q: str (optional) - case-insensitive match on name or company
    """
    return list_products_service(search=request.args.get("q"))


@products_bp.get("/low-stock")
@require_auth
@require_any_page(PAGE_PRODUCTS, PAGE_DASHBOARD)
def low_stock_route():
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    products = low_stock_products(threshold)
    return {"items": [p.to_dict() for p in products], "count": len(products), "threshold": threshold}


@products_bp.get("/<product_id>")
@require_auth
@require_any_page(PAGE_PRODUCTS, PAGE_POS)
def get_product_route(product_id: str):
    p = get_product(product_id)
    if not p:
        return {"error": "Product not found"}, 404
    return p.to_dict()


@products_bp.post("")
@require_auth
@require_page(PAGE_PRODUCTS)
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = create_product(patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created, 201


@products_bp.put("/<product_id>")
@require_auth
@require_page(PAGE_PRODUCTS)
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = update_product(product_id=product_id, patch=patch)
    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<product_id>")
@require_auth
@require_page(PAGE_PRODUCTS)
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: str):
    try:
        deleted = delete_product(product_id=product_id)
    except ConflictError as e:
        return {"error": str(e)}, 409

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.get("/export")
@require_auth
@require_page(PAGE_PRODUCTS)
def export_products_route():
    """Download the catalog as CSV."""
    body = csv_service.export_products_csv()
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{csv_service.export_filename()}"'},
    )


@products_bp.post("/import")
@require_auth
@require_page(PAGE_PRODUCTS)
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def import_products_route():
    """
    Import products from CSV.

    Accepts a multipart upload in the "file" field, or the CSV text as the
    raw request body.
    """
    upload = request.files.get("file")
    try:
        if upload is not None:
            text = upload.read().decode("utf-8-sig")
        else:
            text = request.get_data(as_text=True)
    except UnicodeDecodeError:
        return {"error": "Invalid CSV file"}, 400

    try:
        result = csv_service.import_products_csv(text or "")
    except CsvImportError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to import products")
        return {"error": "Internal server error"}, 500

    current_app.logger.info("Products imported: imported=%s skipped=%s", result.imported, result.skipped)
    return result.to_dict(), 201
