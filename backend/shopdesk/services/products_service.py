# backend/shopdesk/services/products_service.py
"""
Catalog service.

Products are listed by name. Deletes are hard deletes; the database refuses
them while sale or refund items still reference the product.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError

PRODUCT_MUTABLE_FIELDS = {"name", "price_cents", "cost_cents", "stock", "company", "category", "image"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(product_id: str) -> Product | None:
    return db.session.query(Product).filter(Product.id == product_id).first()


def list_products(search: str | None = None) -> dict:
    """
    List products ordered by name.

    Args:
        search: Optional case-insensitive match against name or company
            (the POS product search box).

    Returns:
        Dict with 'items' and 'count'.
    """
    query = db.session.query(Product)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.company.ilike(pattern)))

    products = query.order_by(Product.name.asc(), Product.id.asc()).all()
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


def create_product(*, patch: dict, commit: bool = True) -> dict:
    """Create a product from a validated patch dict."""
    p = Product()
    apply_product_patch(p, patch)

    db.session.add(p)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return p.to_dict()


def update_product(*, product_id: str, patch: dict) -> dict | None:
    """
    Partially update a product.

    Returns:
        Updated product dict, or None if not found
    """
    p = get_product(product_id)
    if not p:
        return None

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: str) -> bool:
    """
    Delete a product.

    Returns:
        True if deleted, False if not found

    Raises:
        ConflictError: If sale or refund items still reference the product
    """
    p = get_product(product_id)
    if not p:
        return False

    db.session.delete(p)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product is referenced by existing sales or refunds and cannot be deleted.")
    return True


def low_stock_products(threshold: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.stock < threshold)
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )
