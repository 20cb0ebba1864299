# backend/app/services/products_service.py
"""
Products Service

- list_products supports an optional category filter and pagination
- create_product / update_product validate the category reference
- an initial price change recomputes the stored profit from revenue and total_sold
- delete_product removes the product and its sell history, and re-derives
  the totals of any quick-sell transactions those sales belonged to
"""
from __future__ import annotations

from typing import Iterable

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Category, Product, SellHistory, Transaction
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from .concurrency import lock_for_update, run_with_retry

PRODUCT_MUTABLE_FIELDS = {"name", "category_id", "quantity", "initial_price_cents", "selling_price_cents"}

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create={"name", "initial_price_cents", "selling_price_cents", "quantity"},
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if not db.session.query(Category).filter_by(id=category_id).first():
        raise NotFoundError("Category not found")


def ensure_not_in_debit(rows: Iterable[SellHistory]) -> None:
    linked = sorted(h.id for h in rows if h.debit_item is not None)
    if linked:
        raise ConflictError(
            "Sales that are part of a debit must be removed from the debit first",
            details={"sell_history_ids": linked},
        )


def refresh_transactions(transactions: Iterable[Transaction]) -> None:
    """Re-derive totals of transactions that lost rows; drop the ones left empty."""
    from .sell_history_service import recompute_transaction_totals

    for transaction in transactions:
        db.session.refresh(transaction)
        if transaction.sell_history:
            recompute_transaction_totals(transaction)
        else:
            db.session.delete(transaction)


def list_products(
    category_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional pagination.

    Args:
        category_id: Filter by category
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (DEFAULT_PAGE_SIZE, capped at MAX_PAGE_SIZE)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    base_query = base_query.order_by(Product.created_at.desc(), Product.id.desc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict(include_category=True) for p in products],
            "count": len(products),
        }

    max_page_size = current_app.config.get("MAX_PAGE_SIZE", 100)
    per_page = min(per_page or current_app.config.get("DEFAULT_PAGE_SIZE", 20), max_page_size)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict(include_category=True) for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product:
    p = db.session.query(Product).filter(Product.id == product_id).first()
    if not p:
        raise NotFoundError("Product not found")
    return p


def create_product(payload: dict) -> Product:
    """
    Create a product with zeroed sales counters.

    Raises:
        ValidationError: invalid payload
        NotFoundError: category_id does not exist
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    def _op():
        _require_category(patch.get("category_id"))
        p = Product(total_sold=0, revenue_cents=0, profit_cents=0)
        apply_product_patch(p, patch)
        db.session.add(p)
        db.session.commit()
        return p

    p = run_with_retry(_op)
    current_app.logger.info("Created product %s (%s)", p.id, p.name)
    return p


def update_product(product_id: int, payload: dict) -> Product:
    """
    Edit a product's details or stock level.

    Sales counters are not writable here; a new initial price re-derives
    profit from the existing revenue and total_sold.
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        p = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
        if not p:
            raise NotFoundError("Product not found")
        if "category_id" in patch:
            _require_category(patch["category_id"])

        apply_product_patch(p, patch)
        p.recompute_profit()
        db.session.commit()
        return p

    return run_with_retry(_op)


def delete_product(product_id: int) -> None:
    """
    Delete a product and its sell history.

    Raises:
        NotFoundError: product does not exist
        ConflictError: some of its sales are part of a debit
    """
    def _op():
        p = db.session.query(Product).filter(Product.id == product_id).first()
        if not p:
            raise NotFoundError("Product not found")

        ensure_not_in_debit(p.sell_history)
        transactions = {h.transaction for h in p.sell_history if h.transaction is not None}

        db.session.delete(p)
        db.session.flush()
        refresh_transactions(transactions)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Deleted product %s", product_id)
