# Overview: Service-layer operations for categories.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Category
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry
from .products_service import ensure_not_in_debit, refresh_transactions

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError("Category with this name already exists")


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def get_category(category_id: int) -> Category:
    category = db.session.query(Category).filter_by(id=category_id).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    def _op():
        _ensure_unique_name(patch["name"])
        category = Category(name=patch["name"])
        db.session.add(category)
        db.session.commit()
        return category

    return run_with_retry(_op)


def update_category(category_id: int, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    def _op():
        category = get_category(category_id)
        if patch["name"] != category.name:
            _ensure_unique_name(patch["name"], exclude_id=category.id)
        category.name = patch["name"]
        db.session.commit()
        return category

    return run_with_retry(_op)


def delete_category(category_id: int) -> None:
    """
    Delete a category together with its products and their sell history.

    Refused while any of those sales is part of a debit.
    """
    def _op():
        category = get_category(category_id)
        transactions = set()
        for product in category.products:
            ensure_not_in_debit(product.sell_history)
            transactions.update(h.transaction for h in product.sell_history if h.transaction is not None)

        product_count = len(category.products)
        db.session.delete(category)
        db.session.flush()
        refresh_transactions(transactions)
        db.session.commit()
        return product_count

    product_count = run_with_retry(_op)
    current_app.logger.info("Deleted category %s with %s products", category_id, product_count)
