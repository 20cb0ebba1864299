# Overview: Service-layer sell operations for products, services and quick-sell carts.

"""
Sell Service

Every sell is one unit of work: the running counters on the product or
service and the new sell_history row are committed together or not at all.

COUNTER RULES:
- Product: quantity -= amount, total_sold += amount, revenue += amount * sold_price,
  profit recomputed as revenue - initial_price * total_sold.
- Service: total_sold += amount, revenue += amount * sold_price. No profit is stored.
- The sell_history row snapshots the product's initial price (NULL for services).
"""
from __future__ import annotations

from flask import current_app

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, SellHistory, Service, Transaction
from ..validation import coerce_positive_int, enforce_rules_sell
from app.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


def _apply_product_sale(product: Product, amount: int, sold_price_cents: int) -> SellHistory:
    total_price = amount * sold_price_cents

    product.quantity -= amount
    product.total_sold += amount
    product.revenue_cents += total_price
    product.recompute_profit()

    return SellHistory(
        product=product,
        amount=amount,
        sold_price_cents=sold_price_cents,
        total_price_cents=total_price,
        initial_price_cents=product.initial_price_cents,
        created_at=utcnow(),
    )


def sell_product(product_id: int, amount, sold_price_cents) -> Product:
    """
    Sell `amount` units of a product at `sold_price_cents` each.

    All-or-nothing: if the product does not have enough stock nothing is
    written.

    Raises:
        ValidationError: amount or price missing / not a positive integer
        NotFoundError: product does not exist
        InsufficientStockError: amount exceeds the quantity on hand
    """
    patch = {"amount": amount, "sold_price_cents": sold_price_cents}
    enforce_rules_sell(patch)

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            raise NotFoundError("Product not found")

        if product.quantity < patch["amount"]:
            raise InsufficientStockError(
                "Insufficient quantity available",
                details={
                    "product_id": product.id,
                    "requested_quantity": patch["amount"],
                    "available_quantity": product.quantity,
                },
            )

        history = _apply_product_sale(product, patch["amount"], patch["sold_price_cents"])
        db.session.add(history)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info(
        "Sold %s x product %s at %s cents", patch["amount"], product.id, patch["sold_price_cents"]
    )
    return product


def sell_service(service_id: int, amount, sold_price_cents) -> Service:
    """
    Sell a service. Services have unlimited availability, so there is no
    stock check, and no cost snapshot is stored on the history row.
    """
    patch = {"amount": amount, "sold_price_cents": sold_price_cents}
    enforce_rules_sell(patch, capped=False)

    def _op():
        service = lock_for_update(db.session.query(Service).filter_by(id=service_id)).first()
        if not service:
            raise NotFoundError("Service not found")

        total_price = patch["amount"] * patch["sold_price_cents"]
        service.total_sold += patch["amount"]
        service.revenue_cents += total_price

        db.session.add(SellHistory(
            service=service,
            amount=patch["amount"],
            sold_price_cents=patch["sold_price_cents"],
            total_price_cents=total_price,
            initial_price_cents=None,
            created_at=utcnow(),
        ))
        db.session.commit()
        return service

    service = run_with_retry(_op)
    current_app.logger.info(
        "Sold %s x service %s at %s cents", patch["amount"], service.id, patch["sold_price_cents"]
    )
    return service


def _normalize_bulk_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    max_items = current_app.config.get("BULK_SELL_MAX_ITEMS", 100)
    if len(items) > max_items:
        raise ValidationError(f"Maximum {max_items} items per transaction")

    normalized = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index} must be an object")
        try:
            patch = {
                "product_id": coerce_positive_int("product_id", item.get("product_id")),
                "amount": item.get("amount"),
                "sold_price_cents": item.get("sold_price_cents"),
            }
            enforce_rules_sell(patch)
        except ValidationError as exc:
            raise ValidationError(f"Item {index}: {exc}", details={"index": index})
        normalized.append(patch)
    return normalized


def bulk_sell(items) -> Transaction:
    """
    Sell several products in one checkout.

    Every item is validated up front, then stock is checked for the whole
    cart (the same product may appear more than once; its amounts are
    summed) before anything is written. Product updates, the Transaction
    record and all history rows share one commit.

    Raises:
        ValidationError: malformed cart or item
        NotFoundError: one or more products do not exist
        InsufficientStockError: any product lacks stock for the requested total
    """
    normalized = _normalize_bulk_items(items)

    def _op():
        product_ids = {item["product_id"] for item in normalized}
        products = (
            lock_for_update(db.session.query(Product).filter(Product.id.in_(product_ids)))
            .all()
        )
        by_id = {p.id: p for p in products}

        missing = sorted(product_ids - set(by_id))
        if missing:
            raise NotFoundError("One or more products not found", details={"product_ids": missing})

        requested: dict[int, int] = {}
        for item in normalized:
            requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["amount"]

        insufficient = []
        for product_id, qty in requested.items():
            product = by_id[product_id]
            if product.quantity < qty:
                insufficient.append({
                    "product_id": product_id,
                    "name": product.name,
                    "requested_quantity": qty,
                    "available_quantity": product.quantity,
                })
        if insufficient:
            raise InsufficientStockError(
                "Insufficient quantity to complete sale",
                details={"items": insufficient},
            )

        transaction = Transaction(total_revenue_cents=0, total_profit_cents=0, created_at=utcnow())
        db.session.add(transaction)

        for item in normalized:
            history = _apply_product_sale(by_id[item["product_id"]], item["amount"], item["sold_price_cents"])
            history.transaction = transaction
            transaction.total_revenue_cents += history.total_price_cents
            transaction.total_profit_cents += history.profit_cents
            db.session.add(history)

        db.session.commit()
        return transaction

    transaction = run_with_retry(_op)
    current_app.logger.info(
        "Bulk sell transaction %s: %s items, %s cents",
        transaction.id,
        len(normalized),
        transaction.total_revenue_cents,
    )
    return transaction
