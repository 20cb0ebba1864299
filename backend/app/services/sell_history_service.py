# Overview: Service-layer reads and corrections for sell history.

"""
Sell History Service

Sell history rows are immutable from the sell path. This module is the one
correction flow: editing or deleting a row re-derives the counters of the
product or service that owns it, and the totals of the quick-sell
transaction it belongs to, inside the same commit.
"""
from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, InsufficientStockError, NotFoundError
from ..extensions import db
from ..models import Product, SellHistory, Service, Transaction
from ..validation import ModelValidationPolicy, enforce_rules_sell_correction, validate_payload
from app.time_utils import parse_date_range
from .concurrency import lock_for_update, run_with_retry

SELL_HISTORY_CORRECTION_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "sold_price_cents", "created_at"},
)


def list_sell_history(
    *,
    product_id: int | None = None,
    service_id: int | None = None,
    start: str | None = None,
    end: str | None = None,
    limit: int | None = None,
) -> list[SellHistory]:
    """Newest-first sell history, optionally filtered by owner and date range."""
    start_dt, end_dt = parse_date_range(start, end)

    query = db.session.query(SellHistory)
    if product_id is not None:
        query = query.filter(SellHistory.product_id == product_id)
    if service_id is not None:
        query = query.filter(SellHistory.service_id == service_id)
    if start_dt:
        query = query.filter(SellHistory.created_at >= start_dt)
    if end_dt:
        query = query.filter(SellHistory.created_at <= end_dt)

    query = query.order_by(SellHistory.created_at.desc(), SellHistory.id.desc())
    if limit is not None and limit > 0:
        query = query.limit(limit)
    return query.all()


def get_sell_history(history_id: int) -> SellHistory:
    history = db.session.query(SellHistory).filter_by(id=history_id).first()
    if not history:
        raise NotFoundError("Sell history not found")
    return history


def recompute_transaction_totals(transaction: Transaction) -> None:
    """Re-derive a quick-sell transaction's totals from its remaining rows."""
    transaction.total_revenue_cents = sum(h.total_price_cents for h in transaction.sell_history)
    transaction.total_profit_cents = sum(h.profit_cents for h in transaction.sell_history)


def update_sell_history(history_id: int, payload: dict) -> SellHistory:
    """
    Correct the amount, unit price or date of a recorded sale.

    The owner's counters move by the difference between the old and new
    row. Raising a product sale's amount needs the extra units in stock.
    A row that is part of a debit cannot drop below the amount the debit
    claims for it.
    """
    patch = validate_payload(
        model=SellHistory,
        payload=payload,
        policy=SELL_HISTORY_CORRECTION_POLICY,
        partial=True,
    )
    enforce_rules_sell_correction(patch)

    def _op():
        history = lock_for_update(db.session.query(SellHistory).filter_by(id=history_id)).first()
        if not history:
            raise NotFoundError("Sell history not found")

        new_amount = patch.get("amount") or history.amount
        new_price = patch.get("sold_price_cents") or history.sold_price_cents
        new_total = new_amount * new_price

        if history.debit_item is not None and new_total < history.debit_item.amount_cents:
            raise ConflictError(
                "Corrected total would fall below the amount claimed by its debit",
                details={
                    "debit_id": history.debit_item.debit_id,
                    "debit_item_amount_cents": history.debit_item.amount_cents,
                    "new_total_price_cents": new_total,
                },
            )

        amount_delta = new_amount - history.amount
        revenue_delta = new_total - history.total_price_cents

        if history.product_id is not None:
            product = lock_for_update(db.session.query(Product).filter_by(id=history.product_id)).first()
            if amount_delta > product.quantity:
                raise InsufficientStockError(
                    "Insufficient quantity available",
                    details={
                        "product_id": product.id,
                        "requested_quantity": amount_delta,
                        "available_quantity": product.quantity,
                    },
                )
            product.quantity -= amount_delta
            product.total_sold += amount_delta
            product.revenue_cents += revenue_delta
            product.recompute_profit()
        else:
            service = lock_for_update(db.session.query(Service).filter_by(id=history.service_id)).first()
            service.total_sold += amount_delta
            service.revenue_cents += revenue_delta

        history.amount = new_amount
        history.sold_price_cents = new_price
        history.total_price_cents = new_total
        if patch.get("created_at") is not None:
            history.created_at = patch["created_at"]

        if history.transaction is not None:
            recompute_transaction_totals(history.transaction)

        db.session.commit()
        return history

    history = run_with_retry(_op)
    current_app.logger.info("Corrected sell history %s", history.id)
    return history


def delete_sell_history(history_id: int) -> None:
    """
    Delete a recorded sale and roll back its effects on the owner.

    Rows that are part of a debit must be removed from the debit first.
    A quick-sell transaction left without rows is deleted as well.
    """
    def _op():
        history = lock_for_update(db.session.query(SellHistory).filter_by(id=history_id)).first()
        if not history:
            raise NotFoundError("Sell history not found")

        if history.debit_item is not None:
            raise ConflictError(
                "Cannot delete a sale that is part of a debit. Remove it from the debit first.",
                details={"debit_id": history.debit_item.debit_id},
            )

        if history.product_id is not None:
            product = lock_for_update(db.session.query(Product).filter_by(id=history.product_id)).first()
            product.quantity += history.amount
            product.total_sold -= history.amount
            product.revenue_cents -= history.total_price_cents
            product.recompute_profit()
        else:
            service = lock_for_update(db.session.query(Service).filter_by(id=history.service_id)).first()
            service.total_sold -= history.amount
            service.revenue_cents -= history.total_price_cents

        transaction = history.transaction
        if transaction is not None:
            transaction.sell_history.remove(history)
            if transaction.sell_history:
                recompute_transaction_totals(transaction)
            else:
                db.session.delete(transaction)

        db.session.delete(history)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Deleted sell history %s", history_id)
