# Overview: Service-layer operations for debits (deferred customer payments).

"""
Debit Service

A debit groups prior sales a customer has not fully paid for. Its total is
the sum of its items, fixed at creation (only removing an item lowers it).
Payments accumulate in paid_amount_cents and never exceed the total.

STATE MACHINE:
    PENDING (paid == 0) -> PARTIAL (0 < paid < total) -> PAID (paid == total)

Status is always derived from the amounts (Debit.sync_status), never set by
a caller, so no transition can move backward: paid only grows through
pay_debit, and item removal is refused when it would leave paid > total.
"""
from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, ExceedsTotalError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Debit, DebitItem, SellHistory
from ..models.debits import DEBIT_STATUSES
from ..validation import (
    ModelValidationPolicy,
    coerce_positive_int,
    enforce_rules_payment,
    validate_payload,
)
from app.time_utils import parse_date_range, utcnow
from .concurrency import lock_for_update, run_with_retry

DEBIT_POLICY = ModelValidationPolicy(writable_fields={"customer_name", "notes"})


def list_debits(*, status: str | None = None, start: str | None = None, end: str | None = None) -> list[Debit]:
    start_dt, end_dt = parse_date_range(start, end)

    query = db.session.query(Debit)
    if status:
        if status not in DEBIT_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(DEBIT_STATUSES)}")
        query = query.filter(Debit.status == status)
    if start_dt:
        query = query.filter(Debit.created_at >= start_dt)
    if end_dt:
        query = query.filter(Debit.created_at <= end_dt)
    return query.order_by(Debit.created_at.desc(), Debit.id.desc()).all()


def get_debit(debit_id: int) -> Debit:
    debit = db.session.query(Debit).filter_by(id=debit_id).first()
    if not debit:
        raise NotFoundError("Debit not found")
    return debit


def _normalize_debit_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one debit item is required")

    normalized = []
    seen: set[int] = set()
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index} must be an object")
        sell_history_id = coerce_positive_int("sell_history_id", item.get("sell_history_id"))
        amount_cents = coerce_positive_int("amount_cents", item.get("amount_cents"))
        if sell_history_id in seen:
            raise ValidationError(f"Sell history {sell_history_id} is listed more than once")
        seen.add(sell_history_id)
        normalized.append({"sell_history_id": sell_history_id, "amount_cents": amount_cents})
    return normalized


def create_debit(payload: dict) -> Debit:
    """
    Open a debit over existing sales.

    payload: {"customer_name"?, "notes"?, "items": [{"sell_history_id", "amount_cents"}, ...]}

    Each sale may belong to at most one debit, and the amount claimed for it
    cannot exceed the sale's total price.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    items = _normalize_debit_items(payload.pop("items", None))
    patch = validate_payload(model=Debit, payload=payload, policy=DEBIT_POLICY, partial=True)

    total_amount = sum(item["amount_cents"] for item in items)
    if total_amount <= 0:
        raise ValidationError("Debit total must be positive")

    def _op():
        ids = [item["sell_history_id"] for item in items]
        rows = db.session.query(SellHistory).filter(SellHistory.id.in_(ids)).all()
        by_id = {row.id: row for row in rows}

        missing = sorted(set(ids) - set(by_id))
        if missing:
            raise NotFoundError(
                "One or more sell history entries not found",
                details={"sell_history_ids": missing},
            )

        for item in items:
            row = by_id[item["sell_history_id"]]
            if row.debit_item is not None:
                raise ConflictError(
                    f"Sell history entry {row.id} is already part of a debit",
                    details={"sell_history_id": row.id, "debit_id": row.debit_item.debit_id},
                )
            if item["amount_cents"] > row.total_price_cents:
                raise ValidationError(
                    f"Amount for sell history {row.id} exceeds total price of {row.total_price_cents}",
                    details={"sell_history_id": row.id, "total_price_cents": row.total_price_cents},
                )

        debit = Debit(
            customer_name=patch.get("customer_name"),
            notes=patch.get("notes"),
            total_amount_cents=total_amount,
            paid_amount_cents=0,
        )
        debit.sync_status(now=utcnow())
        for item in items:
            debit.items.append(DebitItem(sell_history=by_id[item["sell_history_id"]], amount_cents=item["amount_cents"]))

        db.session.add(debit)
        db.session.commit()
        return debit

    debit = run_with_retry(_op)
    current_app.logger.info("Opened debit %s for %s cents", debit.id, debit.total_amount_cents)
    return debit


def update_debit(debit_id: int, payload: dict) -> Debit:
    """
    Edit the customer name / notes of a debit.

    Amounts are not editable here: payments go through pay_debit so that
    the paid amount only ever grows.
    """
    patch = validate_payload(model=Debit, payload=payload, policy=DEBIT_POLICY, partial=True)

    def _op():
        debit = lock_for_update(db.session.query(Debit).filter_by(id=debit_id)).first()
        if not debit:
            raise NotFoundError("Debit not found")
        for key, value in patch.items():
            setattr(debit, key, value)
        db.session.commit()
        return debit

    return run_with_retry(_op)


def delete_debit(debit_id: int) -> None:
    def _op():
        debit = db.session.query(Debit).filter_by(id=debit_id).first()
        if not debit:
            raise NotFoundError("Debit not found")
        db.session.delete(debit)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Deleted debit %s", debit_id)


def pay_debit(debit_id: int, amount_cents) -> Debit:
    """
    Record a payment against a debit.

    Raises:
        ValidationError: amount missing / not a positive integer
        NotFoundError: debit does not exist
        ExceedsTotalError: paid + amount would exceed the total; details carry
            the largest acceptable payment (total - paid)
    """
    patch = {"amount_cents": amount_cents}
    enforce_rules_payment(patch)

    def _op():
        debit = lock_for_update(db.session.query(Debit).filter_by(id=debit_id)).first()
        if not debit:
            raise NotFoundError("Debit not found")

        new_paid = debit.paid_amount_cents + patch["amount_cents"]
        if new_paid > debit.total_amount_cents:
            remaining = debit.remaining_cents
            raise ExceedsTotalError(
                f"Payment amount would exceed total amount. Maximum payment: {remaining}",
                details={"max_payment_cents": remaining},
            )

        debit.paid_amount_cents = new_paid
        debit.sync_status(now=utcnow())
        db.session.commit()
        return debit

    debit = run_with_retry(_op)
    current_app.logger.info(
        "Payment of %s cents on debit %s (status=%s)", patch["amount_cents"], debit.id, debit.status
    )
    return debit


def remove_debit_item(sell_history_id) -> Debit | None:
    """
    Detach a sale from its debit and shrink the debit's total.

    Removing the last item deletes the debit (returns None). A removal that
    would leave more paid than owed is refused.
    """
    sell_history_id = coerce_positive_int("sell_history_id", sell_history_id)

    def _op():
        item = db.session.query(DebitItem).filter_by(sell_history_id=sell_history_id).first()
        if not item:
            raise NotFoundError("Debit item not found")

        debit = lock_for_update(db.session.query(Debit).filter_by(id=item.debit_id)).first()
        remaining_items = [i for i in debit.items if i.id != item.id]

        if not remaining_items:
            db.session.delete(debit)
            db.session.commit()
            return None

        new_total = sum(i.amount_cents for i in remaining_items)
        if debit.paid_amount_cents > new_total:
            raise ExceedsTotalError(
                "Paid amount would exceed the debit total after removing this item",
                details={
                    "paid_amount_cents": debit.paid_amount_cents,
                    "remaining_total_cents": new_total,
                },
            )

        debit.items.remove(item)
        debit.total_amount_cents = new_total
        debit.sync_status(now=utcnow())
        db.session.commit()
        return debit

    debit = run_with_retry(_op)
    current_app.logger.info("Removed sell history %s from its debit", sell_history_id)
    return debit
