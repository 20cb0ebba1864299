# Overview: Service-layer operations for daily and supply expenses.

from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import DailyExpense, SupplyExpense
from ..validation import ModelValidationPolicy, enforce_rules_expense, validate_payload
from app.time_utils import parse_date_range, utcnow
from .concurrency import run_with_retry

DAILY_EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount_cents", "category", "notes", "expense_date"},
    required_on_create={"description", "amount_cents"},
)

SUPPLY_EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount_cents", "supplier", "quantity", "unit_price_cents", "notes"},
    required_on_create={"description", "amount_cents"},
)


# =============================================================================
# DAILY EXPENSES
# =============================================================================

def list_daily_expenses(
    *,
    category: str | None = None,
    start: str | None = None,
    end: str | None = None,
) -> list[DailyExpense]:
    """Daily expenses, newest expense_date first; the date range applies to expense_date."""
    start_dt, end_dt = parse_date_range(start, end)

    query = db.session.query(DailyExpense)
    if category:
        query = query.filter(DailyExpense.category == category)
    if start_dt:
        query = query.filter(DailyExpense.expense_date >= start_dt)
    if end_dt:
        query = query.filter(DailyExpense.expense_date <= end_dt)
    return query.order_by(DailyExpense.expense_date.desc(), DailyExpense.id.desc()).all()


def get_daily_expense(expense_id: int) -> DailyExpense:
    expense = db.session.query(DailyExpense).filter_by(id=expense_id).first()
    if not expense:
        raise NotFoundError("Daily expense not found")
    return expense


def create_daily_expense(payload: dict) -> DailyExpense:
    patch = validate_payload(model=DailyExpense, payload=payload, policy=DAILY_EXPENSE_POLICY, partial=False)
    enforce_rules_expense(patch)
    if patch.get("expense_date") is None:
        patch["expense_date"] = utcnow()

    def _op():
        expense = DailyExpense(**patch)
        db.session.add(expense)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def update_daily_expense(expense_id: int, payload: dict) -> DailyExpense:
    patch = validate_payload(model=DailyExpense, payload=payload, policy=DAILY_EXPENSE_POLICY, partial=True)
    enforce_rules_expense(patch)

    def _op():
        expense = get_daily_expense(expense_id)
        for key, value in patch.items():
            setattr(expense, key, value)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def delete_daily_expense(expense_id: int) -> None:
    def _op():
        db.session.delete(get_daily_expense(expense_id))
        db.session.commit()

    run_with_retry(_op)


# =============================================================================
# SUPPLY EXPENSES
# =============================================================================

def list_supply_expenses(*, start: str | None = None, end: str | None = None) -> list[SupplyExpense]:
    start_dt, end_dt = parse_date_range(start, end)

    query = db.session.query(SupplyExpense)
    if start_dt:
        query = query.filter(SupplyExpense.created_at >= start_dt)
    if end_dt:
        query = query.filter(SupplyExpense.created_at <= end_dt)
    return query.order_by(SupplyExpense.created_at.desc(), SupplyExpense.id.desc()).all()


def get_supply_expense(expense_id: int) -> SupplyExpense:
    expense = db.session.query(SupplyExpense).filter_by(id=expense_id).first()
    if not expense:
        raise NotFoundError("Supply expense not found")
    return expense


def create_supply_expense(payload: dict) -> SupplyExpense:
    patch = validate_payload(model=SupplyExpense, payload=payload, policy=SUPPLY_EXPENSE_POLICY, partial=False)
    enforce_rules_expense(patch)

    def _op():
        expense = SupplyExpense(**patch)
        db.session.add(expense)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def update_supply_expense(expense_id: int, payload: dict) -> SupplyExpense:
    patch = validate_payload(model=SupplyExpense, payload=payload, policy=SUPPLY_EXPENSE_POLICY, partial=True)
    enforce_rules_expense(patch)

    def _op():
        expense = get_supply_expense(expense_id)
        for key, value in patch.items():
            setattr(expense, key, value)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def delete_supply_expense(expense_id: int) -> None:
    def _op():
        db.session.delete(get_supply_expense(expense_id))
        db.session.commit()

    run_with_retry(_op)
