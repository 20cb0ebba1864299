# Overview: Service-layer read-only analytics over products, services, sales and expenses.

from __future__ import annotations

from sqlalchemy import func

from app.errors import NotFoundError, ValidationError
from app.extensions import db
from app.models import (
    Category,
    DailyExpense,
    Debit,
    Product,
    SellHistory,
    Service,
    SupplyExpense,
)
from app.models.debits import DEBIT_STATUS_PAID
from app.time_utils import parse_date_range, to_utc_z


def profit_margin_pct(revenue_cents: int, profit_cents: int) -> float:
    if not revenue_cents:
        return 0.0
    return round(profit_cents / revenue_cents * 100.0, 2)


def _sum(column) -> int:
    return int(db.session.query(func.coalesce(func.sum(column), 0)).scalar() or 0)


def overview_report() -> dict:
    """
    Business-wide totals.

    Product profit is the stored column; services have no cost, so their
    revenue counts in full towards profit.
    """
    product_revenue = _sum(Product.revenue_cents)
    product_profit = _sum(Product.profit_cents)
    service_revenue = _sum(Service.revenue_cents)

    total_revenue = product_revenue + service_revenue
    total_profit = product_profit + service_revenue

    daily_expenses = _sum(DailyExpense.amount_cents)
    supply_expenses = _sum(SupplyExpense.amount_cents)
    total_expenses = daily_expenses + supply_expenses

    outstanding = int(
        db.session.query(
            func.coalesce(func.sum(Debit.total_amount_cents - Debit.paid_amount_cents), 0)
        ).filter(Debit.status != DEBIT_STATUS_PAID).scalar() or 0
    )

    return {
        "total_categories": db.session.query(Category).count(),
        "total_products": db.session.query(Product).count(),
        "total_services": db.session.query(Service).count(),
        "product_revenue_cents": product_revenue,
        "product_profit_cents": product_profit,
        "service_revenue_cents": service_revenue,
        "total_revenue_cents": total_revenue,
        "total_profit_cents": total_profit,
        "profit_margin_pct": profit_margin_pct(total_revenue, total_profit),
        "daily_expenses_cents": daily_expenses,
        "supply_expenses_cents": supply_expenses,
        "total_expenses_cents": total_expenses,
        "net_profit_cents": total_profit - total_expenses,
        "outstanding_debits_cents": outstanding,
    }


def category_report(category_id: int) -> dict:
    category = db.session.query(Category).filter_by(id=category_id).first()
    if not category:
        raise NotFoundError("Category not found")

    row = db.session.query(
        func.count(Product.id).label("product_count"),
        func.coalesce(func.sum(Product.revenue_cents), 0).label("revenue_cents"),
        func.coalesce(func.sum(Product.profit_cents), 0).label("profit_cents"),
        func.coalesce(func.sum(Product.total_sold), 0).label("items_sold"),
    ).filter(Product.category_id == category_id).one()

    revenue = int(row.revenue_cents or 0)
    profit = int(row.profit_cents or 0)
    return {
        "category": category.to_dict(),
        "product_count": int(row.product_count or 0),
        "revenue_cents": revenue,
        "profit_cents": profit,
        "items_sold": int(row.items_sold or 0),
        "profit_margin_pct": profit_margin_pct(revenue, profit),
    }


def sales_report(
    *,
    start: str | None,
    end: str | None,
    group_by: str = "day",
) -> dict:
    """Sell history bucketed by day, week or month (product and service sales together)."""
    start_dt, end_dt = parse_date_range(start, end)

    if group_by == "day":
        period_expr = func.strftime("%Y-%m-%d", SellHistory.created_at)
    elif group_by == "week":
        period_expr = func.strftime("%Y-W%W", SellHistory.created_at)
    elif group_by == "month":
        period_expr = func.strftime("%Y-%m", SellHistory.created_at)
    else:
        raise ValidationError("group_by must be day, week, or month")

    cost_expr = func.coalesce(SellHistory.initial_price_cents, 0) * SellHistory.amount

    query = db.session.query(
        period_expr.label("period"),
        func.count(SellHistory.id).label("sales_count"),
        func.coalesce(func.sum(SellHistory.amount), 0).label("items_sold"),
        func.coalesce(func.sum(SellHistory.total_price_cents), 0).label("revenue_cents"),
        func.coalesce(func.sum(SellHistory.total_price_cents - cost_expr), 0).label("profit_cents"),
    )

    if start_dt:
        query = query.filter(SellHistory.created_at >= start_dt)
    if end_dt:
        query = query.filter(SellHistory.created_at <= end_dt)

    rows = query.group_by("period").order_by("period").all()
    return {
        "group_by": group_by,
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "rows": [
            {
                "period": row.period,
                "sales_count": int(row.sales_count or 0),
                "items_sold": int(row.items_sold or 0),
                "revenue_cents": int(row.revenue_cents or 0),
                "profit_cents": int(row.profit_cents or 0),
            }
            for row in rows
        ],
    }
