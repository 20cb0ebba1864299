from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


# Suggested categories for daily expenses; the column itself is free text.
EXPENSE_CATEGORIES = (
    "Utilities",
    "Rent",
    "Transportation",
    "Office Supplies",
    "Maintenance",
    "Other",
)


class DailyExpense(db.Model):
    __tablename__ = "daily_expenses"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_daily_expenses_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(64), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)

    # Business date of the expense (defaults to now); list filters use this
    expense_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<DailyExpense id={self.id} amount_cents={self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "notes": self.notes,
            "expense_date": to_utc_z(self.expense_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SupplyExpense(db.Model):
    __tablename__ = "supply_expenses"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_supply_expenses_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=True)
    unit_price_cents = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<SupplyExpense id={self.id} amount_cents={self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "supplier": self.supplier,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
