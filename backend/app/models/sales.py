from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


class Transaction(db.Model):
    """
    One multi-product (quick sell) checkout.

    Totals are derived from the attached sell_history rows and are
    recomputed whenever one of those rows is corrected or deleted.
    """
    __tablename__ = "transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    total_revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    total_profit_cents = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    sell_history = db.relationship(
        "SellHistory",
        back_populates="transaction",
        order_by="SellHistory.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} total_revenue_cents={self.total_revenue_cents}>"

    def to_dict(self, include_history: bool = False) -> dict:
        data = {
            "id": self.id,
            "total_revenue_cents": self.total_revenue_cents,
            "total_profit_cents": self.total_profit_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_history:
            data["sell_history"] = [h.to_dict(include_owner=True) for h in self.sell_history]
        return data


class SellHistory(db.Model):
    """
    Record of one sale of a product or a service.

    INVARIANTS:
    - Exactly one of product_id / service_id is set (enforced by a check constraint).
    - total_price_cents = amount * sold_price_cents.
    - initial_price_cents is the product's unit cost at sale time; it is NULL
      for service sales, which is how shared history queries tell them apart.
    - Rows are only changed by the explicit correction flow in
      sell_history_service (update / delete), which re-derives the owner's counters.
    """
    __tablename__ = "sell_history"
    __table_args__ = (
        db.CheckConstraint(
            "(product_id IS NULL) <> (service_id IS NULL)",
            name="ck_sell_history_single_owner",
        ),
        db.CheckConstraint("amount > 0", name="ck_sell_history_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id", ondelete="CASCADE"), nullable=True, index=True)
    transaction_id = db.Column(
        db.Integer,
        db.ForeignKey("transactions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    amount = db.Column(db.Integer, nullable=False)
    sold_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    # Cost snapshot (product sales only)
    initial_price_cents = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product", back_populates="sell_history")
    service = db.relationship("Service", back_populates="sell_history")
    transaction = db.relationship("Transaction", back_populates="sell_history")
    debit_item = db.relationship("DebitItem", back_populates="sell_history", uselist=False)

    def __repr__(self) -> str:
        owner = f"product_id={self.product_id}" if self.product_id else f"service_id={self.service_id}"
        return f"<SellHistory id={self.id} {owner} amount={self.amount}>"

    @property
    def profit_cents(self) -> int:
        """Margin of this sale; services have no cost so their margin is the whole price."""
        cost = (self.initial_price_cents or 0) * self.amount
        return self.total_price_cents - cost

    def to_dict(self, include_owner: bool = False, include_links: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "service_id": self.service_id,
            "transaction_id": self.transaction_id,
            "amount": self.amount,
            "sold_price_cents": self.sold_price_cents,
            "total_price_cents": self.total_price_cents,
            "initial_price_cents": self.initial_price_cents,
            "debit_id": self.debit_item.debit_id if self.debit_item else None,
            "created_at": to_utc_z(self.created_at),
        }
        if include_owner:
            data["product"] = self.product.to_dict(include_category=True) if self.product else None
            data["service"] = self.service.to_dict() if self.service else None
        if include_links:
            data["transaction"] = self.transaction.to_dict() if self.transaction else None
            data["debit"] = self.debit_item.debit.to_dict() if self.debit_item else None
        return data
