from __future__ import annotations

from datetime import datetime

from ..extensions import db
from app.time_utils import to_utc_z


DEBIT_STATUS_PENDING = "PENDING"
DEBIT_STATUS_PARTIAL = "PARTIAL"
DEBIT_STATUS_PAID = "PAID"

DEBIT_STATUSES = (DEBIT_STATUS_PENDING, DEBIT_STATUS_PARTIAL, DEBIT_STATUS_PAID)


def derive_debit_status(paid_amount_cents: int, total_amount_cents: int) -> str:
    """
    Status of a debit as a pure function of its amounts.

    PENDING while nothing is paid, PAID once paid == total, PARTIAL in between.
    """
    if total_amount_cents <= 0:
        raise ValueError("Debit total must be positive")
    if paid_amount_cents < 0 or paid_amount_cents > total_amount_cents:
        raise ValueError("Paid amount must be between 0 and the debit total")
    if paid_amount_cents == total_amount_cents:
        return DEBIT_STATUS_PAID
    if paid_amount_cents == 0:
        return DEBIT_STATUS_PENDING
    return DEBIT_STATUS_PARTIAL


class Debit(db.Model):
    """
    A customer's deferred-payment obligation over one or more prior sales.

    status is denormalized for filtering; it is never written directly,
    only through sync_status() after paid/total change.
    """
    __tablename__ = "debits"
    __table_args__ = (
        db.CheckConstraint("total_amount_cents > 0", name="ck_debits_total_positive"),
        db.CheckConstraint(
            "paid_amount_cents >= 0 AND paid_amount_cents <= total_amount_cents",
            name="ck_debits_paid_within_total",
        ),
        db.Index("ix_debits_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=DEBIT_STATUS_PENDING, index=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "DebitItem",
        back_populates="debit",
        cascade="all, delete-orphan",
        order_by="DebitItem.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Debit id={self.id} status={self.status} paid={self.paid_amount_cents}/{self.total_amount_cents}>"

    @property
    def remaining_cents(self) -> int:
        return self.total_amount_cents - (self.paid_amount_cents or 0)

    def sync_status(self, now: datetime) -> None:
        """Recompute status; paid_at is stamped once, on the transition to PAID."""
        self.status = derive_debit_status(self.paid_amount_cents or 0, self.total_amount_cents)
        if self.status == DEBIT_STATUS_PAID and self.paid_at is None:
            self.paid_at = now

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_name": self.customer_name,
            "notes": self.notes,
            "total_amount_cents": self.total_amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "remaining_cents": self.remaining_cents,
            "status": self.status,
            "paid_at": to_utc_z(self.paid_at),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class DebitItem(db.Model):
    """Links one sell_history row (at most once) to a debit, for part or all of its price."""
    __tablename__ = "debit_items"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_debit_items_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    debit_id = db.Column(db.Integer, db.ForeignKey("debits.id", ondelete="CASCADE"), nullable=False, index=True)
    sell_history_id = db.Column(
        db.Integer,
        db.ForeignKey("sell_history.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    amount_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    debit = db.relationship("Debit", back_populates="items")
    sell_history = db.relationship("SellHistory", back_populates="debit_item")

    def __repr__(self) -> str:
        return f"<DebitItem id={self.id} debit_id={self.debit_id} sell_history_id={self.sell_history_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "debit_id": self.debit_id,
            "sell_history_id": self.sell_history_id,
            "amount_cents": self.amount_cents,
            "created_at": to_utc_z(self.created_at),
            "sell_history": self.sell_history.to_dict(include_owner=True) if self.sell_history else None,
        }
