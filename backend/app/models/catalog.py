from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z
from .sales import SellHistory


class Category(db.Model):
    """Grouping for products. Deleting a category deletes its products."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    products = db.relationship(
        "Product",
        back_populates="category",
        cascade="all",
        order_by="Product.name",
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self, include_counts: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_counts:
            data["product_count"] = len(self.products)
        return data


class Product(db.Model):
    """
    Stocked item with running sales counters.

    COUNTERS:
    - total_sold and revenue_cents are the source of truth, changed only by
      sells and sell-history corrections.
    - profit_cents is stored but always recomputed from them:
      profit = revenue - initial_price * total_sold
    - selling_price_cents is the suggested price; the price actually charged
      lives on each SellHistory row.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_nonneg"),
        db.CheckConstraint("total_sold >= 0", name="ck_products_total_sold_nonneg"),
        db.Index("ix_products_category_name", "category_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    initial_price_cents = db.Column(db.Integer, nullable=False)
    selling_price_cents = db.Column(db.Integer, nullable=False)

    total_sold = db.Column(db.Integer, nullable=False, default=0)
    revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    profit_cents = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", back_populates="products")
    sell_history = db.relationship(
        "SellHistory",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by=lambda: [SellHistory.created_at.desc(), SellHistory.id.desc()],
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} quantity={self.quantity}>"

    def recompute_profit(self) -> None:
        self.profit_cents = (self.revenue_cents or 0) - self.initial_price_cents * (self.total_sold or 0)

    def to_dict(self, include_category: bool = False, include_history: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "quantity": self.quantity,
            "initial_price_cents": self.initial_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "total_sold": self.total_sold,
            "revenue_cents": self.revenue_cents,
            "profit_cents": self.profit_cents,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_category:
            data["category"] = self.category.to_dict() if self.category else None
        if include_history:
            data["sell_history"] = [h.to_dict() for h in self.sell_history]
        return data


class Service(db.Model):
    """
    Sellable service with unlimited availability.

    Services carry no cost, so no profit column is stored: reporting treats
    service profit as equal to revenue.
    """
    __tablename__ = "services"
    __table_args__ = (
        db.CheckConstraint("total_sold >= 0", name="ck_services_total_sold_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    default_price_cents = db.Column(db.Integer, nullable=False)

    total_sold = db.Column(db.Integer, nullable=False, default=0)
    revenue_cents = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    sell_history = db.relationship(
        "SellHistory",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by=lambda: [SellHistory.created_at.desc(), SellHistory.id.desc()],
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Service id={self.id} name={self.name!r}>"

    def to_dict(self, include_history: bool = False, history_limit: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "default_price_cents": self.default_price_cents,
            "total_sold": self.total_sold,
            "revenue_cents": self.revenue_cents,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_history:
            if history_limit is None:
                rows = self.sell_history
                count = len(rows)
            else:
                # Listing pages read only the newest rows, not the whole relationship
                query = db.session.query(SellHistory).filter(SellHistory.service_id == self.id)
                rows = (
                    query.order_by(SellHistory.created_at.desc(), SellHistory.id.desc())
                    .limit(history_limit)
                    .all()
                )
                count = query.count()
            data["sell_history"] = [h.to_dict() for h in rows]
            data["sell_history_count"] = count
        return data
