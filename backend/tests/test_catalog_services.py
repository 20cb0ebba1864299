"""
Tests for categories, products and services CRUD.
"""

import pytest
from sqlalchemy import inspect

from app.errors import ConflictError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Category, Product, SellHistory, Service, Transaction
from app.services import (
    categories_service,
    debit_service,
    products_service,
    sales_service,
    services_service,
)


class TestCategories:

    def test_create_and_rename(self, db_session):
        category = categories_service.create_category({"name": "  Snacks  "})
        assert category.name == "Snacks"

        renamed = categories_service.update_category(category.id, {"name": "Sweets"})
        assert renamed.name == "Sweets"

    def test_duplicate_name(self, db_session, category):
        with pytest.raises(ConflictError):
            categories_service.create_category({"name": category.name})

    def test_blank_name(self, db_session):
        with pytest.raises(ValidationError):
            categories_service.create_category({"name": "   "})

    def test_name_too_long(self, db_session):
        with pytest.raises(ValidationError):
            categories_service.create_category({"name": "x" * 101})

    def test_delete_cascades_products(self, db_session, category, product):
        sales_service.sell_product(product.id, 1, 8)

        categories_service.delete_category(category.id)

        assert db.session.get(Category, category.id) is None
        assert db.session.query(Product).count() == 0
        assert db.session.query(SellHistory).count() == 0

    def test_delete_refused_while_sales_in_debit(self, db_session, category, product):
        sales_service.sell_product(product.id, 1, 8)
        history = db.session.query(SellHistory).one()
        debit_service.create_debit({"items": [{"sell_history_id": history.id, "amount_cents": 8}]})

        with pytest.raises(ConflictError):
            categories_service.delete_category(category.id)

        assert db.session.get(Category, category.id) is not None
        assert db.session.get(Product, product.id) is not None

    def test_to_dict_counts_products(self, db_session, category, product, other_product):
        data = categories_service.get_category(category.id).to_dict(include_counts=True)
        assert data["product_count"] == 2


class TestProducts:

    def test_create_product(self, db_session, category):
        product = products_service.create_product({
            "name": "Chips",
            "category_id": category.id,
            "quantity": 12,
            "initial_price_cents": 40,
            "selling_price_cents": 70,
        })

        assert product.total_sold == 0
        assert product.revenue_cents == 0
        assert product.profit_cents == 0
        assert product.category_id == category.id

    def test_create_requires_fields(self, db_session):
        with pytest.raises(ValidationError) as exc:
            products_service.create_product({"name": "Chips"})
        assert "initial_price_cents" in str(exc.value)

    def test_create_unknown_category(self, db_session):
        with pytest.raises(NotFoundError):
            products_service.create_product({
                "name": "Chips",
                "category_id": 9999,
                "quantity": 1,
                "initial_price_cents": 40,
                "selling_price_cents": 70,
            })

    @pytest.mark.parametrize("field, value", [
        ("quantity", -1),
        ("initial_price_cents", 0),
        ("selling_price_cents", "12.5"),
    ])
    def test_create_invalid_values(self, db_session, field, value):
        payload = {
            "name": "Chips",
            "quantity": 1,
            "initial_price_cents": 40,
            "selling_price_cents": 70,
        }
        payload[field] = value
        with pytest.raises(ValidationError):
            products_service.create_product(payload)

    def test_counters_not_writable(self, db_session, product):
        with pytest.raises(ValidationError):
            products_service.update_product(product.id, {"revenue_cents": 1000})

    def test_initial_price_change_recomputes_profit(self, db_session, product):
        sales_service.sell_product(product.id, 3, 8)

        updated = products_service.update_product(product.id, {"initial_price_cents": 6})

        assert updated.revenue_cents == 24
        assert updated.profit_cents == 24 - 18

    def test_restock(self, db_session, product):
        updated = products_service.update_product(product.id, {"quantity": 50})
        assert updated.quantity == 50

    def test_list_paginated(self, db_session, product, other_product):
        result = products_service.list_products(page=1, per_page=1)
        assert result["count"] == 1
        assert result["pagination"]["total"] == 2
        assert result["pagination"]["has_next"] is True

    def test_list_by_category(self, db_session, product):
        other = categories_service.create_category({"name": "Empty"})
        assert products_service.list_products(category_id=other.id)["count"] == 0
        assert products_service.list_products(category_id=product.category_id)["count"] == 1

    def test_delete_refreshes_transaction(self, db_session, product, other_product):
        transaction = sales_service.bulk_sell([
            {"product_id": product.id, "amount": 1, "sold_price_cents": 8},
            {"product_id": other_product.id, "amount": 1, "sold_price_cents": 150},
        ])

        products_service.delete_product(product.id)

        fresh = db.session.get(Transaction, transaction.id)
        assert fresh.total_revenue_cents == 150
        assert fresh.total_profit_cents == 50

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            products_service.delete_product(9999)


class TestServices:

    def test_create_and_update(self, db_session):
        service = services_service.create_service({"name": "Lamination", "default_price_cents": 150})
        assert service.total_sold == 0

        updated = services_service.update_service(service.id, {"description": "A4 sheet"})
        assert updated.description == "A4 sheet"

    def test_duplicate_name(self, db_session, service):
        with pytest.raises(ConflictError):
            services_service.create_service({"name": service.name, "default_price_cents": 10})

    def test_delete_removes_history(self, db_session, service):
        sales_service.sell_service(service.id, 2, 10)

        services_service.delete_service(service.id)

        assert db.session.get(Service, service.id) is None
        assert db.session.query(SellHistory).count() == 0

    def test_to_dict_history_limit(self, db_session, service):
        for _ in range(3):
            sales_service.sell_service(service.id, 1, 10)

        data = services_service.get_service(service.id).to_dict(include_history=True, history_limit=2)
        assert len(data["sell_history"]) == 2
        assert data["sell_history_count"] == 3

    def test_listing_does_not_load_full_history(self, db_session, service):
        for _ in range(3):
            sales_service.sell_service(service.id, 1, 10)
        db.session.expire_all()

        fresh = services_service.get_service(service.id)
        fresh.to_dict(include_history=True, history_limit=2)

        assert "sell_history" in inspect(fresh).unloaded
