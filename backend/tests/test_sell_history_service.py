"""
Tests for sell history corrections and deletions.

Editing or deleting a recorded sale must keep the owner's counters and
the quick-sell transaction totals consistent.
"""

import pytest

from app.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Product, SellHistory, Service, Transaction
from app.services import debit_service, sales_service, sell_history_service


def _only_history(**filters) -> SellHistory:
    return db.session.query(SellHistory).filter_by(**filters).one()


class TestListSellHistory:

    def test_filters_by_owner(self, db_session, product, service):
        sales_service.sell_product(product.id, 1, 8)
        sales_service.sell_service(service.id, 2, 10)

        rows = sell_history_service.list_sell_history(product_id=product.id)
        assert [r.product_id for r in rows] == [product.id]

        rows = sell_history_service.list_sell_history(service_id=service.id)
        assert [r.service_id for r in rows] == [service.id]

        assert len(sell_history_service.list_sell_history()) == 2

    def test_limit(self, db_session, product):
        for _ in range(3):
            sales_service.sell_product(product.id, 1, 8)
        assert len(sell_history_service.list_sell_history(limit=2)) == 2

    def test_date_range(self, db_session, product):
        sales_service.sell_product(product.id, 1, 8)
        assert sell_history_service.list_sell_history(start="2000-01-01", end="2000-12-31") == []

    def test_bad_date(self, db_session):
        with pytest.raises(ValidationError):
            sell_history_service.list_sell_history(start="yesterday")

    def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            sell_history_service.get_sell_history(9999)


class TestUpdateSellHistory:

    def test_correct_product_sale(self, db_session, product):
        sales_service.sell_product(product.id, 3, 8)
        history = _only_history(product_id=product.id)

        sell_history_service.update_sell_history(history.id, {"amount": 5, "sold_price_cents": 7})

        fresh = db.session.get(Product, product.id)
        assert fresh.quantity == 5
        assert fresh.total_sold == 5
        assert fresh.revenue_cents == 35
        assert fresh.profit_cents == 35 - 25
        assert db.session.get(SellHistory, history.id).total_price_cents == 35

    def test_increase_needs_stock(self, db_session, product):
        sales_service.sell_product(product.id, 8, 8)
        history = _only_history(product_id=product.id)

        with pytest.raises(InsufficientStockError):
            sell_history_service.update_sell_history(history.id, {"amount": 11})

        fresh = db.session.get(Product, product.id)
        assert fresh.quantity == 2
        assert db.session.get(SellHistory, history.id).amount == 8

    def test_correct_service_sale(self, db_session, service):
        sales_service.sell_service(service.id, 2, 10)
        history = _only_history(service_id=service.id)

        sell_history_service.update_sell_history(history.id, {"amount": 1})

        fresh = db.session.get(Service, service.id)
        assert fresh.total_sold == 1
        assert fresh.revenue_cents == 10

    def test_correction_refreshes_transaction(self, db_session, product, other_product):
        transaction = sales_service.bulk_sell([
            {"product_id": product.id, "amount": 2, "sold_price_cents": 8},
            {"product_id": other_product.id, "amount": 1, "sold_price_cents": 150},
        ])
        history = _only_history(product_id=product.id)

        sell_history_service.update_sell_history(history.id, {"sold_price_cents": 10})

        fresh = db.session.get(Transaction, transaction.id)
        assert fresh.total_revenue_cents == 20 + 150
        assert fresh.total_profit_cents == (20 - 10) + 50

    def test_cannot_drop_below_debit_claim(self, db_session, service):
        sales_service.sell_service(service.id, 10, 10)
        history = _only_history(service_id=service.id)
        debit_service.create_debit({"items": [{"sell_history_id": history.id, "amount_cents": 80}]})

        with pytest.raises(ConflictError):
            sell_history_service.update_sell_history(history.id, {"amount": 7})

        assert db.session.get(Service, service.id).revenue_cents == 100

    def test_unknown_field_rejected(self, db_session, product):
        sales_service.sell_product(product.id, 1, 8)
        history = _only_history(product_id=product.id)

        with pytest.raises(ValidationError):
            sell_history_service.update_sell_history(history.id, {"total_price_cents": 1})


class TestDeleteSellHistory:

    def test_delete_restores_product(self, db_session, product):
        sales_service.sell_product(product.id, 3, 8)
        sales_service.sell_product(product.id, 2, 9)
        first = (
            db.session.query(SellHistory)
            .filter_by(product_id=product.id, amount=3)
            .one()
        )

        sell_history_service.delete_sell_history(first.id)

        fresh = db.session.get(Product, product.id)
        assert fresh.quantity == 8
        assert fresh.total_sold == 2
        assert fresh.revenue_cents == 18
        assert fresh.profit_cents == 8

    def test_delete_last_row_removes_transaction(self, db_session, product):
        transaction = sales_service.bulk_sell([
            {"product_id": product.id, "amount": 2, "sold_price_cents": 8},
        ])
        history = _only_history(product_id=product.id)

        sell_history_service.delete_sell_history(history.id)

        assert db.session.get(Transaction, transaction.id) is None
        assert db.session.get(Product, product.id).quantity == 10

    def test_delete_rejected_while_in_debit(self, db_session, service):
        sales_service.sell_service(service.id, 1, 10)
        history = _only_history(service_id=service.id)
        debit_service.create_debit({"items": [{"sell_history_id": history.id, "amount_cents": 10}]})

        with pytest.raises(ConflictError):
            sell_history_service.delete_sell_history(history.id)

        assert db.session.get(SellHistory, history.id) is not None
        assert db.session.get(Service, service.id).total_sold == 1
