"""
Tests for single product / service sells.

Covers the post-state arithmetic of a sell and the all-or-nothing
behaviour when a sell is rejected.
"""

import pytest

from app.errors import InsufficientStockError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Product, SellHistory, Service
from app.services import sales_service


def _history_count(**filters) -> int:
    return db.session.query(SellHistory).filter_by(**filters).count()


class TestSellProduct:
    """sell_product updates stock and counters in one commit."""

    def test_sell_updates_counters(self, db_session, product):
        result = sales_service.sell_product(product.id, 3, 8)

        assert result.quantity == 7
        assert result.total_sold == 3
        assert result.revenue_cents == 24
        assert result.profit_cents == 9

        history = result.sell_history
        assert len(history) == 1
        assert history[0].amount == 3
        assert history[0].sold_price_cents == 8
        assert history[0].total_price_cents == 24
        assert history[0].initial_price_cents == 5
        assert history[0].profit_cents == 9

    def test_insufficient_stock_leaves_product_unchanged(self, db_session, product):
        sales_service.sell_product(product.id, 3, 8)

        with pytest.raises(InsufficientStockError) as exc:
            sales_service.sell_product(product.id, 8, 8)

        assert exc.value.details["available_quantity"] == 7
        assert exc.value.details["requested_quantity"] == 8

        fresh = db.session.get(Product, product.id)
        assert fresh.quantity == 7
        assert fresh.total_sold == 3
        assert fresh.revenue_cents == 24
        assert fresh.profit_cents == 9
        assert _history_count(product_id=product.id) == 1

    def test_sell_entire_stock(self, db_session, product):
        result = sales_service.sell_product(product.id, 10, 6)
        assert result.quantity == 0
        assert result.profit_cents == 10

    def test_sell_below_cost_gives_negative_profit(self, db_session, product):
        result = sales_service.sell_product(product.id, 2, 3)
        assert result.revenue_cents == 6
        assert result.profit_cents == -4

    def test_history_is_newest_first(self, db_session, product):
        sales_service.sell_product(product.id, 1, 8)
        result = sales_service.sell_product(product.id, 2, 9)
        assert [h.amount for h in result.sell_history] == [2, 1]

    def test_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.sell_product(9999, 1, 8)

    @pytest.mark.parametrize("amount, price", [
        (0, 8),
        (-1, 8),
        (1, 0),
        (1.5, 8),
        (None, 8),
        (1, None),
        (True, 8),
    ])
    def test_invalid_input_rejected(self, db_session, product, amount, price):
        with pytest.raises(ValidationError):
            sales_service.sell_product(product.id, amount, price)

        fresh = db.session.get(Product, product.id)
        assert fresh.quantity == 10
        assert _history_count(product_id=product.id) == 0

    def test_numeric_strings_accepted(self, db_session, product):
        result = sales_service.sell_product(product.id, "2", "8")
        assert result.quantity == 8
        assert result.revenue_cents == 16


class TestSellService:
    """Services have no stock and no stored profit."""

    def test_sell_service_updates_counters(self, db_session, service):
        result = sales_service.sell_service(service.id, 5, 12)

        assert result.total_sold == 5
        assert result.revenue_cents == 60

        history = result.sell_history
        assert len(history) == 1
        assert history[0].product_id is None
        assert history[0].initial_price_cents is None
        assert history[0].total_price_cents == 60
        assert history[0].profit_cents == 60

    def test_sell_service_large_amount(self, db_session, service):
        result = sales_service.sell_service(service.id, 1000, 10)
        assert result.total_sold == 1000

    def test_missing_service(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.sell_service(9999, 1, 10)

    def test_invalid_amount(self, db_session, service):
        with pytest.raises(ValidationError):
            sales_service.sell_service(service.id, 0, 10)

        fresh = db.session.get(Service, service.id)
        assert fresh.total_sold == 0
        assert _history_count(service_id=service.id) == 0

    def test_service_amount_not_capped_by_stock_limit(self, db_session, service):
        result = sales_service.sell_service(service.id, 2_000_000, 1)
        assert result.total_sold == 2_000_000
        assert result.revenue_cents == 2_000_000

    def test_product_amount_still_capped(self, db_session, product):
        with pytest.raises(ValidationError):
            sales_service.sell_product(product.id, 2_000_000, 1)
