"""
Tests for debits: creation over prior sales, payments and the
PENDING -> PARTIAL -> PAID state machine.
"""

import pytest

from app.errors import ConflictError, ExceedsTotalError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Debit, DebitItem, SellHistory
from app.models.debits import derive_debit_status
from app.services import debit_service, sales_service


def _latest_history_id(**filters) -> int:
    return (
        db.session.query(SellHistory)
        .filter_by(**filters)
        .order_by(SellHistory.id.desc())
        .first()
        .id
    )


@pytest.fixture
def service_sale(db_session, service):
    """A service sale worth 100 cents (10 x 10)."""
    sales_service.sell_service(service.id, 10, 10)
    return _latest_history_id(service_id=service.id)


@pytest.fixture
def product_sale(db_session, product):
    """A product sale worth 24 cents (3 x 8)."""
    sales_service.sell_product(product.id, 3, 8)
    return _latest_history_id(product_id=product.id)


@pytest.fixture
def debit(db_session, service_sale):
    return debit_service.create_debit({
        "customer_name": "Ana",
        "items": [{"sell_history_id": service_sale, "amount_cents": 100}],
    })


class TestDeriveDebitStatus:

    @pytest.mark.parametrize("paid, total, expected", [
        (0, 100, "PENDING"),
        (1, 100, "PARTIAL"),
        (99, 100, "PARTIAL"),
        (100, 100, "PAID"),
    ])
    def test_status_from_amounts(self, paid, total, expected):
        assert derive_debit_status(paid, total) == expected

    @pytest.mark.parametrize("paid, total", [(0, 0), (101, 100), (-1, 100)])
    def test_invalid_amounts(self, paid, total):
        with pytest.raises(ValueError):
            derive_debit_status(paid, total)


class TestPayDebit:

    def test_partial_then_full_payment(self, db_session, debit):
        result = debit_service.pay_debit(debit.id, 40)
        assert result.paid_amount_cents == 40
        assert result.status == "PARTIAL"
        assert result.paid_at is None

        result = debit_service.pay_debit(debit.id, 60)
        assert result.paid_amount_cents == 100
        assert result.status == "PAID"
        assert result.paid_at is not None

    def test_overpayment_rejected(self, db_session, debit):
        debit_service.pay_debit(debit.id, 100)
        paid_at = db.session.get(Debit, debit.id).paid_at

        with pytest.raises(ExceedsTotalError) as exc:
            debit_service.pay_debit(debit.id, 1)

        assert exc.value.details["max_payment_cents"] == 0
        fresh = db.session.get(Debit, debit.id)
        assert fresh.paid_amount_cents == 100
        assert fresh.status == "PAID"
        assert fresh.paid_at == paid_at

    def test_overpayment_reports_remaining(self, db_session, debit):
        debit_service.pay_debit(debit.id, 30)

        with pytest.raises(ExceedsTotalError) as exc:
            debit_service.pay_debit(debit.id, 71)

        assert exc.value.details["max_payment_cents"] == 70
        assert "Maximum payment: 70" in str(exc.value)
        assert db.session.get(Debit, debit.id).paid_amount_cents == 30

    @pytest.mark.parametrize("amount", [0, -5, None, 2.5, "abc"])
    def test_invalid_payment(self, db_session, debit, amount):
        with pytest.raises(ValidationError):
            debit_service.pay_debit(debit.id, amount)
        assert db.session.get(Debit, debit.id).paid_amount_cents == 0

    def test_missing_debit(self, db_session):
        with pytest.raises(NotFoundError):
            debit_service.pay_debit(9999, 10)


class TestCreateDebit:

    def test_create_sums_items(self, db_session, service_sale, product_sale):
        debit = debit_service.create_debit({
            "customer_name": "Ben",
            "notes": "pays on Friday",
            "items": [
                {"sell_history_id": service_sale, "amount_cents": 50},
                {"sell_history_id": product_sale, "amount_cents": 24},
            ],
        })

        assert debit.total_amount_cents == 74
        assert debit.paid_amount_cents == 0
        assert debit.status == "PENDING"
        assert len(debit.items) == 2

    def test_item_amount_cannot_exceed_sale_total(self, db_session, product_sale):
        with pytest.raises(ValidationError):
            debit_service.create_debit({
                "items": [{"sell_history_id": product_sale, "amount_cents": 25}],
            })
        assert db.session.query(Debit).count() == 0

    def test_sale_belongs_to_one_debit(self, db_session, debit, service_sale):
        with pytest.raises(ConflictError) as exc:
            debit_service.create_debit({
                "items": [{"sell_history_id": service_sale, "amount_cents": 10}],
            })
        assert exc.value.details["debit_id"] == debit.id
        assert db.session.query(Debit).count() == 1

    def test_missing_sell_history(self, db_session):
        with pytest.raises(NotFoundError):
            debit_service.create_debit({"items": [{"sell_history_id": 9999, "amount_cents": 10}]})

    def test_duplicate_items_rejected(self, db_session, service_sale):
        with pytest.raises(ValidationError):
            debit_service.create_debit({
                "items": [
                    {"sell_history_id": service_sale, "amount_cents": 10},
                    {"sell_history_id": service_sale, "amount_cents": 10},
                ],
            })

    @pytest.mark.parametrize("items", [None, [], [{"sell_history_id": 1, "amount_cents": 0}]])
    def test_empty_or_zero_total_rejected(self, db_session, items):
        with pytest.raises(ValidationError):
            debit_service.create_debit({"items": items})

    def test_status_not_writable(self, db_session, service_sale):
        with pytest.raises(ValidationError):
            debit_service.create_debit({
                "status": "PAID",
                "items": [{"sell_history_id": service_sale, "amount_cents": 10}],
            })


class TestUpdateAndDeleteDebit:

    def test_update_customer_and_notes(self, db_session, debit):
        result = debit_service.update_debit(debit.id, {"customer_name": "Ana Maria", "notes": "call first"})
        assert result.customer_name == "Ana Maria"
        assert result.notes == "call first"

    def test_paid_amount_not_editable(self, db_session, debit):
        with pytest.raises(ValidationError):
            debit_service.update_debit(debit.id, {"paid_amount_cents": 100})
        assert db.session.get(Debit, debit.id).paid_amount_cents == 0

    def test_delete_frees_sales(self, db_session, debit, service_sale):
        debit_service.delete_debit(debit.id)

        assert db.session.query(Debit).count() == 0
        assert db.session.query(DebitItem).count() == 0
        assert db.session.get(SellHistory, service_sale) is not None

    def test_list_filters_by_status(self, db_session, debit, product_sale):
        other = debit_service.create_debit({"items": [{"sell_history_id": product_sale, "amount_cents": 24}]})
        debit_service.pay_debit(other.id, 24)

        assert [d.id for d in debit_service.list_debits(status="PAID")] == [other.id]
        assert [d.id for d in debit_service.list_debits(status="PENDING")] == [debit.id]

        with pytest.raises(ValidationError):
            debit_service.list_debits(status="OVERDUE")


class TestRemoveDebitItem:

    def test_remove_item_shrinks_total(self, db_session, service_sale, product_sale):
        debit = debit_service.create_debit({
            "items": [
                {"sell_history_id": service_sale, "amount_cents": 100},
                {"sell_history_id": product_sale, "amount_cents": 24},
            ],
        })
        debit_service.pay_debit(debit.id, 24)

        result = debit_service.remove_debit_item(service_sale)

        assert result.total_amount_cents == 24
        assert result.paid_amount_cents == 24
        assert result.status == "PAID"
        assert result.paid_at is not None

    def test_remove_last_item_deletes_debit(self, db_session, debit, service_sale):
        assert debit_service.remove_debit_item(service_sale) is None
        assert db.session.query(Debit).count() == 0

    def test_remove_rejected_when_paid_exceeds_new_total(self, db_session, service_sale, product_sale):
        debit = debit_service.create_debit({
            "items": [
                {"sell_history_id": service_sale, "amount_cents": 100},
                {"sell_history_id": product_sale, "amount_cents": 24},
            ],
        })
        debit_service.pay_debit(debit.id, 50)

        with pytest.raises(ExceedsTotalError):
            debit_service.remove_debit_item(service_sale)

        fresh = db.session.get(Debit, debit.id)
        assert fresh.total_amount_cents == 124
        assert len(fresh.items) == 2

    def test_remove_unknown_item(self, db_session, product_sale):
        with pytest.raises(NotFoundError):
            debit_service.remove_debit_item(product_sale)
