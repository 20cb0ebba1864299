from app.extensions import db
from app.models import Category, Product, Service
from app.services import debit_service, sales_service


def test_seed_demo_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "seed-demo"])
    assert result.exit_code == 0
    assert "PASS" in result.output

    counts = (
        db.session.query(Category).count(),
        db.session.query(Product).count(),
        db.session.query(Service).count(),
    )
    runner.invoke(args=["system", "seed-demo"])
    assert counts == (
        db.session.query(Category).count(),
        db.session.query(Product).count(),
        db.session.query(Service).count(),
    )


def test_low_stock(app, db_session, product, other_product):
    result = app.test_cli_runner().invoke(args=["products", "low-stock", "--threshold", "5"])
    assert result.exit_code == 0
    assert "Orange Juice" in result.output
    assert "Mineral Water" not in result.output


def test_debits_list(app, db_session, service):
    history_id = sales_service.sell_service(service.id, 1, 10).sell_history[0].id
    debit_service.create_debit({
        "customer_name": "Ana",
        "items": [{"sell_history_id": history_id, "amount_cents": 10}],
    })

    result = app.test_cli_runner().invoke(args=["debits", "list", "--status", "PENDING"])
    assert result.exit_code == 0
    assert "Ana" in result.output

    result = app.test_cli_runner().invoke(args=["debits", "list", "--status", "PAID"])
    assert "No debits found." in result.output


def test_wipe(app, db_session, product):
    result = app.test_cli_runner().invoke(args=["system", "wipe", "--yes"])
    assert result.exit_code == 0
    assert db.session.query(Product).count() == 0
