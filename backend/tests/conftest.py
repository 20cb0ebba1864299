"""
Pytest fixtures for the shop ledger backend tests.

Provides an in-memory database, per-test cleanup, catalog fixtures and a
test client.
"""

import pytest
from app import create_app
from app.extensions import db
from app.models import Category, Product, Service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Beverages")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product(db_session, category):
    """Product with 10 units in stock, unit cost 5, list price 8."""
    product = Product(
        category_id=category.id,
        name="Mineral Water",
        quantity=10,
        initial_price_cents=5,
        selling_price_cents=8,
        total_sold=0,
        revenue_cents=0,
        profit_cents=0,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def other_product(db_session, category):
    product = Product(
        category_id=category.id,
        name="Orange Juice",
        quantity=4,
        initial_price_cents=100,
        selling_price_cents=150,
        total_sold=0,
        revenue_cents=0,
        profit_cents=0,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def service(db_session):
    service = Service(
        name="Photocopy",
        description="Per page",
        default_price_cents=10,
        total_sold=0,
        revenue_cents=0,
    )
    db_session.add(service)
    db_session.commit()
    return service
