"""
Pytest fixtures for stockdesk backend tests.

Provides an app bound to in-memory SQLite, a clean database per test, the
test client and small factories for staff and products.

Factories commit their rows: service writes open their own write
transaction and expect the session to be idle when they start.
"""

import pytest
from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Product, Staff
from stockdesk.services.stock_service import derive_status


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TX_RETRY_BACKOFF_SECONDS': 0,
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
def make_staff(db_session):
    """Factory for staff members."""
    counter = {"n": 0}

    def _make(first_name="Ama", last_name="Mensah", **kwargs):
        counter["n"] += 1
        staff = Staff(
            employee_id=kwargs.pop("employee_id", f"EMP-{counter['n']:03d}"),
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )
        db_session.add(staff)
        db_session.commit()
        return staff

    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for products with a status consistent with their stock."""
    counter = {"n": 0}

    def _make(quantity=10, min_stock=5, price_per_unit_cents=1000, status=None, **kwargs):
        counter["n"] += 1
        product = Product(
            sku=kwargs.pop("sku", f"SKU-{counter['n']:03d}"),
            name=kwargs.pop("name", f"Product {counter['n']}"),
            category=kwargs.pop("category", "Feed"),
            quantity=quantity,
            min_stock=min_stock,
            price_per_unit_cents=price_per_unit_cents,
            status=derive_status(quantity, min_stock, status),
            **kwargs,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def staff(make_staff):
    return make_staff()


@pytest.fixture(scope='function')
def product(make_product):
    """Product with 10 units on hand and a minimum of 5."""
    return make_product(quantity=10, min_stock=5, price_per_unit_cents=1000)
