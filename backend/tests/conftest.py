"""
Pytest fixtures for shopledger backend tests.

Provides an in-memory database, a per-test clean session, a test client,
and small factories for products and bills.
"""

import pytest
from shopledger import create_app
from shopledger.config import TestConfig
from shopledger.extensions import db
from shopledger.models import Product
from shopledger.services import billing_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
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
def make_product(db_session):
    """Factory: insert a product directly (bypassing service validation)."""
    def _make(name="Pen", quantity=100, price_cents=1000, purchase_price_cents=600, manual_price_cents=0):
        product = Product(
            name=name,
            quantity=quantity,
            price_cents=price_cents,
            purchase_price_cents=purchase_price_cents,
            manual_price_cents=manual_price_cents,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def pen(make_product):
    """Pen: 100 in stock, sells at 10.00, costs 6.00."""
    return make_product()


def line_for(product, quantity, price_cents=None):
    """Cart line as the till submits it."""
    price = product.price_cents if price_cents is None else price_cents
    return {
        "product_id": product.id,
        "name": product.name,
        "quantity": quantity,
        "price_cents": price,
        "total_cents": price * quantity,
    }


@pytest.fixture(scope='function')
def sell(db_session):
    """Factory: save a bill for [(product, quantity), ...] through the service."""
    def _sell(*lines, customer_name=None):
        items = [line_for(product, qty) for product, qty in lines]
        return billing_service.save_bill(
            customer_name=customer_name,
            total_amount_cents=sum(item["total_cents"] for item in items),
            items=items,
        )

    return _sell
