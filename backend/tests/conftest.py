"""
Pytest fixtures for FixTrack ledger tests.

Provides an in-memory database, a per-test table wipe, and seeded
counterparties and catalog items.
"""

import pytest
from fixtrack import create_app
from fixtrack.extensions import db
from fixtrack.models import Client, Supplier, InventoryItem


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'RETRY_BACKOFF_BASE': 0,
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
def supplier(db_session):
    """Supplier with a zero balance."""
    supplier = Supplier(name="Parts Wholesale", contact_person="Sam", credit_balance=0.0)
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def other_supplier(db_session):
    supplier = Supplier(name="Screens Direct", credit_balance=0.0)
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def customer(db_session):
    """Client with a zero balance."""
    customer = Client(name="Alex Martin", phone="555-0100", credit_balance=0.0)
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def catalog_item(db_session):
    """Stock-tracked catalog item starting at 0 units."""
    item = InventoryItem(name="iPhone 12 Screen", brand="Apple", item_type="Part", quantity_in_stock=0, low_stock_threshold=2)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def other_catalog_item(db_session):
    item = InventoryItem(name="USB-C Charging Port", item_type="Part", quantity_in_stock=20)
    db_session.add(item)
    db_session.commit()
    return item
