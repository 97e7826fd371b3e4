"""
Pytest fixtures for the POS backend tests.

Provides the in-memory application, a clean database per test, and catalog
and staff fixtures shaped after a small supermarket.
"""

import pytest
from supermarket_pos import create_app
from supermarket_pos.extensions import db
from supermarket_pos.models import Product, Sale, SaleItem, User


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
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
def cashier(db_session):
    user = User(username="cashier", full_name="Front Cashier", role="cashier")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def second_cashier(db_session):
    user = User(username="night_cashier", full_name="Night Cashier", role="cashier")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product("Rice", price_cents=10000, stock=5)."""
    def _make(name: str, price_cents: int, stock: int) -> Product:
        product = Product(name=name, price_cents=price_cents, stock_quantity=stock)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_a(make_product):
    """Product A: price 100.00, 5 units on hand."""
    return make_product("Product A", price_cents=10000, stock=5)


@pytest.fixture(scope='function')
def product_b(make_product):
    """Product B: price 200.00, 10 units on hand."""
    return make_product("Product B", price_cents=20000, stock=10)


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Committed stock level for a product id."""
    def _stock(product_id: int) -> int:
        db_session.expire_all()
        return db_session.get(Product, product_id).stock_quantity
    return _stock


@pytest.fixture(scope='function')
def ledger_counts(db_session):
    """(sales rows, sale_items rows) currently in the ledger."""
    def _counts() -> tuple[int, int]:
        return db_session.query(Sale).count(), db_session.query(SaleItem).count()
    return _counts


@pytest.fixture(scope='function')
def clock(monkeypatch):
    """Pin the sale timestamp: clock(datetime(...)) before each sale."""
    from supermarket_pos.services import sales_service

    def _set(moment):
        monkeypatch.setattr(sales_service, "utcnow", lambda: moment)
    return _set


@pytest.fixture(scope='function')
def sell(db_session):
    """Ring up a sale directly through the workflow."""
    from supermarket_pos.services import sales_service

    def _sell(cashier, lines, **kwargs):
        return sales_service.process_sale(db_session, cashier_id=cashier.id, cart_lines=lines, **kwargs)
    return _sell
