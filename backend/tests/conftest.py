"""
Pytest fixtures for Daybook backend tests.

Provides test database setup, actor fixtures, a POS sales helper, and test client.
"""

from datetime import date

import pytest
from daybook import create_app
from daybook.extensions import db
from daybook.models import User, Sale


BUSINESS_DATE = date(2024, 1, 10)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CURRENCY_LABEL': 'Rs.',
        'CASH_DRAWER_HISTORY_DAYS': 30,
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
        # Clear all data but keep schema (Core deletes bypass append-only guards)
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(db_session, username: str, role: str, is_active: bool = True) -> User:
    user = User(username=username, role=role, is_active=is_active)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def cashier(db_session):
    return _make_user(db_session, "cashier", "Cashier")


@pytest.fixture(scope='function')
def manager(db_session):
    return _make_user(db_session, "manager", "manager")


@pytest.fixture(scope='function')
def admin(db_session):
    """Role spelled the way the identity service sends it."""
    return _make_user(db_session, "admin", "Admin")


@pytest.fixture(scope='function')
def owner(db_session):
    return _make_user(db_session, "owner", "OWNER")


@pytest.fixture(scope='function')
def inactive_user(db_session):
    return _make_user(db_session, "former", "Admin", is_active=False)


@pytest.fixture(scope='function')
def record_sale(db_session):
    """Factory standing in for the POS engine writing a sale."""
    def _record(total_cents: int, business_date: date = BUSINESS_DATE,
                payment_method: str = "CASH", status: str = "POSTED") -> Sale:
        sale = Sale(
            business_date=business_date,
            payment_method=payment_method,
            status=status,
            total_cents=total_cents,
        )
        db_session.add(sale)
        db_session.commit()
        return sale
    return _record


def actor_headers(user: User) -> dict:
    """Helper to create the gateway's actor header."""
    return {'X-User-Id': str(user.id)}
