"""
Pytest fixtures for Nexus backend tests.

Provides an in-memory app, a per-test clean store and snapshot, users for
each role, and header helpers for the test client.
"""

from decimal import Decimal

import pytest
from nexus import create_app
from nexus.domain import Client, Product
from nexus.extensions import db
from nexus.permissions import Role
from nexus.services import catalog_service, client_service, identity_service, settings_service
from nexus.services.snapshot_service import get_snapshot


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'NEXUS_LOG_LEVEL': 'DEBUG',
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
    """Empty store, empty snapshot and default settings for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        get_snapshot().clear()
        settings_service.init_app(app)

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def snapshot(db_session):
    return get_snapshot()


def _user(role: Role, telegram_id: int):
    return identity_service.create_user(telegram_id=telegram_id, name=f"{role.value.title()} User", role=role)


@pytest.fixture(scope='function')
def staff_user(db_session):
    return _user(Role.STAFF, 1001)


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _user(Role.ADMIN, 1002)


@pytest.fixture(scope='function')
def guest_user(db_session):
    return _user(Role.GUEST, 1003)


@pytest.fixture(scope='function')
def developer_user(db_session):
    return _user(Role.DEVELOPER, 1004)


def make_product(sku="SKU-1", name="Widget", price="10.00", stock=0, min_stock=5, category="General", cost="4.00"):
    return Product(
        id=None,
        sku=sku,
        name=name,
        category=category,
        price=Decimal(price),
        cost=Decimal(cost),
        stock=stock,
        min_stock=min_stock,
        unit="pcs",
    )


def make_client(name="Alice Johnson", company="The Morning Cafe", balance="0.00"):
    return Client(
        id=None,
        name=name,
        company_name=company,
        email=None,
        phone=None,
        balance=Decimal(balance),
    )


@pytest.fixture(scope='function')
def product(snapshot):
    """Widget at 10.00 with 20 in stock."""
    return catalog_service.add_product(snapshot=snapshot, product=make_product(stock=20))


@pytest.fixture(scope='function')
def customer(snapshot):
    return client_service.add_client(snapshot=snapshot, client=make_client())


@pytest.fixture(scope='function')
def new_product():
    """Factory for unsaved products."""
    return make_product


@pytest.fixture(scope='function')
def new_client():
    """Factory for unsaved clients."""
    return make_client


def auth_headers(user) -> dict:
    return {"X-User-Id": user.id}


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    return auth_headers(staff_user)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture(scope='function')
def guest_headers(guest_user):
    return auth_headers(guest_user)
