"""
Pytest fixtures for ShopLedger backend tests.

Each test gets its own application (fresh in-memory database and fresh
in-memory stores), plus helpers for the two ways a terminal can be signed in.
"""

from datetime import datetime, timedelta

import bcrypt
import pytest

from shopledger import create_app
from shopledger.extensions import db
from shopledger.services import get_services
from shopledger.services.session_service import RemoteSessionChanged

LOCAL_ADMIN_PASSWORD = "123"

# Low cost factor keeps the suite fast
LOCAL_ADMIN_PASSWORD_HASH = bcrypt.hashpw(LOCAL_ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SHOP_TIMEZONE': 'UTC',
        'LOCAL_FLAGS_FILE': str(tmp_path / 'device_flags.json'),
        'LOCAL_ADMIN_USERNAME': 'admin',
        'LOCAL_ADMIN_PASSWORD_HASH': LOCAL_ADMIN_PASSWORD_HASH,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    app.extensions['shopledger'].close()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def services(app):
    return get_services()


@pytest.fixture(scope='function')
def local_admin(services):
    """Terminal signed in through the device-local admin bypass."""
    return services.session.enable_local_admin()


@pytest.fixture(scope='function')
def staff(services):
    """Terminal signed in remotely as a staff operator."""
    services.auth_channel.publish(RemoteSessionChanged(operator="rahim", role="staff"))
    return services.session.current


@pytest.fixture(scope='function')
def product(services):
    """A stationery product with 10 units on hand."""
    result = services.inventory.upsert_product({
        "name": "Ball Pen",
        "name_bn": "বল পেন",
        "category": "stationery",
        "purchase_price": 10,
        "sale_price_min": 20,
        "sale_price_max": 25,
        "current_stock": 10,
        "min_stock": 2,
    })
    assert result.success, result.message
    return result.data


class FakeClock:
    """Manually advanced replacement for utcnow()."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope='function')
def clock():
    return FakeClock(datetime(2026, 3, 5, 10, 0, 0))
