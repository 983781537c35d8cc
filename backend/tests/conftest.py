"""
Pytest fixtures for the POS backend tests.

Provides test database setup, two independent tenants (users), catalog
fixtures, and an authenticated test client helper.
"""

import pytest

from retailpos import create_app
from retailpos.extensions import db
from retailpos.models import InventoryItem, User
from retailpos.services.auth_service import hash_password


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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


def make_user(session, username: str, *, is_admin: bool = False) -> User:
    user = User(
        username=username,
        email=f"{username}@pos.test",
        password_hash=hash_password(TEST_PASSWORD),
        is_admin=is_admin,
    )
    session.add(user)
    session.commit()
    return user


def make_item(session, user: User, sku: str, *, price_cents: int, stock: int, reorder_level: int = 5,
              name: str | None = None, category: str = "General") -> InventoryItem:
    item = InventoryItem(
        user_id=user.id,
        sku=sku,
        name=name or f"Item {sku}",
        category=category,
        price_cents=price_cents,
        stock=stock,
        reorder_level=reorder_level,
    )
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def user_a(db_session):
    """Tenant A, an admin."""
    return make_user(db_session, "user_a", is_admin=True)


@pytest.fixture(scope='function')
def user_b(db_session):
    """Tenant B, a regular user."""
    return make_user(db_session, "user_b")


@pytest.fixture(scope='function')
def stapler(db_session, user_a):
    """OF-2002: stock 62, reorder level 15, price 8.99."""
    return make_item(db_session, user_a, "OF-2002", name="Stapler", category="Office",
                     price_cents=899, stock=62, reorder_level=15)


@pytest.fixture(scope='function')
def pens(db_session, user_a):
    """OF-1001: stock 3, reorder level 5, price 2.50."""
    return make_item(db_session, user_a, "OF-1001", name="Pens", category="Office",
                     price_cents=250, stock=3, reorder_level=5)


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(client, user_a):
    return auth_headers(get_auth_token(client, user_a.username))


@pytest.fixture(scope='function')
def headers_b(client, user_b):
    return auth_headers(get_auth_token(client, user_b.username))
