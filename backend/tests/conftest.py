"""
Pytest fixtures for Shopdesk backend tests.

Provides an in-memory database, a clean slate per test, accounts for every
role with bearer headers, and a small catalog and customer list.
"""

import pytest

from shopdesk import create_app
from shopdesk.extensions import db
from shopdesk.models import CreditCustomer, Product, Profile, UserRole
from shopdesk.models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER, ROLE_VIEWER
from shopdesk.services import permission_service, session_service
from shopdesk.services.auth_service import hash_password


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app(
        config_overrides={
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'SQLALCHEMY_TRACK_MODIFICATIONS': False,
            'BCRYPT_ROUNDS': 4,
            'LOG_LEVEL': 'WARNING',
        },
        instance_path=str(tmp_path_factory.mktemp("instance")),
    )

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Empty every table before each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def seeded_permissions(db_session):
    """Default role/page matrix."""
    permission_service.seed_default_permissions()


def make_user(db_session, email: str, role: str) -> Profile:
    user = Profile(username=email, password_hash=hash_password(TEST_PASSWORD), is_active=True)
    db_session.add(user)
    db_session.flush()
    db_session.add(UserRole(user_id=user.id, role=role))
    db_session.commit()
    return user


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user: Profile) -> dict:
    _, token = session_service.create_session(user_id=user.id)
    return auth_headers(token)


def get_auth_token(client, email: str, password: str = TEST_PASSWORD) -> str | None:
    """Helper to sign in through the API."""
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    if response.status_code == 200:
        return response.json.get('token')
    return None


@pytest.fixture(scope='function')
def admin_user(db_session, seeded_permissions):
    return make_user(db_session, "admin@shop.test", ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager_user(db_session, seeded_permissions):
    return make_user(db_session, "manager@shop.test", ROLE_MANAGER)


@pytest.fixture(scope='function')
def cashier_user(db_session, seeded_permissions):
    return make_user(db_session, "cashier@shop.test", ROLE_CASHIER)


@pytest.fixture(scope='function')
def viewer_user(db_session, seeded_permissions):
    return make_user(db_session, "viewer@shop.test", ROLE_VIEWER)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture(scope='function')
def manager_headers(manager_user):
    return headers_for(manager_user)


@pytest.fixture(scope='function')
def cashier_headers(cashier_user):
    return headers_for(cashier_user)


@pytest.fixture(scope='function')
def viewer_headers(viewer_user):
    return headers_for(viewer_user)


@pytest.fixture(scope='function')
def rice(db_session):
    product = Product(
        name="Basmati Rice 1kg",
        price_cents=12000,
        cost_cents=9550,
        stock=40,
        company="Daawat",
        category="Grocery",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def soap(db_session):
    product = Product(
        name="Neem Soap",
        price_cents=4500,
        cost_cents=3000,
        stock=5,
        company="Margo",
        category="Personal Care",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer(db_session):
    customer = CreditCustomer(name="Ramesh Kumar", phone="9876543210", total_credit_cents=0)
    db_session.add(customer)
    db_session.commit()
    return customer
