"""
Test configuration and shared fixtures for AllThatPrinting tests.

This file contains:
- Centralized test configuration
- Shared fixtures used across multiple test files
- Common test utilities (auth headers, order helpers)
"""

import pytest
from allthatprinting import create_app
from allthatprinting.models import (
    db, User, Category, Product, Seller, ShippingCompany, Coupon,
)
from allthatprinting.utils.auth_utils import hash_password, generate_jwt_token


# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SECRET_KEY': 'test-secret-key',
    'JWT_SECRET_KEY': 'test-jwt-secret-key',
    'MAIL_SERVER': 'localhost',
    'MAIL_PORT': 587,
    'MAIL_USE_TLS': False,
    'MAIL_USE_SSL': False,
    'MAIL_USERNAME': 'test@example.com',
    'MAIL_PASSWORD': 'test-password',
    'MAIL_DEFAULT_SENDER': 'test@example.com',
    'TOSS_SECRET_KEY': 'test_sk_dummy',
    'KAKAO_ADMIN_KEY': 'test-kakao-admin-key',
}


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(TEST_CONFIG)
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


def make_user(db_session, username, email, password='TestPass123!', **fields):
    user = User(username=username, email=email, password_hash=hash_password(password), **fields)
    db_session.add(user)
    db_session.commit()
    return user


def auth_headers(user):
    """Bearer header for a user."""
    return {'Authorization': f'Bearer {generate_jwt_token(user)}'}


@pytest.fixture
def test_user(db_session):
    """Create a regular customer."""
    return make_user(db_session, 'testuser', 'test@example.com', phone='01012345678')


@pytest.fixture
def other_user(db_session):
    """Create a second customer."""
    return make_user(db_session, 'otheruser', 'other@example.com')


@pytest.fixture
def admin_user(db_session):
    """Create an administrator."""
    return make_user(db_session, 'manager', 'manager@example.com', is_admin=True)


@pytest.fixture
def user_headers(test_user):
    return auth_headers(test_user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers(other_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def seller_user(db_session):
    """Create a user with an approved shop."""
    user = make_user(db_session, 'sellerone', 'seller@example.com')
    seller = Seller(user_id=user.id, shop_name='프린팅샵', status='approved', is_approved=True)
    db_session.add(seller)
    db_session.commit()
    return user


@pytest.fixture
def seller_headers(seller_user):
    return auth_headers(seller_user)


@pytest.fixture
def category(db_session):
    """Create an active category."""
    category = Category(name='Acrylic', name_ko='아크릴')
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def product(db_session, category):
    """Create a listable product priced at 12,000 won with 10 in stock."""
    product = Product(
        name='Acrylic Keyring',
        name_ko='아크릴 키링',
        base_price=12000,
        category_id=category.id,
        stock=10,
        tags=['keyring', '굿즈'],
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def products(db_session, category):
    """A small catalog spanning several collections."""
    items = [
        Product(name='Acrylic Keyring', name_ko='아크릴 키링', base_price=5000, category_id=category.id,
                stock=100, is_featured=True),
        Product(name='Acrylic Stand', name_ko='아크릴 스탠드', base_price=15000, category_id=category.id,
                stock=3),
        Product(name='Wood Coaster', name_ko='우드 코스터', base_price=8000, category_id=category.id,
                stock=0),
        Product(name='Neck Lanyard', name_ko='목걸이 렌야드', base_price=35000, category_id=category.id,
                stock=20),
        Product(name='Gift Box', name_ko='선물 박스', base_price=60000, category_id=category.id,
                stock=50, is_active=False),
    ]
    db_session.add_all(items)
    db_session.commit()
    return items


@pytest.fixture
def shipping_company(db_session):
    company = ShippingCompany(name='CJ대한통운', code='cj',
                              tracking_url='https://trace.example.com/?no={trackingNumber}')
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture
def coupon(db_session):
    """10% coupon for orders of 10,000 won or more."""
    coupon = Coupon(code='WELCOME10', discount_type='percent', discount_value=10, min_order_amount=10000)
    db_session.add(coupon)
    db_session.commit()
    return coupon


def place_order(client, headers, product_id, quantity=1, **extra):
    """POST /api/orders for a single product; returns the response."""
    payload = {
        'items': [{'product_id': product_id, 'quantity': quantity}],
        'shipping_address': {'name': '홍길동', 'phone': '010-1234-5678', 'address': '서울시 중구 1'},
    }
    payload.update(extra)
    return client.post('/api/orders', json=payload, headers=headers)
