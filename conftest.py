"""
Shared pytest fixtures

The app runs on in-memory SQLite (TestingConfig) and is seeded with a small
marketplace: two customers, two vendors, one admin, a handful of orders and
one captured payment. Bearer tokens are minted with the same JWT secret the
app verifies with.
"""
import os
from decimal import Decimal

os.environ.setdefault('FLASK_ENV', 'testing')

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config.settings import TestingConfig
from extensions import db
from models.order import Order, Payment
from models.user import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_VENDOR, User
from services.authz import Principal


USERS = [
    ('C1', ROLE_CUSTOMER, 'Carla Cruz', None, 'carla@example.com'),
    ('C2', ROLE_CUSTOMER, 'Dan Reyes', None, 'dan@example.com'),
    ('V1', ROLE_VENDOR, 'Vera Lim', 'Vera Home Goods', 'vera@example.com'),
    ('V2', ROLE_VENDOR, 'Vic Tan', 'Tan Electronics', 'vic@example.com'),
    ('A1', ROLE_ADMIN, 'Admin User', None, 'admin@example.com'),
]

# id, number, customer, vendor, product, total, status
ORDERS = [
    ('O1', 'ORD-1001', 'C1', 'V1', 'Ceramic vase set', '1200.00', 'delivered'),
    ('O2', 'ORD-1002', 'C1', 'V2', 'Bluetooth speaker', '50.00', 'delivered'),
    ('O3', 'ORD-1003', 'C1', 'V1', 'Linen throw', '300.00', 'shipped'),
    ('O4', 'ORD-1004', 'C2', 'V1', 'Table lamp', '80.00', 'delivered'),
    ('O5', 'ORD-1005', 'C2', 'V2', 'USB hub', '40.00', 'delivered'),
]


def seed_marketplace():
    for user_id, role, name, business, email in USERS:
        db.session.add(User(id=user_id, role=role, name=name, business_name=business, email=email))
    for order_id, number, customer, vendor, product, total, status in ORDERS:
        db.session.add(Order(
            id=order_id,
            order_number=number,
            customer_id=customer,
            vendor_id=vendor,
            product_name=product,
            total_amount=Decimal(total),
            order_status=status,
        ))
    db.session.add(Payment(
        id='P1',
        order_id='O1',
        customer_id='C1',
        vendor_id='V1',
        razorpay_order_id='order_rzp_1001',
        razorpay_payment_id='pay_rzp_1001',
        total_amount=Decimal('1200.00'),
        payment_status='completed',
    ))
    db.session.commit()


@pytest.fixture
def app():
    """Application on a fresh in-memory database"""
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        seed_marketplace()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Factory: auth_headers('C1') -> Authorization header for that seeded user"""
    roles = {user_id: role for user_id, role, *_ in USERS}

    def _headers(user_id, role=None):
        token = create_access_token(
            identity=user_id,
            additional_claims={'role': role or roles[user_id]},
        )
        return {'Authorization': f'Bearer {token}'}

    return _headers


@pytest.fixture
def principals():
    return {user_id: Principal(id=user_id, role=role) for user_id, role, *_ in USERS}
