"""
Database initialization script
Run this after creating the database to seed demo marketplace data
"""
import sys
import os
from datetime import timedelta
from decimal import Decimal

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask_jwt_extended import create_access_token

from app import app, db
from models.order import Order, Payment
from models.user import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_VENDOR, User


DEMO_USERS = [
    # email, role, name, business name
    ('admin@marketplace.test', ROLE_ADMIN, 'Admin User', None),
    ('vendor1@marketplace.test', ROLE_VENDOR, 'Vera Lim', 'Vera Home Goods'),
    ('vendor2@marketplace.test', ROLE_VENDOR, 'Vic Tan', 'Tan Electronics'),
    ('customer1@marketplace.test', ROLE_CUSTOMER, 'Carla Cruz', None),
    ('customer2@marketplace.test', ROLE_CUSTOMER, 'Dan Reyes', None),
]

DEMO_ORDERS = [
    # number, customer email, vendor email, product, total, status
    ('ORD-1001', 'customer1@marketplace.test', 'vendor1@marketplace.test', 'Ceramic vase set', '1200.00', 'delivered'),
    ('ORD-1002', 'customer1@marketplace.test', 'vendor2@marketplace.test', 'Bluetooth speaker', '2499.00', 'delivered'),
    ('ORD-1003', 'customer2@marketplace.test', 'vendor1@marketplace.test', 'Linen throw', '850.00', 'shipped'),
    ('ORD-1004', 'customer2@marketplace.test', 'vendor2@marketplace.test', 'USB hub', '799.00', 'delivered'),
]


def seed_users():
    """Create demo users"""
    print("Creating demo users...")

    for email, role, name, business_name in DEMO_USERS:
        if not User.query.filter_by(email=email).first():
            db.session.add(User(email=email, role=role, name=name, business_name=business_name))
            print(f"  ✓ {role.capitalize()} '{email}' created")
        else:
            print(f"  - {role.capitalize()} '{email}' already exists")

    db.session.commit()


def seed_orders():
    """Create demo orders, each with a captured payment"""
    print("Creating demo orders...")

    users = {u.email: u for u in User.query.all()}
    for number, customer_email, vendor_email, product, total, status in DEMO_ORDERS:
        if Order.query.filter_by(order_number=number).first():
            print(f"  - Order '{number}' already exists")
            continue

        order = Order(
            order_number=number,
            customer_id=users[customer_email].id,
            vendor_id=users[vendor_email].id,
            product_name=product,
            total_amount=Decimal(total),
            order_status=status,
        )
        db.session.add(order)
        db.session.flush()

        db.session.add(Payment(
            order_id=order.id,
            customer_id=order.customer_id,
            vendor_id=order.vendor_id,
            razorpay_order_id=f"order_demo_{number.lower().replace('-', '')}",
            razorpay_payment_id=f"pay_demo_{number.lower().replace('-', '')}",
            total_amount=order.total_amount,
            payment_status='completed',
        ))
        print(f"  ✓ Order '{number}' ({status}) created")

    db.session.commit()


def print_dev_tokens():
    """Print long-lived bearer tokens for local testing"""
    print("Development bearer tokens (valid 30 days):")
    for user in User.query.order_by(User.role, User.email).all():
        token = create_access_token(
            identity=user.id,
            additional_claims={'role': user.role},
            expires_delta=timedelta(days=30),
        )
        print(f"  {user.role:<8} {user.email}")
        print(f"           {token}")


def init_db():
    """Initialize database with default data"""
    with app.app_context():
        print("\n" + "="*50)
        print("Marketplace Refunds - Database Initialization")
        print("="*50 + "\n")

        # Create tables
        print("Creating database tables...")
        db.create_all()
        print("  ✓ Tables created\n")

        # Seed data
        seed_users()
        print()
        seed_orders()

        print("\n" + "="*50)
        print("Database initialization complete!")
        print("="*50 + "\n")
        print_dev_tokens()
        print()


if __name__ == '__main__':
    init_db()
