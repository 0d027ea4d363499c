"""
Order and Payment models

Orders are placed by customers against a single vendor's product.
Payments record the gateway capture for an order; refund settlement
verifies against them.
"""
import uuid
from datetime import datetime
from extensions import db


ORDER_STATUSES = ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')
PAYMENT_STATUSES = ('pending', 'processing', 'completed', 'failed', 'cancelled', 'refunded')


class Order(db.Model):
    """Customer order"""
    __tablename__ = 'orders'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    order_number = db.Column(db.String(50), unique=True, nullable=False, index=True)

    customer_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)
    vendor_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)

    product_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Status: pending, confirmed, shipped, delivered, cancelled
    order_status = db.Column(db.String(20), nullable=False, default='pending', index=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    customer = db.relationship('User', foreign_keys=[customer_id])
    vendor = db.relationship('User', foreign_keys=[vendor_id])

    def summary(self) -> dict:
        return {
            'id': self.id,
            'orderNumber': self.order_number,
            'totalAmount': float(self.total_amount) if self.total_amount is not None else None,
            'orderStatus': self.order_status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def to_dict(self):
        data = self.summary()
        data.update({
            'customerId': self.customer_id,
            'vendorId': self.vendor_id,
            'productName': self.product_name,
            'quantity': self.quantity,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        })
        return data

    def __repr__(self):
        return f'<Order {self.order_number} ({self.order_status})>'


class Payment(db.Model):
    """Gateway payment captured for an order"""
    __tablename__ = 'payments'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    order_id = db.Column(db.String(32), db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    customer_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)
    vendor_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)

    razorpay_order_id = db.Column(db.String(64), nullable=True)
    razorpay_payment_id = db.Column(db.String(64), unique=True, nullable=False, index=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default='INR')

    # Status: pending, processing, completed, failed, cancelled, refunded
    payment_status = db.Column(db.String(20), nullable=False, default='pending', index=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'customerId': self.customer_id,
            'vendorId': self.vendor_id,
            'razorpayOrderId': self.razorpay_order_id,
            'razorpayPaymentId': self.razorpay_payment_id,
            'totalAmount': float(self.total_amount) if self.total_amount is not None else None,
            'currency': self.currency,
            'paymentStatus': self.payment_status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Payment {self.razorpay_payment_id} ({self.payment_status})>'
