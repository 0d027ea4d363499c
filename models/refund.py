"""Refund settlement model.

Created once an accepted refund request is pushed to the payment gateway.
It references the originating request but has its own lifecycle afterwards.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from extensions import db


REFUND_INITIATED = 'initiated'
REFUND_PROCESSING = 'processing'
REFUND_COMPLETED = 'completed'
REFUND_FAILED = 'failed'
REFUND_STATUSES = (REFUND_INITIATED, REFUND_PROCESSING, REFUND_COMPLETED, REFUND_FAILED)

REFUND_METHODS = ('original_payment', 'bank_transfer', 'wallet')


class Refund(db.Model):
    __tablename__ = 'refunds'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    order_id = db.Column(db.String(32), db.ForeignKey('orders.id'), nullable=False, index=True)
    customer_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)
    vendor_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)

    # Lookup-only back-reference; deleting the request leaves the settlement intact.
    request_refund_id = db.Column(db.String(32), nullable=False, unique=True, index=True)

    refund_amount = db.Column(db.Numeric(12, 2), nullable=False)
    refund_reason = db.Column(db.Text, nullable=False)
    refund_status = db.Column(db.String(20), nullable=False, default=REFUND_INITIATED, index=True)

    razorpay_payment_id = db.Column(db.String(64), nullable=False)
    razorpay_refund_id = db.Column(db.String(64), nullable=True)
    refund_method = db.Column(db.String(30), nullable=False, default='original_payment')

    processed_by = db.Column(db.String(32), nullable=True)
    refund_notes = db.Column(db.Text, nullable=True)
    refund_date = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.now, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    order = db.relationship('Order')
    customer = db.relationship('User', foreign_keys=[customer_id])
    vendor = db.relationship('User', foreign_keys=[vendor_id])

    FIELD_COLUMNS = {
        'id': 'id',
        'orderId': 'order_id',
        'customerId': 'customer_id',
        'vendorId': 'vendor_id',
        'requestRefundId': 'request_refund_id',
        'refundAmount': 'refund_amount',
        'refundReason': 'refund_reason',
        'refundStatus': 'refund_status',
        'razorpayPaymentId': 'razorpay_payment_id',
        'razorpayRefundId': 'razorpay_refund_id',
        'refundMethod': 'refund_method',
        'processedBy': 'processed_by',
        'refundNotes': 'refund_notes',
        'refundDate': 'refund_date',
        'completedAt': 'completed_at',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }

    def to_dict(self, include_related: bool = False) -> dict:
        data = {
            'id': self.id,
            'orderId': self.order_id,
            'customerId': self.customer_id,
            'vendorId': self.vendor_id,
            'requestRefundId': self.request_refund_id,
            'refundAmount': float(self.refund_amount) if self.refund_amount is not None else None,
            'refundReason': self.refund_reason,
            'refundStatus': self.refund_status,
            'razorpayPaymentId': self.razorpay_payment_id,
            'razorpayRefundId': self.razorpay_refund_id,
            'refundMethod': self.refund_method,
            'processedBy': self.processed_by,
            'refundNotes': self.refund_notes,
            'refundDate': self.refund_date.isoformat() if self.refund_date else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_related:
            data['order'] = self.order.summary() if self.order else None
            data['customer'] = self.customer.customer_summary() if self.customer else None
            data['vendor'] = self.vendor.vendor_summary() if self.vendor else None
        return data

    def __repr__(self):
        return f'<Refund {self.id} ({self.refund_status})>'
