"""Refund request model.

A customer's claim against one of their delivered orders. The order's vendor
or an admin accepts or rejects it; both outcomes are terminal.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from extensions import db


STATUS_PENDING = 'pending'
STATUS_ACCEPTED = 'accepted'
STATUS_REJECTED = 'rejected'
REQUEST_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_REJECTED)

REASON_CATEGORIES = ('duplicate', 'not_as_described', 'defective', 'wrong_item', 'other')
DEFAULT_REASON_CATEGORY = 'other'


class RefundRequest(db.Model):
    __tablename__ = 'refund_requests'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    # One request per order.
    order_id = db.Column(
        db.String(32),
        db.ForeignKey('orders.id', ondelete='CASCADE'),
        nullable=False,
        unique=True,
        index=True,
    )
    customer_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)
    vendor_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    reason = db.Column(db.Text, nullable=False)
    refund_reason_category = db.Column(db.String(30), nullable=False, default=DEFAULT_REASON_CATEGORY)
    notes = db.Column(db.Text, nullable=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)

    request_status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)

    processed_by = db.Column(db.String(32), nullable=True, index=True)
    processed_at = db.Column(db.DateTime, nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.now, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    order = db.relationship('Order')
    customer = db.relationship('User', foreign_keys=[customer_id])
    vendor = db.relationship('User', foreign_keys=[vendor_id])

    # Wire name -> column attribute. Used by the store to translate patches.
    FIELD_COLUMNS = {
        'id': 'id',
        'orderId': 'order_id',
        'customerId': 'customer_id',
        'vendorId': 'vendor_id',
        'amount': 'amount',
        'reason': 'reason',
        'refundReasonCategory': 'refund_reason_category',
        'notes': 'notes',
        'attachments': 'attachments',
        'requestStatus': 'request_status',
        'processedBy': 'processed_by',
        'processedAt': 'processed_at',
        'adminNotes': 'admin_notes',
        'rejectionReason': 'rejection_reason',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }

    @property
    def is_pending(self) -> bool:
        return self.request_status == STATUS_PENDING

    def to_dict(self, include_related: bool = False) -> dict:
        data = {
            'id': self.id,
            'orderId': self.order_id,
            'customerId': self.customer_id,
            'vendorId': self.vendor_id,
            'amount': float(self.amount) if self.amount is not None else None,
            'reason': self.reason,
            'refundReasonCategory': self.refund_reason_category,
            'notes': self.notes,
            'attachments': list(self.attachments or []),
            'requestStatus': self.request_status,
            'processedBy': self.processed_by,
            'processedAt': self.processed_at.isoformat() if self.processed_at else None,
            'adminNotes': self.admin_notes,
            'rejectionReason': self.rejection_reason,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_related:
            data['order'] = self.order.summary() if self.order else None
            data['customer'] = self.customer.customer_summary() if self.customer else None
            data['vendor'] = self.vendor.vendor_summary() if self.vendor else None
        return data

    def __repr__(self):
        return f'<RefundRequest {self.id} ({self.request_status})>'
