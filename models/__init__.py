"""
Database models package
"""
from .user import User, ActivityLog
from .order import Order, Payment
from .refund_request import RefundRequest
from .refund import Refund

__all__ = [
    'User',
    'ActivityLog',
    'Order',
    'Payment',
    'RefundRequest',
    'Refund'
]
