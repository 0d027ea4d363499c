"""Refund domain errors.

Each error carries the HTTP status and a stable error code; the app-level
error handler renders them with the shared JSON envelope.
"""

from __future__ import annotations


class RefundServiceError(Exception):
    status_code = 500
    error = 'refund_error'
    default_message = 'Refund operation failed'

    def __init__(self, message: str | None = None, *, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict:
        data = {
            'success': False,
            'error': self.error,
            'message': self.message,
        }
        if self.details is not None:
            data['details'] = self.details
        return data


class Unauthenticated(RefundServiceError):
    status_code = 401
    error = 'unauthorized'
    default_message = 'Unauthorized'


class Forbidden(RefundServiceError):
    status_code = 403
    error = 'forbidden'
    default_message = 'Access denied'


class ValidationError(RefundServiceError):
    status_code = 400
    error = 'validation_error'
    default_message = 'Invalid request data'


class NotFound(RefundServiceError):
    status_code = 404
    error = 'not_found'
    default_message = 'Refund request not found'


class InvalidStateTransition(RefundServiceError):
    status_code = 400
    error = 'invalid_state_transition'
    default_message = 'Request is not pending'


class StoreUnavailable(RefundServiceError):
    status_code = 500
    error = 'store_unavailable'
    default_message = 'Storage is temporarily unavailable, please retry'


class PaymentGatewayError(RefundServiceError):
    status_code = 500
    error = 'payment_gateway_error'
    default_message = 'Failed to initiate refund with payment gateway'
