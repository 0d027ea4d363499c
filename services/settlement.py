"""Refund settlement.

Once a refund request is accepted, the customer triggers the payout against
the original Razorpay payment. The resulting `Refund` record then moves on
its own: initiated/processing -> completed | failed, and failed -> processing
on an admin retry.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

from flask import current_app

from models.order import Payment
from models.refund import (
    REFUND_COMPLETED,
    REFUND_FAILED,
    REFUND_INITIATED,
    REFUND_PROCESSING,
    REFUND_STATUSES,
    Refund,
)
from models.refund_request import STATUS_ACCEPTED
from services.authz import (
    ACTION_MANAGE_SETTLEMENT,
    ACTION_READ,
    ACTION_SETTLE,
    Principal,
    authorize,
    scope_filter,
)
from services.errors import InvalidStateTransition, NotFound, PaymentGatewayError, ValidationError
from services.refund_requests import parse_pagination, store as request_store
from services.store import RefundStore, find_record
from utils.razorpay_client import RazorpayClient, RazorpayError


refund_store = RefundStore()

# action -> (allowed source statuses, target status, default note)
REFUND_ACTIONS = {
    'complete': ((REFUND_INITIATED, REFUND_PROCESSING), REFUND_COMPLETED, 'Refund completed by admin'),
    'fail': ((REFUND_INITIATED, REFUND_PROCESSING), REFUND_FAILED, 'Refund failed'),
    'retry': ((REFUND_FAILED,), REFUND_PROCESSING, 'Refund retry initiated'),
}


def initiate_refund(
    principal: Optional[Principal],
    request_refund_id: Optional[str],
    razorpay_payment_id: Optional[str],
    *,
    client: Optional[RazorpayClient] = None,
) -> Refund:
    """Push an accepted refund request to Razorpay.

    A gateway failure is still recorded (status `failed`, gateway message in
    `refundNotes`) before `PaymentGatewayError` is raised.
    """
    authorize(principal, ACTION_SETTLE)
    request_refund_id = (request_refund_id or '').strip()
    razorpay_payment_id = (razorpay_payment_id or '').strip()
    if not request_refund_id or not razorpay_payment_id:
        raise ValidationError('Request refund ID and Razorpay payment ID are required')

    refund_request = request_store.find_one({
        'id': request_refund_id,
        'customerId': principal.id,
        'requestStatus': STATUS_ACCEPTED,
    })
    if refund_request is None:
        raise NotFound('Refund request not found or not approved')

    payment = find_record(Payment, {
        'razorpay_payment_id': razorpay_payment_id,
        'customer_id': principal.id,
        'payment_status': 'completed',
    })
    if payment is None:
        raise NotFound('Payment not found')
    if payment.order_id != refund_request.order_id:
        raise ValidationError('Payment does not belong to the refunded order')

    if refund_store.find_one({'requestRefundId': request_refund_id}) is not None:
        raise ValidationError('Refund already initiated')

    refund = Refund(
        order_id=refund_request.order_id,
        customer_id=principal.id,
        vendor_id=refund_request.vendor_id,
        request_refund_id=request_refund_id,
        refund_amount=refund_request.amount,
        refund_reason=refund_request.reason,
        razorpay_payment_id=razorpay_payment_id,
        refund_date=datetime.now(),
    )

    client = client or RazorpayClient.from_config()
    try:
        gateway_refund = client.refund_payment(
            razorpay_payment_id,
            amount=refund_request.amount,
            notes={'reason': refund_request.reason, 'requestId': request_refund_id},
        )
    except RazorpayError as e:
        current_app.logger.warning(
            "Razorpay refund failed for request %s: %s", request_refund_id, e.message
        )
        refund.refund_status = REFUND_FAILED
        refund.refund_notes = f'Razorpay error: {e.message}'
        refund_store.insert(refund, conflict_message='Refund already initiated')
        raise PaymentGatewayError(details=e.message) from e

    refund.refund_status = REFUND_PROCESSING
    refund.razorpay_refund_id = gateway_refund['id']
    refund_store.insert(refund, conflict_message='Refund already initiated')
    current_app.logger.info(
        "Refund %s initiated for request %s (razorpay %s)",
        refund.id, request_refund_id, refund.razorpay_refund_id,
    )
    return refund


def list_refunds(
    principal: Optional[Principal],
    *,
    status=None,
    page=None,
    limit=None,
) -> tuple[list[Refund], dict]:
    authorize(principal, ACTION_READ)
    page, limit = parse_pagination(page, limit)

    filters: dict[str, Any] = dict(scope_filter(principal))
    if status:
        statuses = [s.strip().lower() for s in str(status).split(',') if s.strip()]
        invalid = [s for s in statuses if s not in REFUND_STATUSES]
        if invalid:
            raise ValidationError(f"Invalid status filter: {', '.join(invalid)}")
        if statuses:
            filters['refundStatus'] = statuses

    rows, total = refund_store.find(filters, page=page, limit=limit)
    return rows, {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if total else 0,
    }


def apply_refund_action(
    principal: Optional[Principal],
    refund_id: str,
    action: Optional[str],
    data: Optional[dict] = None,
) -> Refund:
    authorize(principal, ACTION_MANAGE_SETTLEMENT)
    data = data if isinstance(data, dict) else {}
    action = (action or '').strip().lower()
    if not refund_id or not action:
        raise ValidationError('Refund ID and action are required')
    if action not in REFUND_ACTIONS:
        raise ValidationError('Invalid action')

    sources, target, default_note = REFUND_ACTIONS[action]
    note_key = 'reason' if action == 'fail' else 'notes'
    now = datetime.now()
    patch: dict[str, Any] = {
        'refundStatus': target,
        'processedBy': principal.id,
        'refundNotes': (str(data.get(note_key) or '').strip() or default_note),
    }
    if target == REFUND_COMPLETED:
        patch['completedAt'] = now

    updated = refund_store.find_by_id_and_update(
        refund_id,
        patch,
        conditional_on={'refundStatus': list(sources)},
    )
    if updated is None:
        current = refund_store.get(refund_id)
        if current is None:
            raise NotFound('Refund not found')
        raise InvalidStateTransition(f'Cannot {action} a {current.refund_status} refund')

    current_app.logger.info("Refund %s -> %s by admin %s", refund_id, target, principal.id)
    return updated


def bulk_delete_failed_refunds(principal: Optional[Principal], refund_ids) -> int:
    authorize(principal, ACTION_MANAGE_SETTLEMENT)
    if not isinstance(refund_ids, (list, tuple)):
        raise ValidationError('Refund IDs are required')
    ids = [str(i).strip() for i in refund_ids if i is not None and str(i).strip()]
    if not ids:
        raise ValidationError('Refund IDs are required')
    return refund_store.delete_many({'id': ids, 'refundStatus': REFUND_FAILED})
