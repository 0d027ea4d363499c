"""Refund request lifecycle.

States: pending (initial) -> accepted | rejected (both terminal).

Every state change goes through `RefundRequestStore.find_by_id_and_update`
with `conditional_on={'requestStatus': 'pending'}`, so when an approve and a
reject race on the same request exactly one write matches and the other
caller gets `InvalidStateTransition`. A write that matched nothing is
re-read within the caller's scope to tell "not visible" (NotFound) from
"already processed" (InvalidStateTransition); the record itself is never
touched by the losing call.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from flask import current_app

from models.order import Order
from models.refund_request import (
    DEFAULT_REASON_CATEGORY,
    REASON_CATEGORIES,
    REQUEST_STATUSES,
    STATUS_ACCEPTED,
    STATUS_PENDING,
    STATUS_REJECTED,
    RefundRequest,
)
from services.authz import (
    ACTION_APPROVE,
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_READ,
    ACTION_REJECT,
    ACTION_UPDATE,
    Principal,
    authorize,
    check_fields,
    scope_filter,
)
from services.errors import InvalidStateTransition, NotFound, ValidationError
from services.store import RefundRequestStore, find_record


TERMINAL_STATES = {STATUS_ACCEPTED, STATUS_REJECTED}

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_ACCEPTED, STATUS_REJECTED},
}

# Largest value a Numeric(12, 2) amount column holds.
MAX_AMOUNT = Decimal('9999999999.99')

DEFAULT_APPROVE_NOTE = 'Request approved'
DEFAULT_REJECT_NOTE = 'Request rejected'

store = RefundRequestStore()


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


# ------------------------------------------------------------
# Input parsing
# ------------------------------------------------------------

def _clean_text(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _parse_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError('Amount must be a positive number')
    try:
        amount = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError('Amount must be a positive number')
    if not amount.is_finite() or amount <= 0:
        raise ValidationError('Amount must be a positive number')
    if amount > MAX_AMOUNT:
        raise ValidationError(f'Amount cannot exceed {MAX_AMOUNT}')
    return amount


def _parse_category(value) -> str:
    category = _clean_text(value).lower()
    if not category:
        return DEFAULT_REASON_CATEGORY
    if category not in REASON_CATEGORIES:
        raise ValidationError(
            f"Invalid refund reason category. Allowed: {', '.join(REASON_CATEGORIES)}"
        )
    return category


def _parse_attachments(value) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError('Attachments must be a list of strings')
    return [v.strip() for v in value if v.strip()]


def _parse_statuses(raw) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        raw = raw.split(',')
    statuses = [s.strip().lower() for s in raw if s and s.strip()]
    invalid = [s for s in statuses if s not in REQUEST_STATUSES]
    if invalid:
        raise ValidationError(f"Invalid status filter: {', '.join(invalid)}")
    return statuses


def _parse_ids(request_ids) -> list[str]:
    if not isinstance(request_ids, (list, tuple)):
        raise ValidationError('Request IDs are required')
    ids = [str(i).strip() for i in request_ids if i is not None and str(i).strip()]
    if not ids:
        raise ValidationError('Request IDs are required')
    return ids


def parse_pagination(page=None, limit=None) -> tuple[int, int]:
    default_limit = int(current_app.config.get('REFUND_PAGE_SIZE_DEFAULT', 10))
    max_limit = int(current_app.config.get('REFUND_PAGE_SIZE_MAX', 100))
    try:
        page = int(page) if page not in (None, '') else 1
        limit = int(limit) if limit not in (None, '') else default_limit
    except (TypeError, ValueError):
        raise ValidationError('page and limit must be integers')
    page = max(1, page)
    limit = max(1, min(limit, max_limit))
    return page, limit


def _check_order_total(amount: Decimal, order: Optional[Order]) -> None:
    if not current_app.config.get('REFUND_ENFORCE_ORDER_TOTAL', True) or order is None:
        return
    if amount > Decimal(str(order.total_amount)):
        raise ValidationError('Refund amount cannot exceed the order total')


# ------------------------------------------------------------
# Guard helpers
# ------------------------------------------------------------

def _scoped(principal: Principal, request_id: str) -> dict:
    return {'id': request_id, **scope_filter(principal)}


def _raise_guard_failure(principal: Principal, request_id: str):
    current = store.find_one(_scoped(principal, request_id))
    if current is None:
        raise NotFound()
    raise InvalidStateTransition(
        f'Request is not pending (current status: {current.request_status})'
    )


def _transition(
    principal: Principal,
    request_id: str,
    *,
    target: str,
    patch: dict,
) -> RefundRequest:
    if not can_transition(from_status=STATUS_PENDING, to_status=target):
        raise InvalidStateTransition(f'Cannot move a request to {target}')

    values = {
        'requestStatus': target,
        'processedBy': principal.id,
        'processedAt': datetime.now(),
        **patch,
    }
    updated = store.find_by_id_and_update(
        request_id,
        values,
        scope=scope_filter(principal),
        conditional_on={'requestStatus': STATUS_PENDING},
    )
    if updated is None:
        _raise_guard_failure(principal, request_id)

    current_app.logger.info(
        "Refund request %s -> %s by %s %s", request_id, target, principal.role, principal.id
    )
    return updated


# ------------------------------------------------------------
# Operations
# ------------------------------------------------------------

def create_refund_request(principal: Optional[Principal], data: dict[str, Any]) -> RefundRequest:
    """Open a refund claim against one of the caller's orders.

    The order must belong to the caller, be in an eligible status and have no
    existing request. `vendorId` and `amount` default to the order's values.
    Fields outside the create allow-list (e.g. `customerId`) are ignored.
    """
    authorize(principal, ACTION_CREATE)
    data = data or {}

    order_id = _clean_text(data.get('orderId'))
    if not order_id:
        raise ValidationError('orderId is required')

    reason = _clean_text(data.get('reason'))
    if not reason:
        raise ValidationError('Reason is required')

    order = find_record(Order, {'id': order_id, 'customer_id': principal.id})
    if order is None:
        raise NotFound('Order not found')

    eligible = tuple(current_app.config.get('REFUND_ELIGIBLE_ORDER_STATUSES', ('delivered',)))
    if order.order_status not in eligible:
        raise ValidationError(f"Only {'/'.join(eligible)} orders can be refunded")

    if store.find_one({'orderId': order_id}) is not None:
        raise ValidationError('Refund request already exists for this order')

    vendor_id = _clean_text(data.get('vendorId')) or order.vendor_id
    if vendor_id != order.vendor_id:
        raise ValidationError('vendorId does not match the order')

    raw_amount = data.get('amount')
    amount = _parse_amount(order.total_amount if raw_amount in (None, '') else raw_amount)
    _check_order_total(amount, order)

    refund_request = RefundRequest(
        order_id=order.id,
        customer_id=principal.id,
        vendor_id=vendor_id,
        amount=amount,
        reason=reason,
        refund_reason_category=_parse_category(data.get('refundReasonCategory')),
        notes=_clean_text(data.get('notes')) or None,
        attachments=_parse_attachments(data.get('attachments')),
        request_status=STATUS_PENDING,
    )
    store.insert(refund_request, conflict_message='Refund request already exists for this order')
    current_app.logger.info(
        "Refund request %s created for order %s by customer %s",
        refund_request.id, order.id, principal.id,
    )
    return refund_request


def get_refund_request(principal: Optional[Principal], request_id: str) -> RefundRequest:
    authorize(principal, ACTION_READ)
    refund_request = store.find_one(_scoped(principal, request_id))
    if refund_request is None:
        raise NotFound()
    return refund_request


def list_refund_requests(
    principal: Optional[Principal],
    *,
    status=None,
    customer_id: Optional[str] = None,
    vendor_id: Optional[str] = None,
    page=None,
    limit=None,
) -> tuple[list[RefundRequest], dict]:
    """Role-scoped listing, newest first.

    `customer_id` / `vendor_id` narrow the result for admins only; other
    roles are always pinned to their own scope.
    """
    authorize(principal, ACTION_READ)
    page, limit = parse_pagination(page, limit)

    filters: dict[str, Any] = {}
    if principal.is_admin:
        if customer_id:
            filters['customerId'] = customer_id
        if vendor_id:
            filters['vendorId'] = vendor_id
    filters.update(scope_filter(principal))

    statuses = _parse_statuses(status)
    if statuses:
        filters['requestStatus'] = statuses

    rows, total = store.find(filters, page=page, limit=limit)
    pagination = {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if total else 0,
    }
    return rows, pagination


def approve_refund_request(
    principal: Optional[Principal],
    request_id: str,
    notes: Optional[str] = None,
) -> RefundRequest:
    authorize(principal, ACTION_APPROVE)
    return _transition(
        principal,
        request_id,
        target=STATUS_ACCEPTED,
        patch={'adminNotes': _clean_text(notes) or DEFAULT_APPROVE_NOTE},
    )


def reject_refund_request(
    principal: Optional[Principal],
    request_id: str,
    reason: Optional[str] = None,
) -> RefundRequest:
    authorize(principal, ACTION_REJECT)
    text = _clean_text(reason) or DEFAULT_REJECT_NOTE
    return _transition(
        principal,
        request_id,
        target=STATUS_REJECTED,
        patch={'adminNotes': text, 'rejectionReason': text},
    )


def update_refund_request(
    principal: Optional[Principal],
    request_id: str,
    patch: dict[str, Any],
) -> RefundRequest:
    """Write allow-listed fields and restamp the processor.

    A `requestStatus` in the patch must be a terminal status and is applied
    with the same pending-only conditional write as approve/reject.
    """
    authorize(principal, ACTION_UPDATE)
    if not isinstance(patch, dict) or not patch:
        raise ValidationError('No fields to update')
    check_fields(principal, ACTION_UPDATE, patch.keys())

    values: dict[str, Any] = {}
    for field, value in patch.items():
        if field == 'amount':
            values[field] = _parse_amount(value)
        elif field == 'refundReasonCategory':
            values[field] = _parse_category(value)
        elif field == 'attachments':
            values[field] = _parse_attachments(value)
        elif field == 'reason':
            values[field] = _clean_text(value)
            if not values[field]:
                raise ValidationError('Reason is required')
        elif field == 'requestStatus':
            values[field] = _clean_text(value).lower()
        else:
            values[field] = _clean_text(value) or None

    conditional_on = None
    if 'requestStatus' in values:
        target = values['requestStatus']
        if target not in REQUEST_STATUSES:
            raise ValidationError(f"Invalid status. Allowed: {', '.join(REQUEST_STATUSES)}")
        if not can_transition(from_status=STATUS_PENDING, to_status=target):
            raise InvalidStateTransition(f'Cannot move a request to {target}')
        conditional_on = {'requestStatus': STATUS_PENDING}

    if 'amount' in values:
        current = get_refund_request(principal, request_id)
        _check_order_total(values['amount'], current.order)

    values['processedBy'] = principal.id
    values['processedAt'] = datetime.now()

    updated = store.find_by_id_and_update(
        request_id,
        values,
        scope=scope_filter(principal),
        conditional_on=conditional_on,
    )
    if updated is None:
        if conditional_on:
            _raise_guard_failure(principal, request_id)
        raise NotFound()
    return updated


def update_refund_request_field(
    principal: Optional[Principal],
    request_id: str,
    field: Optional[str],
    value: Any,
) -> RefundRequest:
    authorize(principal, ACTION_UPDATE)
    field = _clean_text(field)
    if not field:
        raise ValidationError('Field is required')
    return update_refund_request(principal, request_id, {field: value})


def apply_action(
    principal: Optional[Principal],
    request_id: str,
    action: Optional[str],
    data: Optional[dict] = None,
) -> RefundRequest:
    """Dispatch a named action: approve, reject or update_notes."""
    authorize(principal, ACTION_UPDATE)
    data = data if isinstance(data, dict) else {}
    action = _clean_text(action).lower()

    if action == 'approve':
        return approve_refund_request(principal, request_id, notes=data.get('notes'))
    if action == 'reject':
        return reject_refund_request(principal, request_id, reason=data.get('reason'))
    if action == 'update_notes':
        return update_refund_request(principal, request_id, {'adminNotes': data.get('notes')})
    raise ValidationError('Invalid action')


def delete_refund_request(principal: Optional[Principal], request_id: str) -> None:
    """Hard delete (admin only). No state guard."""
    authorize(principal, ACTION_DELETE)
    if not store.delete_by_id(request_id):
        raise NotFound()
    current_app.logger.info("Refund request %s deleted by admin %s", request_id, principal.id)


def bulk_transition(
    principal: Optional[Principal],
    request_ids,
    action: Optional[str],
    admin_notes: Optional[str] = None,
) -> int:
    """Accept or reject many pending requests in one conditional write.

    Only ids that are in the caller's scope and still pending are touched;
    the return value is how many were.
    """
    action = _clean_text(action).lower()
    if action in ('accept', 'approve'):
        authorize(principal, ACTION_APPROVE)
        target = STATUS_ACCEPTED
    elif action == 'reject':
        authorize(principal, ACTION_REJECT)
        target = STATUS_REJECTED
    else:
        authorize(principal, ACTION_UPDATE)
        raise ValidationError('Invalid action')

    ids = _parse_ids(request_ids)
    note = _clean_text(admin_notes)
    patch: dict[str, Any] = {
        'requestStatus': target,
        'processedBy': principal.id,
        'processedAt': datetime.now(),
    }
    if note:
        patch['adminNotes'] = note
        if target == STATUS_REJECTED:
            patch['rejectionReason'] = note

    filters = {'id': ids, **scope_filter(principal), 'requestStatus': STATUS_PENDING}
    modified = store.update_many(filters, patch)
    current_app.logger.info(
        "Bulk %s of %d refund request(s) by %s %s: %d modified",
        target, len(ids), principal.role, principal.id, modified,
    )
    return modified


def bulk_delete_rejected(principal: Optional[Principal], request_ids) -> int:
    authorize(principal, ACTION_DELETE)
    ids = _parse_ids(request_ids)
    return store.delete_many({'id': ids, 'requestStatus': STATUS_REJECTED})
