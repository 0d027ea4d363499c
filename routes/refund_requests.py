"""Refund request routes - request + approval workflow.

Workflow:
- Customer: opens a refund request against a delivered order (pending).
- Vendor (own requests) / admin: approves or rejects it; both are final.
- Admin: may hard-delete requests.

The caller's role always comes from the bearer token. Domain errors raised
by the service layer are rendered by the app-level error handler.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from services import refund_requests as lifecycle
from services.errors import ValidationError
from utils.activity_logger import log_activity
from utils.identity import current_principal
from utils.notifications import notify_customer_status_change, notify_vendor_new_request


refund_requests_bp = Blueprint('refund_requests', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _ids_from_query() -> list[str]:
    raw = request.args.get('ids') or ''
    return [s.strip() for s in raw.split(',') if s.strip()]


@refund_requests_bp.route('', methods=['POST'])
def create_refund_request():
    """Create a refund request (customer)."""
    principal = current_principal()
    rr = lifecycle.create_refund_request(principal, _json_body())

    log_activity(
        user_id=principal.id,
        action='Requested refund',
        entity_type='refund_request',
        entity_id=rr.id,
        details={'order_id': rr.order_id, 'amount': float(rr.amount)},
    )
    notify_vendor_new_request(rr)

    return jsonify({
        'success': True,
        'message': 'Refund request submitted successfully',
        'refundRequest': rr.to_dict(include_related=True),
    }), 201


@refund_requests_bp.route('', methods=['GET'])
def list_refund_requests():
    principal = current_principal()
    rows, pagination = lifecycle.list_refund_requests(
        principal,
        status=request.args.get('status'),
        customer_id=request.args.get('customerId'),
        vendor_id=request.args.get('vendorId'),
        page=request.args.get('page'),
        limit=request.args.get('limit'),
    )
    return jsonify({
        'success': True,
        'refundRequests': [r.to_dict(include_related=True) for r in rows],
        'pagination': pagination,
    }), 200


@refund_requests_bp.route('', methods=['PUT'])
def bulk_update_refund_requests():
    """Accept or reject several pending requests at once (vendor/admin)."""
    principal = current_principal()
    data = _json_body()
    modified = lifecycle.bulk_transition(
        principal,
        data.get('requestIds'),
        data.get('action'),
        admin_notes=data.get('adminNotes'),
    )

    log_activity(
        user_id=principal.id,
        action=f"Bulk {data.get('action')} refund requests",
        entity_type='refund_request',
        details={'request_ids': data.get('requestIds'), 'modified': modified},
    )

    return jsonify({
        'success': True,
        'message': f'{modified} refund requests updated',
        'modifiedCount': modified,
    }), 200


@refund_requests_bp.route('', methods=['DELETE'])
def bulk_delete_refund_requests():
    """Delete rejected requests by id (admin)."""
    principal = current_principal()
    ids = _ids_from_query()
    deleted = lifecycle.bulk_delete_rejected(principal, ids)

    log_activity(
        user_id=principal.id,
        action='Deleted rejected refund requests',
        entity_type='refund_request',
        details={'request_ids': ids, 'deleted': deleted},
    )

    return jsonify({
        'success': True,
        'message': f'{deleted} refund requests deleted',
        'deletedCount': deleted,
    }), 200


@refund_requests_bp.route('/<string:request_id>', methods=['GET'])
def get_refund_request(request_id: str):
    principal = current_principal()
    rr = lifecycle.get_refund_request(principal, request_id)
    return jsonify({
        'success': True,
        'refundRequest': rr.to_dict(include_related=True),
    }), 200


@refund_requests_bp.route('/<string:request_id>', methods=['PUT'])
def update_refund_request(request_id: str):
    principal = current_principal()
    data = _json_body()
    rr = lifecycle.update_refund_request(principal, request_id, data)

    log_activity(
        user_id=principal.id,
        action='Updated refund request',
        entity_type='refund_request',
        entity_id=rr.id,
        details={'fields': sorted(data.keys())},
    )
    if 'requestStatus' in data:
        notify_customer_status_change(rr)

    return jsonify({
        'success': True,
        'refundRequest': rr.to_dict(include_related=True),
    }), 200


@refund_requests_bp.route('/<string:request_id>', methods=['PATCH'])
def patch_refund_request(request_id: str):
    """Single-field update: {"field": ..., "value": ...}."""
    principal = current_principal()
    data = _json_body()
    field = data.get('field')
    rr = lifecycle.update_refund_request_field(principal, request_id, field, data.get('value'))

    log_activity(
        user_id=principal.id,
        action=f'Updated refund request field {field}',
        entity_type='refund_request',
        entity_id=rr.id,
        details={'field': field},
    )
    if field == 'requestStatus':
        notify_customer_status_change(rr)

    return jsonify({
        'success': True,
        'refundRequest': rr.to_dict(include_related=True),
    }), 200


@refund_requests_bp.route('/<string:request_id>/actions', methods=['POST'])
def refund_request_action(request_id: str):
    """Approve / reject / update_notes (vendor/admin)."""
    principal = current_principal()
    data = _json_body()
    action = str(data.get('action') or '').strip().lower()
    rr = lifecycle.apply_action(principal, request_id, action, data.get('data'))

    messages = {
        'approve': 'Refund request approved',
        'reject': 'Refund request rejected',
        'update_notes': 'Refund request notes updated',
    }

    log_activity(
        user_id=principal.id,
        action=messages[action],
        entity_type='refund_request',
        entity_id=rr.id,
        details={'order_id': rr.order_id, 'status': rr.request_status},
    )
    if action in ('approve', 'reject'):
        notify_customer_status_change(rr)

    return jsonify({
        'success': True,
        'message': messages[action],
        'refundRequest': rr.to_dict(include_related=True),
    }), 200


@refund_requests_bp.route('/<string:request_id>', methods=['DELETE'])
def delete_refund_request(request_id: str):
    principal = current_principal()
    lifecycle.delete_refund_request(principal, request_id)

    log_activity(
        user_id=principal.id,
        action='Deleted refund request',
        entity_type='refund_request',
        entity_id=request_id,
    )

    return jsonify({
        'success': True,
        'message': 'Refund request deleted successfully',
    }), 200
