"""Refund settlement routes.

- Customer: initiates the payout for an accepted refund request.
- Admin: completes, fails or retries settlements; purges failed ones.
- Everyone: lists settlements within their own scope.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from services import settlement
from services.errors import ValidationError
from utils.activity_logger import log_activity
from utils.identity import current_principal


refunds_bp = Blueprint('refunds', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


@refunds_bp.route('/initiate', methods=['POST'])
def initiate_refund():
    principal = current_principal()
    data = _json_body()
    refund = settlement.initiate_refund(
        principal,
        data.get('requestRefundId'),
        data.get('razorpayPaymentId'),
    )

    log_activity(
        user_id=principal.id,
        action='Initiated refund',
        entity_type='refund',
        entity_id=refund.id,
        details={
            'request_refund_id': refund.request_refund_id,
            'razorpay_refund_id': refund.razorpay_refund_id,
        },
    )

    return jsonify({
        'success': True,
        'message': 'Refund initiated successfully',
        'refund': refund.to_dict(include_related=True),
        'razorpayRefundId': refund.razorpay_refund_id,
    }), 201


@refunds_bp.route('', methods=['GET'])
def list_refunds():
    principal = current_principal()
    rows, pagination = settlement.list_refunds(
        principal,
        status=request.args.get('status'),
        page=request.args.get('page'),
        limit=request.args.get('limit'),
    )
    return jsonify({
        'success': True,
        'refunds': [r.to_dict(include_related=True) for r in rows],
        'pagination': pagination,
    }), 200


@refunds_bp.route('/<string:refund_id>', methods=['PATCH'])
def refund_action(refund_id: str):
    """complete / fail / retry (admin)."""
    principal = current_principal()
    data = _json_body()
    refund = settlement.apply_refund_action(principal, refund_id, data.get('action'), data.get('data'))

    log_activity(
        user_id=principal.id,
        action=f"Refund {refund.refund_status}",
        entity_type='refund',
        entity_id=refund.id,
        details={'action': data.get('action')},
    )

    return jsonify({
        'success': True,
        'refund': refund.to_dict(include_related=True),
    }), 200


@refunds_bp.route('', methods=['DELETE'])
def delete_failed_refunds():
    principal = current_principal()
    ids = [s.strip() for s in (request.args.get('ids') or '').split(',') if s.strip()]
    deleted = settlement.bulk_delete_failed_refunds(principal, ids)

    log_activity(
        user_id=principal.id,
        action='Deleted failed refunds',
        entity_type='refund',
        details={'refund_ids': ids, 'deleted': deleted},
    )

    return jsonify({
        'success': True,
        'message': f'{deleted} failed refunds deleted',
        'deletedCount': deleted,
    }), 200
