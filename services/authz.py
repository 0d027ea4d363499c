"""Role- and scope-based authorization for refund operations.

The acting principal is always passed in explicitly; its role comes from the
verified session token, never from the request body.

Capabilities are a `{(role, action): allowed fields}` table. A role missing
from the table for an action may not perform it at all; for write actions
the field set is the allow-list for the patch.
"""

from __future__ import annotations

from dataclasses import dataclass

from models.user import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_VENDOR, ROLES
from services.errors import Forbidden, Unauthenticated, ValidationError


ACTION_CREATE = 'create'
ACTION_READ = 'read'
ACTION_UPDATE = 'update'
ACTION_APPROVE = 'approve'
ACTION_REJECT = 'reject'
ACTION_DELETE = 'delete'
ACTION_SETTLE = 'settle'
ACTION_MANAGE_SETTLEMENT = 'manage_settlement'


@dataclass(frozen=True)
class Principal:
    id: str
    role: str

    def __post_init__(self):
        if not self.id:
            raise ValueError('Principal id is required')
        if self.role not in ROLES:
            raise ValueError(f'Unknown role: {self.role!r}')

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_vendor(self) -> bool:
        return self.role == ROLE_VENDOR

    @property
    def is_customer(self) -> bool:
        return self.role == ROLE_CUSTOMER


_CREATE_FIELDS = frozenset({
    'orderId', 'vendorId', 'amount', 'reason', 'refundReasonCategory', 'notes', 'attachments',
})
_VENDOR_UPDATE_FIELDS = frozenset({'requestStatus', 'adminNotes', 'rejectionReason'})
_ADMIN_UPDATE_FIELDS = _VENDOR_UPDATE_FIELDS | frozenset({
    'amount', 'reason', 'refundReasonCategory', 'notes', 'attachments',
})

CAPABILITIES: dict[tuple[str, str], frozenset[str]] = {
    (ROLE_CUSTOMER, ACTION_CREATE): _CREATE_FIELDS,
    (ROLE_CUSTOMER, ACTION_READ): frozenset(),
    (ROLE_VENDOR, ACTION_READ): frozenset(),
    (ROLE_ADMIN, ACTION_READ): frozenset(),
    (ROLE_VENDOR, ACTION_UPDATE): _VENDOR_UPDATE_FIELDS,
    (ROLE_ADMIN, ACTION_UPDATE): _ADMIN_UPDATE_FIELDS,
    (ROLE_VENDOR, ACTION_APPROVE): frozenset({'adminNotes'}),
    (ROLE_ADMIN, ACTION_APPROVE): frozenset({'adminNotes'}),
    (ROLE_VENDOR, ACTION_REJECT): frozenset({'adminNotes', 'rejectionReason'}),
    (ROLE_ADMIN, ACTION_REJECT): frozenset({'adminNotes', 'rejectionReason'}),
    (ROLE_ADMIN, ACTION_DELETE): frozenset(),
    (ROLE_CUSTOMER, ACTION_SETTLE): frozenset(),
    (ROLE_ADMIN, ACTION_MANAGE_SETTLEMENT): frozenset({'refundStatus', 'refundNotes'}),
}

# Denials on these actions are reported as 403; everything else as 401.
_FORBIDDEN_ON_DENY = {ACTION_DELETE, ACTION_MANAGE_SETTLEMENT}

_DENY_MESSAGES = {
    ACTION_DELETE: 'Admin access required',
    ACTION_MANAGE_SETTLEMENT: 'Admin access required',
}


def authorize(principal: Principal | None, action: str) -> frozenset[str]:
    """Return the field allow-list for `action`, or raise if not permitted."""
    if principal is None:
        raise Unauthenticated()

    allowed = CAPABILITIES.get((principal.role, action))
    if allowed is None:
        message = _DENY_MESSAGES.get(action, 'Unauthorized')
        if action in _FORBIDDEN_ON_DENY:
            raise Forbidden(message)
        raise Unauthenticated(message)
    return allowed


def check_fields(principal: Principal | None, action: str, fields) -> None:
    allowed = authorize(principal, action)
    rejected = sorted(f for f in fields if f not in allowed)
    if rejected:
        raise ValidationError(
            f"Field(s) cannot be updated: {', '.join(rejected)}",
            details={'fields': rejected},
        )


def scope_filter(principal: Principal) -> dict:
    """Ownership filter restricting records to the principal's scope."""
    if principal.is_customer:
        return {'customerId': principal.id}
    if principal.is_vendor:
        return {'vendorId': principal.id}
    return {}
