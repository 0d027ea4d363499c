"""Identity helpers.

Resolves the acting principal from the bearer token. The token's `sub` is
the user id and its `role` claim the marketplace role.
"""

from __future__ import annotations

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from services.authz import Principal


def current_principal() -> Principal | None:
    """Principal for the current request, or None if no token was sent.

    Expired or malformed tokens are not swallowed: they propagate to the JWT
    error loaders registered in `extensions.py`.
    """
    verify_jwt_in_request(optional=True)

    identity = get_jwt_identity()
    if identity is None:
        return None

    claims = get_jwt() or {}
    role = str(claims.get('role') or '').strip().lower()
    try:
        return Principal(id=str(identity), role=role)
    except ValueError:
        return None
