"""
Tenant Identity Utility

Resolves the calling tenant from the Authorization header. Tokens are issued
elsewhere; this module only verifies them.

SECURITY: the tenant id ALWAYS comes from a verified token, never from a
query parameter or request body.

Token claims:
    tenant_id  - preferred
    sub        - used when tenant_id is absent
"""
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

import jwt
from flask import current_app, g, request

from constants import TENANT_ID_MAX_LENGTH


def generate_token(tenant_id: str, expires_in_hours: Optional[int] = None) -> str:
    """Issue a tenant token (scripts and tests)."""
    hours = expires_in_hours or current_app.config.get('JWT_EXPIRATION_HOURS', 24)
    now = datetime.now(timezone.utc)
    payload = {
        'tenant_id': tenant_id,
        'iat': now,
        'exp': now + timedelta(hours=hours),
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'),
    )


def verify_token(token: str) -> Optional[str]:
    """Verify JWT token and return tenant_id, or None if invalid/expired."""
    try:
        payload = jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')],
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None

    tenant_id = payload.get('tenant_id') or payload.get('sub')
    if not tenant_id or not isinstance(tenant_id, str):
        return None
    if len(tenant_id) > TENANT_ID_MAX_LENGTH:
        return None
    return tenant_id


def get_tenant_from_request() -> Optional[str]:
    """
    Extract and verify the tenant from the Authorization header.

    Returns:
        Tenant id if the bearer token is valid, None otherwise
    """
    auth_header = request.headers.get('Authorization')
    if not auth_header or not auth_header.startswith('Bearer '):
        return None

    token = auth_header.split(' ', 1)[1].strip()
    if not token:
        return None
    return verify_token(token)


def require_tenant(f):
    """
    Decorator to require an authenticated tenant.

    Sets g.tenant_id. Returns 401 if the token is missing or invalid.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        tenant_id = get_tenant_from_request()
        if not tenant_id:
            from api.middleware.error_envelope import make_error_response
            return make_error_response(
                "UNAUTHORIZED",
                "A valid bearer token with a tenant claim is required",
            )
        g.tenant_id = tenant_id
        return f(*args, **kwargs)
    return decorated_function
