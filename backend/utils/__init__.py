"""
Utility modules for the backend.
"""
from .tenant import (
    get_tenant_from_request,
    require_tenant,
    verify_token,
)

__all__ = [
    'get_tenant_from_request',
    'require_tenant',
    'verify_token',
]
