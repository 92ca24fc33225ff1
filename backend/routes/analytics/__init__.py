"""
Analytics API Routes

- dashboard.py: the seven-view dashboard, filter options, project list and
  cache management, all scoped to the authenticated tenant

All modules share the same blueprint (analytics_bp) registered at /api.
"""

from flask import Blueprint, current_app

# Create the shared blueprint
analytics_bp = Blueprint('analytics', __name__)

EXTENSION_KEY = 'tender_dashboard'


def get_components():
    """Per-app service objects built in create_app(): service, store, cache."""
    return current_app.extensions[EXTENSION_KEY]


@analytics_bp.after_request
def add_private_cache_headers(response):
    """Dashboard data is per-tenant: never cache it in shared proxies."""
    response.headers['Cache-Control'] = 'private, no-store'
    response.headers['Vary'] = 'Authorization'
    return response


# Import route modules to register their routes with the blueprint
from routes.analytics import dashboard  # noqa: E402,F401
