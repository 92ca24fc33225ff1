"""
Flask Application Factory - Tender Dashboard Analytics

Multi-tenant: every API call resolves its tenant from a verified bearer token,
and every read, cache key and cache invalidation is scoped to that tenant.

Service objects (record store, query cache, dashboard service) are built here
once per app and stored on app.extensions['tender_dashboard'].
"""

import os
from dataclasses import dataclass

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from config import Config
from models.database import db
from services.dashboard_service import DashboardService
from services.query_cache import QueryCache
from services.record_store import RecordStore
from constants import get_ttl_seconds

# Initialize Flask-Migrate (will be initialized in create_app)
migrate = Migrate()


@dataclass
class DashboardComponents:
    store: RecordStore
    cache: QueryCache
    service: DashboardService
    tz_name: str


def build_components(app: Flask, engine) -> DashboardComponents:
    """Wire store -> cache -> service from app config."""
    cfg = app.config
    cache = QueryCache(
        max_size=cfg['DASHBOARD_CACHE_MAX_SIZE'],
        default_ttl=get_ttl_seconds(cfg['DASHBOARD_CACHE_TTL_CLASS']),
        enabled=cfg['DASHBOARD_CACHE_ENABLED'],
    )
    store = RecordStore(engine)
    service = DashboardService(
        store.fetch,
        cache,
        ttl_class=cfg['DASHBOARD_CACHE_TTL_CLASS'],
        max_workers=cfg['DASHBOARD_MAX_WORKERS'],
        timeout_seconds=cfg['DASHBOARD_QUERY_TIMEOUT_SECONDS'],
        tz_name=cfg['ANALYTICS_TIMEZONE'],
    )
    # Writes through the store drop that tenant's cached views
    store.set_change_listener(service.invalidate_tenant)
    return DashboardComponents(store=store, cache=cache, service=service, tz_name=cfg['ANALYTICS_TIMEZONE'])


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    origins = app.config.get('CORS_ORIGINS', '*')
    CORS(app,
         resources={r"/api/*": {"origins": origins if origins == '*' else origins.split(',')}},
         methods=["GET", "OPTIONS", "DELETE"],
         allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
         expose_headers=["X-Request-ID"],
         supports_credentials=False)

    # === API MIDDLEWARE ===
    from api.middleware import (
        setup_error_handlers,
        setup_request_id_middleware,
        setup_request_logging_middleware,
    )
    setup_request_id_middleware(app)
    setup_request_logging_middleware(app)
    setup_error_handlers(app)

    # Initialize SQLAlchemy
    db.init_app(app)

    # Initialize Flask-Migrate for database migrations
    migrate.init_app(app, db)

    with app.app_context():
        # Import all models before create_all to ensure tables are created
        from models.tender_project import TenderProject  # noqa: F401

        env = (os.environ.get("ENV") or os.environ.get("FLASK_ENV") or os.environ.get("APP_ENV") or "").lower()
        is_prod = env in {"prod", "production"}
        allow_create = app.config.get("TESTING") or not is_prod

        if allow_create:
            db.create_all()
            app.logger.info("Database initialized (tender_projects)")
        else:
            app.logger.info("Database ready (schema creation disabled in production)")

        app.extensions['tender_dashboard'] = build_components(app, db.engine)

    from routes.analytics import analytics_bp
    app.register_blueprint(analytics_bp, url_prefix='/api')

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=app.config.get('DEBUG', False))
