"""
Root pytest configuration for backend tests.

Provides:
- Path setup so `from services...` / `from utils...` imports work
- Record / timestamp helpers for aggregation tests
- Flask app + client on a temp-file SQLite database
- A RecordStore bound to its own engine
"""

import sys
from datetime import datetime
from pathlib import Path

# Add backend directory to Python path so imports like
# `from services.time_window import ...` and `from utils.sanitize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest
from dateutil import tz
from sqlalchemy import create_engine

SHANGHAI = tz.gettz("Asia/Shanghai")


def shanghai_ts(year, month, day, hour=0, minute=0, second=0) -> int:
    """Epoch seconds for a wall-clock time in Asia/Shanghai."""
    return int(datetime(year, month, day, hour, minute, second, tzinfo=SHANGHAI).timestamp())


@pytest.fixture
def ts():
    return shanghai_ts


@pytest.fixture
def make_record():
    """Factory for TenderRecord with sensible defaults."""
    from services.analytics.base import TenderRecord

    counter = {'n': 0}

    def _make(**kwargs):
        counter['n'] += 1
        kwargs.setdefault('id', f"p{counter['n']}")
        kwargs.setdefault('tenant_id', 'tenant-a')
        kwargs.setdefault('title', f"项目{counter['n']}")
        return TenderRecord(**kwargs)

    return _make


@pytest.fixture
def window_2024():
    """Year-to-date window evaluated on 2024-12-31 12:00 Shanghai."""
    from services.time_window import resolve_time_window

    return resolve_time_window("year", now=datetime(2024, 12, 31, 12, 0, tzinfo=SHANGHAI))


@pytest.fixture
def no_filters():
    from services.analytics.base import DimensionFilters

    return DimensionFilters()


@pytest.fixture
def db_url(tmp_path):
    # File-backed so every pool thread gets its own connection to the same data
    return f"sqlite:///{tmp_path / 'tenders.db'}"


@pytest.fixture
def engine(db_url):
    from models.database import db
    from models.tender_project import TenderProject  # noqa: F401

    eng = create_engine(db_url, connect_args={'check_same_thread': False})
    db.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    from services.record_store import RecordStore

    return RecordStore(engine)


@pytest.fixture
def test_config(db_url):
    from config import Config

    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = db_url
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'check_same_thread': False}}
        JWT_SECRET = 'test-jwt-secret'
        JWT_ALGORITHM = 'HS256'
        DASHBOARD_CACHE_ENABLED = True
        DASHBOARD_CACHE_MAX_SIZE = 100
        DASHBOARD_QUERY_TIMEOUT_SECONDS = 5

    return TestConfig


@pytest.fixture
def app(test_config):
    """Create test Flask application."""
    from app import create_app

    app = create_app(test_config)
    yield app
    app.extensions['tender_dashboard'].service.shutdown()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """auth_headers('tenant-a') -> {'Authorization': 'Bearer <jwt>'}"""
    from utils.tenant import generate_token

    def _headers(tenant_id='tenant-a'):
        with app.app_context():
            token = generate_token(tenant_id)
        return {'Authorization': f'Bearer {token}'}

    return _headers
