import logging
import os
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
from dotenv import load_dotenv

from utils.normalize import to_bool

load_dotenv()

logger = logging.getLogger('config')

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_SQLITE_URL = 'sqlite:///' + os.path.join(BACKEND_DIR, 'tender_dashboard.db')


def _get_database_url():
    """
    Get and normalize DATABASE_URL.

    PostgreSQL is the production database. Without DATABASE_URL a local SQLite
    file is used so the app can start for development.

    For cloud PostgreSQL, automatically adds sslmode=require if missing.
    """
    database_url = os.getenv('DATABASE_URL')

    if not database_url:
        logger.warning(
            "DATABASE_URL is not set; falling back to local SQLite at %s", DEFAULT_SQLITE_URL
        )
        return DEFAULT_SQLITE_URL

    # Handle Render's postgres:// format (SQLAlchemy requires postgresql://)
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)

    if not database_url.startswith(('postgresql://', 'postgresql+psycopg2://')):
        return database_url

    # For cloud PostgreSQL (non-localhost), ensure SSL is enabled
    parsed = urlparse(database_url)
    is_localhost = parsed.hostname in ('localhost', '127.0.0.1', None)

    if not is_localhost:
        query_params = parse_qs(parsed.query)
        if 'sslmode' not in query_params:
            query_params['sslmode'] = ['require']
            new_query = urlencode(query_params, doseq=True)
            database_url = urlunparse((
                parsed.scheme, parsed.netloc, parsed.path,
                parsed.params, new_query, parsed.fragment
            ))

    return database_url


def _engine_options(database_url):
    if database_url.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}}
    # Connection pool settings for resilience against timeouts
    return {
        'pool_pre_ping': True,      # Verify connection is alive before using
        'pool_recycle': 300,        # Recycle connections every 5 minutes
        'pool_timeout': 60,         # Wait up to 60s for a connection from pool
        'pool_size': 5,
        'max_overflow': 10,
        'connect_args': {
            'connect_timeout': 30,
        }
    }


def _env_bool(name, default):
    return to_bool(os.getenv(name), default=default, field=name)


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
    JWT_SECRET = os.getenv('JWT_SECRET', os.getenv('SECRET_KEY', 'dev-jwt-secret-key'))
    JWT_ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
    JWT_EXPIRATION_HOURS = int(os.getenv('JWT_EXPIRATION_HOURS', '24'))

    DEBUG = _env_bool('FLASK_DEBUG', False)

    SQLALCHEMY_DATABASE_URI = _get_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI)

    # Day-of-week / hour bucketing and calendar windows use this zone
    ANALYTICS_TIMEZONE = os.getenv('ANALYTICS_TIMEZONE', 'Asia/Shanghai')

    # Dashboard cache + execution
    DASHBOARD_CACHE_ENABLED = _env_bool('DASHBOARD_CACHE_ENABLED', True)
    DASHBOARD_CACHE_MAX_SIZE = int(os.getenv('DASHBOARD_CACHE_MAX_SIZE', '1000'))
    DASHBOARD_CACHE_TTL_CLASS = os.getenv('DASHBOARD_CACHE_TTL_CLASS', 'medium')
    DASHBOARD_QUERY_TIMEOUT_SECONDS = float(os.getenv('DASHBOARD_QUERY_TIMEOUT_SECONDS', '10'))
    DASHBOARD_MAX_WORKERS = int(os.getenv('DASHBOARD_MAX_WORKERS', '7'))

    # Comma-separated origins for /api/*; "*" allows all
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Request logging: watchlist prefixes are always logged, the rest sampled
    REQUEST_LOG_ENABLED = _env_bool('REQUEST_LOG_ENABLED', True)
    REQUEST_LOG_SAMPLE_RATE = float(os.getenv('REQUEST_LOG_SAMPLE_RATE', '0.0'))
    REQUEST_LOG_ENDPOINTS = os.getenv('REQUEST_LOG_ENDPOINTS', '')
    REQUEST_LOG_SLOW_MS = float(os.getenv('REQUEST_LOG_SLOW_MS', '2000'))
