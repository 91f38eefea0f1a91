"""
Centralized Configuration for the TubeX Marketplace backend
Manages environment-specific settings, secrets, and service configurations.
"""
import os
from datetime import timedelta


def normalize_database_url(url):
    """Rewrite Heroku/Render style postgres:// URLs for SQLAlchemy"""
    if url and url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB JSON bodies
    PORT = int(os.environ.get('PORT', '5000'))

    # Frontend / CORS Settings
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', FRONTEND_URL).split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']
    FRONTEND_DIST = os.environ.get('FRONTEND_DIST', 'frontend/dist')

    # Database Settings
    DATABASE_URL = normalize_database_url(
        os.environ.get('DATABASE_URL', 'sqlite:///marketplace.db')
    )
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Marketplace rules
    ORDER_NUMBER_PREFIX = 'TBX'
    QUOTE_NUMBER_PREFIX = 'QTE'
    DEFAULT_CURRENCY = 'USD'
    QUOTE_VALIDITY_DAYS = int(os.environ.get('QUOTE_VALIDITY_DAYS', '30'))

    # Background quote expiry sweep
    QUOTE_SWEEP_ENABLED = os.environ.get('QUOTE_SWEEP_ENABLED', 'false').lower() == 'true'
    QUOTE_SWEEP_INTERVAL = int(os.environ.get('QUOTE_SWEEP_INTERVAL', '3600'))  # seconds

    # Real-time messaging
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')

    # Seed admin (local development convenience only)
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@tubex.com')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'Admin123')
    SEED_ADMIN = os.environ.get('SEED_ADMIN', 'true').lower() == 'true'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'marketplace.log')
    LOG_TO_FILE = True

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    DATABASE_URL = normalize_database_url(os.environ.get('DATABASE_URL'))
    SEED_ADMIN = os.environ.get('SEED_ADMIN', 'false').lower() == 'true'
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'testing-secret-key-with-at-least-32-characters'
    DATABASE_URL = 'sqlite://'
    SEED_ADMIN = False
    QUOTE_SWEEP_ENABLED = False
    LOG_TO_FILE = False
    CORS_ORIGINS = ['http://localhost:3000']


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config(name=None):
    """Get configuration by name, falling back to the FLASK_ENV environment variable"""
    env = name or os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)


def is_production():
    """True when FLASK_ENV selects the production configuration"""
    return os.environ.get('FLASK_ENV', 'development') == 'production'
