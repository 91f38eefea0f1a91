"""
Application Initialization Module
Initializes the Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
from database.connection import configure_database, init_db
from database.seed import seed_database
import logging

logger = logging.getLogger(__name__)


def create_app(config_name=None, payment_gateway=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_name: 'development', 'production' or 'testing'; defaults to FLASK_ENV
        payment_gateway: Optional gateway object replacing the simulated one

    Returns:
        Configured Flask application instance
    """
    from app import register_blueprints
    from app.realtime import socketio

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("🚀 Initializing TubeX Marketplace")
    logger.info("=" * 60)
    logger.info(f"Environment: {config_name or os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    # Database: engine, schema, default admin
    initialize_database(app)

    if payment_gateway is not None:
        app.extensions['payment_gateway'] = payment_gateway

    register_blueprints(app)

    # Register health check endpoints
    register_health_checks(app)

    socketio.init_app(
        app,
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE'),
        logger=False,
        engineio_logger=False
    )
    logger.info("✅ Socket.IO gateway ready")

    if app.config.get('QUOTE_SWEEP_ENABLED'):
        from services.scheduler import init_scheduler
        init_scheduler(app.config['QUOTE_SWEEP_INTERVAL'])

    logger.info("✅ Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Configure the engine, create missing tables and seed the default admin

    Args:
        app: Flask application instance
    """
    configure_database(app.config.get('DATABASE_URL'), app.config.get('SQLALCHEMY_ENGINE_OPTIONS'))
    init_db()
    logger.info("✅ Database schema ready")

    if app.config.get('SEED_ADMIN'):
        seed_database(app.config['ADMIN_EMAIL'], app.config['ADMIN_PASSWORD'])
