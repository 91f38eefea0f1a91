"""
TubeX Marketplace - Application Package

This package contains the modular backend structure:
- api/: HTTP route handlers (Flask Blueprints)
- realtime.py: Socket.IO event handlers
- utils/: Shared request helpers

The app factory lives in app_init.py at the project root; business logic
lives in the services/ repositories.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.pages import pages_bp
from app.api.auth_routes import auth_bp
from app.api.admin import admin_bp
from app.api.services import services_bp
from app.api.orders import orders_bp
from app.api.quotes import quotes_bp
from app.api.payments import payments_bp
from app.api.chat import chat_bp


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from app_init.create_app after the database is configured.
    """
    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(chat_bp)
    logger.info(f"Registered {len(app.blueprints)} blueprints")


__all__ = ['register_blueprints', 'pages_bp', 'auth_bp', 'admin_bp', 'services_bp',
           'orders_bp', 'quotes_bp', 'payments_bp', 'chat_bp']
