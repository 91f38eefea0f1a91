"""
TubeX Marketplace Application

Entry point for the API server and the Socket.IO gateway.

- app/api/: REST blueprints (services, orders, quotes, payments, chat, admin, auth)
- app/realtime.py: Socket.IO events (join, private_message, support_message)
- services/: repositories holding the business logic
- database/: SQLAlchemy models and session handling
"""
import logging

from app_init import create_app
from app.realtime import socketio

logger = logging.getLogger(__name__)

app = create_app()


if __name__ == '__main__':
    port = app.config['PORT']
    logger.info(f"🚀 Server running on port {port}")
    socketio.run(app, host='0.0.0.0', port=port, debug=app.debug, allow_unsafe_werkzeug=app.debug)
