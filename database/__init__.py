"""
Database package for the TubeX Marketplace.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    configure_database,
    get_engine,
    get_db_session,
    init_db,
    drop_db,
    check_db_connection
)

from database.models import (
    User,
    Service,
    Quote,
    Order,
    Communication,
    Chat,
    ChatParticipant,
    ChatMessage
)

__all__ = [
    # Connection
    'Base',
    'configure_database',
    'get_engine',
    'get_db_session',
    'init_db',
    'drop_db',
    'check_db_connection',
    # Models
    'User',
    'Service',
    'Quote',
    'Order',
    'Communication',
    'Chat',
    'ChatParticipant',
    'ChatMessage'
]
