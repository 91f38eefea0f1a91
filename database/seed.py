"""
Database seeding for the TubeX Marketplace.
Creates the default admin user if the database has none.
"""

import logging
from werkzeug.security import generate_password_hash
from database.connection import get_db_session
from database.models import User

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@tubex.com"
DEFAULT_ADMIN_PASSWORD = "Admin123"


def seed_default_admin(session, email=DEFAULT_ADMIN_EMAIL, password=DEFAULT_ADMIN_PASSWORD):
    """Create default admin user if none exists."""
    admin = session.query(User).filter_by(role='admin').first()
    if admin:
        logger.info(f"Admin user already exists: {admin.email}")
        return admin

    admin = User(
        email=email,
        first_name="Admin",
        last_name="User",
        company="TubeX IT Services",
        password_hash=generate_password_hash(password, method='pbkdf2:sha256'),
        role='admin',
        is_active=True
    )
    session.add(admin)
    session.flush()
    logger.info(f"Created default admin user: {admin.email}")
    return admin


def seed_database(email=DEFAULT_ADMIN_EMAIL, password=DEFAULT_ADMIN_PASSWORD):
    """
    Seed the database with default data if empty.
    Call this at application startup.
    """
    try:
        with get_db_session() as session:
            seed_default_admin(session, email, password)
        logger.info("Database seeding completed successfully")
        return True
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


if __name__ == '__main__':
    from database.connection import init_db

    logging.basicConfig(level=logging.INFO)
    init_db()
    seed_database()
