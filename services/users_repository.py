"""
Users Repository - Database access layer for marketplace users.
"""

import logging
from datetime import datetime
from typing import Dict, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash, check_password_hash

from database.models import User
from errors import ValidationError
from services.base import BaseRepository
from validators import USER_ROLES, validate_email

logger = logging.getLogger(__name__)


class UsersRepository(BaseRepository):
    """Repository for user database operations."""

    def __init__(self, session: Session):
        super().__init__(session)

    def list_users(self, role: Optional[str] = 'client', search: str = None,
                   page: int = 1, limit: int = 20) -> Dict:
        """List users, newest first, optionally filtered by role and a search term."""
        query = self.session.query(User)
        if role:
            query = query.filter(User.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
                User.company.ilike(pattern)
            ))
        users, pagination = self._paginate(query.order_by(User.created_at.desc()), page, limit)
        return {'users': [u.to_dict() for u in users], 'pagination': pagination}

    def get_user(self, user_id: str) -> User:
        """Get a user by ID."""
        return self._get_or_404(User, user_id, 'User')

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (returns model for auth)."""
        if not email:
            return None
        return self.session.query(User).filter(User.email == email.strip().lower()).first()

    def create_user(self, data: Dict) -> Dict:
        """Create a new user."""
        email = (data.get('email') or '').strip().lower()
        is_valid, error = validate_email(email)
        if not is_valid:
            raise ValidationError(error, field='email')
        role = data.get('role', 'client')
        if role not in USER_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(USER_ROLES)}", field='role')
        if self.get_user_by_email(email):
            raise ValidationError("Email is already registered", field='email')

        user = User(
            email=email,
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
            company=data.get('company'),
            phone=data.get('phone'),
            password_hash=generate_password_hash(data.get('password', ''), method='pbkdf2:sha256'),
            role=role,
            is_active=data.get('isActive', True)
        )
        self.session.add(user)
        self.session.flush()
        logger.info(f"Created {role} user: {user.id}")
        return user.to_dict()

    def verify_password(self, user: User, password: str) -> bool:
        """Verify a user's password."""
        return check_password_hash(user.password_hash, password or '')

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the active user matching the credentials, or None."""
        user = self.get_user_by_email(email)
        if not user or not user.is_active or not self.verify_password(user, password):
            return None
        user.last_login = datetime.utcnow()
        self.session.flush()
        return user

    def count_by_role(self, role: str) -> int:
        return self.session.query(User).filter(User.role == role).count()
