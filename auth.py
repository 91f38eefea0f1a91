"""
User Authentication and Authorization Module
Handles the login session and role-based route protection

Users live in the database (see services/users_repository.py); the Flask
session only carries the user's id and role.
"""
from functools import wraps
from flask import session, redirect, jsonify, request
import logging

from database.models import User
from errors import PermissionDeniedError
from services.users_repository import UsersRepository

logger = logging.getLogger(__name__)

STAFF_ROLES = ('admin', 'support')

# SPA landing page per role
DASHBOARDS = {
    'admin': '/admin',
    'support': '/admin',
    'client': '/client/dashboard'
}


def authenticate_user(db_session, email, password):
    """Authenticate user with email and password"""
    user = UsersRepository(db_session).authenticate(email, password)
    if not user:
        logger.info(f"Failed login for {email}")
        return None, "Invalid email or password"
    logger.info(f"User authenticated: {user.email}")
    return user, None


def login_user(user):
    """Set user session"""
    session['user_id'] = user.id
    session['user_role'] = user.role
    session['user_name'] = user.name
    session.permanent = True


def logout_user():
    """Clear user session"""
    session.clear()


def is_authenticated():
    """Check if user is logged in"""
    return 'user_id' in session


def current_user_id():
    return session.get('user_id')


def current_user_role():
    return session.get('user_role')


def is_admin():
    return current_user_role() == 'admin'


def dashboard_for(role):
    return DASHBOARDS.get(role, DASHBOARDS['client'])


def load_current_user(db_session) -> User:
    """
    Load the logged-in user inside the caller's database session.

    A user deactivated after logging in is rejected.
    """
    user = db_session.get(User, current_user_id()) if is_authenticated() else None
    if user is None or not user.is_active:
        raise PermissionDeniedError("Account is not active")
    return user


def _wants_json():
    return request.is_json or request.path.startswith('/api/')


def _unauthenticated():
    if _wants_json():
        return jsonify({'success': False, 'error': 'Authentication required', 'redirect': '/login'}), 401
    return redirect(f"/login?next={request.path}")


# Decorators for route protection
def login_required(f):
    """Decorator to require login for a route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return _unauthenticated()
        return f(*args, **kwargs)
    return decorated_function


def role_required(*roles):
    """Decorator to require one of the given roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not is_authenticated():
                return _unauthenticated()

            if current_user_role() not in roles:
                if _wants_json():
                    return jsonify({
                        'success': False,
                        'error': 'Permission denied',
                        'required': list(roles)
                    }), 403
                return redirect(dashboard_for(current_user_role()))

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Decorator to require the admin role"""
    return role_required('admin')(f)


def staff_required(f):
    """Decorator to require an admin or support role"""
    return role_required(*STAFF_ROLES)(f)
