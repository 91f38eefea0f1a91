"""
Authentication Routes Blueprint

Minimal session surface the SPA's route guard relies on:
- /api/auth/login: Start a session
- /api/auth/logout: End it
- /api/auth/me: Authentication state and role
"""

from flask import Blueprint, jsonify
import logging

import auth
from database.connection import get_db_session
from database.models import User
from app.utils.helpers import get_json_body

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """API endpoint for user login"""
    data = get_json_body()
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        return jsonify({'success': False, 'error': 'Email and password required'}), 400

    with get_db_session() as session:
        user, error = auth.authenticate_user(session, email, password)
        if error:
            return jsonify({'success': False, 'error': error}), 401
        auth.login_user(user)
        payload = user.to_dict()

    return jsonify({
        'success': True,
        'user': payload,
        'redirect': auth.dashboard_for(payload['role'])
    })


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """API endpoint for user logout"""
    auth.logout_user()
    return jsonify({'success': True})


@auth_bp.route('/api/auth/me', methods=['GET'])
def api_me():
    """Who is logged in; the SPA polls this before rendering guarded routes"""
    if not auth.is_authenticated():
        return jsonify({'success': True, 'authenticated': False, 'user': None})

    with get_db_session() as session:
        user = session.get(User, auth.current_user_id())
        if user is None or not user.is_active:
            auth.logout_user()
            return jsonify({'success': True, 'authenticated': False, 'user': None})
        payload = user.to_dict()

    return jsonify({
        'success': True,
        'authenticated': True,
        'user': payload,
        'dashboard': auth.dashboard_for(payload['role'])
    })
