"""
Admin Routes Blueprint

Handles the admin dashboard API:
- /api/admin/dashboard: Headline counts, monthly revenue, in-flight orders
- /api/admin/users: Client directory with search and pagination
"""

from flask import Blueprint, jsonify, request
import logging

import auth
from database.connection import get_db_session
from services.dashboard_service import DashboardRepository
from services.users_repository import UsersRepository
from app.utils.helpers import get_pagination

logger = logging.getLogger(__name__)

# Create blueprint
admin_bp = Blueprint('admin_bp', __name__)


@admin_bp.route('/api/admin/dashboard', methods=['GET'])
@auth.admin_required
def dashboard():
    with get_db_session() as session:
        result = DashboardRepository(session).get_stats()
    return jsonify({'success': True, **result})


@admin_bp.route('/api/admin/users', methods=['GET'])
@auth.admin_required
def list_users():
    """List client accounts, newest first"""
    page, limit = get_pagination(default_limit=20, max_limit=100)
    with get_db_session() as session:
        result = UsersRepository(session).list_users(
            role=request.args.get('role', 'client'),
            search=request.args.get('search') or None,
            page=page,
            limit=limit
        )
    return jsonify({'success': True, **result})
