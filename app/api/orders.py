"""
Order Routes Blueprint

Handles the order lifecycle:
- /api/orders: List (scoped to the caller) / create (clients)
- /api/orders/<order_id>: Get
- /api/orders/<order_id>/status: Workflow transitions (admin)
- /api/orders/<order_id>/communication: Communication log
- /api/orders/<order_id>/deliverables: Deliverables (admin)
- /api/orders/<order_id>/milestones: Milestones (admin)
- /api/orders/<order_id>/review: Client review of a completed order
"""

from flask import Blueprint, current_app, jsonify, request
import logging

import auth
from database.connection import get_db_session
from services.order_service import OrderRepository
from validators import ensure_valid, validate_message_request, validate_string_length
from errors import ValidationError
from app.utils.helpers import get_json_body, get_pagination

logger = logging.getLogger(__name__)

# Create blueprint
orders_bp = Blueprint('orders_bp', __name__)


def _orders(session):
    return OrderRepository(
        session,
        number_prefix=current_app.config.get('ORDER_NUMBER_PREFIX', 'TBX'),
        currency=current_app.config.get('DEFAULT_CURRENCY', 'USD')
    )


# ============================================================================
# ORDERS
# ============================================================================

@orders_bp.route('/api/orders', methods=['GET'])
@auth.login_required
def list_orders():
    """List orders; clients only see their own"""
    page, limit = get_pagination(default_limit=10)
    with get_db_session() as session:
        user = auth.load_current_user(session)
        result = _orders(session).list_orders(
            user, status=request.args.get('status') or None, page=page, limit=limit
        )
    return jsonify({'success': True, **result})


@orders_bp.route('/api/orders', methods=['POST'])
@auth.role_required('client')
def create_order():
    data = get_json_body()
    with get_db_session() as session:
        user = auth.load_current_user(session)
        order = _orders(session).create_order(user.id, data)
    return jsonify({'success': True, 'message': 'Order created successfully', 'order': order}), 201


@orders_bp.route('/api/orders/<order_id>', methods=['GET'])
@auth.login_required
def get_order(order_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        order = _orders(session).get_order(order_id, user)
    return jsonify({'success': True, 'order': order})


@orders_bp.route('/api/orders/<order_id>/status', methods=['PUT', 'PATCH'])
@auth.admin_required
def update_order_status(order_id):
    """Move an order along its workflow; notes are logged as a communication"""
    data = get_json_body()
    status = data.get('status')
    if not status:
        raise ValidationError("Status is required", field='status')
    notes = data.get('notes')
    if notes is not None:
        is_valid, error = validate_string_length(notes, max_length=1000)
        if not is_valid:
            raise ValidationError(error, field='notes')

    with get_db_session() as session:
        order = _orders(session).transition_status(
            order_id, status, actor_id=auth.current_user_id(), notes=(notes or '').strip() or None
        )
    return jsonify({'success': True, 'message': 'Order status updated successfully', 'order': order})


# ============================================================================
# COMMUNICATION
# ============================================================================

@orders_bp.route('/api/orders/<order_id>/communication', methods=['POST'])
@auth.login_required
def add_order_communication(order_id):
    data = get_json_body()
    ensure_valid(validate_message_request(data))
    with get_db_session() as session:
        user = auth.load_current_user(session)
        entry = _orders(session).add_communication(
            order_id, user,
            data.get('message', data.get('content')),
            is_internal=data.get('isInternal', False),
            attachments=data.get('attachments')
        )
    return jsonify({'success': True, 'communication': entry}), 201


# ============================================================================
# PROGRESS TRACKING (admin)
# ============================================================================

@orders_bp.route('/api/orders/<order_id>/deliverables', methods=['POST'])
@auth.admin_required
def add_deliverable(order_id):
    data = get_json_body()
    with get_db_session() as session:
        order = _orders(session).add_deliverable(order_id, data)
    return jsonify({'success': True, 'order': order}), 201


@orders_bp.route('/api/orders/<order_id>/milestones', methods=['POST'])
@auth.admin_required
def add_milestone(order_id):
    data = get_json_body()
    with get_db_session() as session:
        order = _orders(session).add_milestone(order_id, data)
    return jsonify({'success': True, 'order': order}), 201


@orders_bp.route('/api/orders/<order_id>/milestones/<int:index>', methods=['PATCH'])
@auth.admin_required
def update_milestone(order_id, index):
    data = get_json_body()
    with get_db_session() as session:
        order = _orders(session).update_milestone_status(order_id, index, data.get('status'))
    return jsonify({'success': True, 'order': order})


# ============================================================================
# REVIEWS
# ============================================================================

@orders_bp.route('/api/orders/<order_id>/review', methods=['POST'])
@auth.role_required('client')
def review_order(order_id):
    data = get_json_body()
    with get_db_session() as session:
        user = auth.load_current_user(session)
        order = _orders(session).submit_review(order_id, user.id, data.get('rating'), data.get('comment'))
    return jsonify({'success': True, 'message': 'Review submitted', 'order': order})
