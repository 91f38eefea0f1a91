"""
Quote Routes Blueprint

Handles quote requests and their conversion into orders:
- /api/quotes: List (scoped to the caller) / create (clients)
- /api/quotes/<quote_id>: Get / admin update
- /api/quotes/<quote_id>/respond: Admin pricing
- /api/quotes/<quote_id>/accept: Client acceptance (creates the order)
- /api/quotes/<quote_id>/reject: Rejection by the client or an admin
- /api/quotes/<quote_id>/communication: Communication log
- /api/quotes/expire: Run the expiry sweep now (admin)
"""

from flask import Blueprint, current_app, jsonify, request
import logging

import auth
from database.connection import get_db_session
from services.quote_service import QuoteRepository
from validators import ensure_valid, validate_message_request, validate_quote_response
from app.utils.helpers import get_json_body, get_pagination

logger = logging.getLogger(__name__)

# Create blueprint
quotes_bp = Blueprint('quotes_bp', __name__)


def _quotes(session):
    config = current_app.config
    return QuoteRepository(
        session,
        number_prefix=config.get('QUOTE_NUMBER_PREFIX', 'QTE'),
        validity_days=config.get('QUOTE_VALIDITY_DAYS', 30),
        order_prefix=config.get('ORDER_NUMBER_PREFIX', 'TBX')
    )


# ============================================================================
# QUOTES
# ============================================================================

@quotes_bp.route('/api/quotes', methods=['GET'])
@auth.login_required
def list_quotes():
    page, limit = get_pagination(default_limit=10)
    with get_db_session() as session:
        user = auth.load_current_user(session)
        result = _quotes(session).list_quotes(
            user, status=request.args.get('status') or None, page=page, limit=limit
        )
    return jsonify({'success': True, **result})


@quotes_bp.route('/api/quotes', methods=['POST'])
@auth.role_required('client')
def create_quote():
    data = get_json_body()
    with get_db_session() as session:
        user = auth.load_current_user(session)
        quote = _quotes(session).create_quote(user.id, data)
    return jsonify({'success': True, 'message': 'Quote request submitted successfully', 'quote': quote}), 201


@quotes_bp.route('/api/quotes/<quote_id>', methods=['GET'])
@auth.login_required
def get_quote(quote_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        quote = _quotes(session).get_quote(quote_id, user)
    return jsonify({'success': True, 'quote': quote})


@quotes_bp.route('/api/quotes/<quote_id>', methods=['PATCH'])
@auth.admin_required
def update_quote(quote_id):
    data = get_json_body()
    with get_db_session() as session:
        quote = _quotes(session).update_quote(quote_id, data)
    return jsonify({'success': True, 'quote': quote})


# ============================================================================
# DECISIONS
# ============================================================================

@quotes_bp.route('/api/quotes/<quote_id>/respond', methods=['PUT', 'PATCH'])
@auth.admin_required
def respond_to_quote(quote_id):
    data = get_json_body()
    ensure_valid(validate_quote_response(data))
    with get_db_session() as session:
        quote = _quotes(session).respond(
            quote_id, auth.current_user_id(),
            data['quotedAmount'], data.get('response', data.get('message'))
        )
    return jsonify({'success': True, 'message': 'Quote response sent successfully', 'quote': quote})


@quotes_bp.route('/api/quotes/<quote_id>/accept', methods=['PUT', 'PATCH'])
@auth.role_required('client')
def accept_quote(quote_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        result = _quotes(session).accept(quote_id, user.id)
    return jsonify({'success': True, 'message': 'Quote accepted and order created', **result})


@quotes_bp.route('/api/quotes/<quote_id>/reject', methods=['PUT', 'PATCH'])
@auth.login_required
def reject_quote(quote_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        quote = _quotes(session).reject(quote_id, user)
    return jsonify({'success': True, 'message': 'Quote rejected', 'quote': quote})


@quotes_bp.route('/api/quotes/<quote_id>/communication', methods=['POST'])
@auth.login_required
def add_quote_communication(quote_id):
    data = get_json_body()
    ensure_valid(validate_message_request(data))
    with get_db_session() as session:
        user = auth.load_current_user(session)
        entry = _quotes(session).add_communication(
            quote_id, user,
            data.get('message', data.get('content')),
            is_internal=data.get('isInternal', False),
            attachments=data.get('attachments')
        )
    return jsonify({'success': True, 'communication': entry}), 201


@quotes_bp.route('/api/quotes/expire', methods=['POST'])
@auth.admin_required
def expire_quotes():
    """Run the expiry sweep on demand"""
    with get_db_session() as session:
        expired = _quotes(session).expire_overdue()
    return jsonify({'success': True, 'expired': expired})
