"""
Chat Routes Blueprint

REST side of messaging; live delivery happens in app/realtime.py:
- /api/chat: List the caller's chats / open a chat
- /api/chat/<chat_id>: Get with messages
- /api/chat/<chat_id>/messages: Send a message
- /api/chat/<chat_id>/read: Mark every message as read
- /api/chat/<chat_id>/messages/<message_id>/read: Read receipt for one message
- /api/chat/<chat_id>/close | reopen | archive: Status changes
"""

from flask import Blueprint, jsonify
import logging

import auth
from database.connection import get_db_session
from services.chat_service import ChatRepository
from validators import ensure_valid, validate_message_request
from app.utils.helpers import get_json_body

logger = logging.getLogger(__name__)

# Create blueprint
chat_bp = Blueprint('chat_bp', __name__)


@chat_bp.route('/api/chat', methods=['GET'])
@auth.login_required
def list_chats():
    with get_db_session() as session:
        user = auth.load_current_user(session)
        chats = ChatRepository(session).list_chats(user.id)
    return jsonify({'success': True, 'chats': chats})


@chat_bp.route('/api/chat', methods=['POST'])
@auth.login_required
def create_chat():
    data = get_json_body()
    with get_db_session() as session:
        user = auth.load_current_user(session)
        chat = ChatRepository(session).create_chat(user, data)
    return jsonify({'success': True, 'chat': chat}), 201


@chat_bp.route('/api/chat/<chat_id>', methods=['GET'])
@auth.login_required
def get_chat(chat_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        chat = ChatRepository(session).get_chat(chat_id, user)
    return jsonify({'success': True, 'chat': chat})


@chat_bp.route('/api/chat/<chat_id>/messages', methods=['POST'])
@auth.login_required
def send_message(chat_id):
    data = get_json_body()
    ensure_valid(validate_message_request(data))
    with get_db_session() as session:
        user = auth.load_current_user(session)
        message = ChatRepository(session).add_message(
            chat_id, user,
            data.get('content', data.get('message')),
            message_type=data.get('messageType', 'text'),
            attachments=data.get('attachments')
        )
    return jsonify({'success': True, 'message': message}), 201


# ============================================================================
# READ RECEIPTS
# ============================================================================

@chat_bp.route('/api/chat/<chat_id>/read', methods=['POST'])
@auth.login_required
def mark_chat_read(chat_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        marked = ChatRepository(session).mark_chat_read(chat_id, user)
    return jsonify({'success': True, 'marked': marked})


@chat_bp.route('/api/chat/<chat_id>/messages/<message_id>/read', methods=['POST'])
@auth.login_required
def mark_message_read(chat_id, message_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        repo = ChatRepository(session)
        repo.get_chat_model(chat_id, user)
        message = repo.mark_read(chat_id, message_id, user.id)
    return jsonify({'success': True, 'message': message})


# ============================================================================
# STATUS
# ============================================================================

@chat_bp.route('/api/chat/<chat_id>/close', methods=['PATCH'])
@auth.login_required
def close_chat(chat_id):
    data = get_json_body()
    with get_db_session() as session:
        user = auth.load_current_user(session)
        repo = ChatRepository(session)
        repo.get_chat_model(chat_id, user)
        chat = repo.close_chat(chat_id, user.id, data.get('reason'))
    return jsonify({'success': True, 'chat': chat})


@chat_bp.route('/api/chat/<chat_id>/reopen', methods=['PATCH'])
@auth.login_required
def reopen_chat(chat_id):
    with get_db_session() as session:
        user = auth.load_current_user(session)
        repo = ChatRepository(session)
        repo.get_chat_model(chat_id, user)
        chat = repo.reopen_chat(chat_id)
    return jsonify({'success': True, 'chat': chat})


@chat_bp.route('/api/chat/<chat_id>/archive', methods=['PATCH'])
@auth.admin_required
def archive_chat(chat_id):
    with get_db_session() as session:
        chat = ChatRepository(session).archive_chat(chat_id)
    return jsonify({'success': True, 'chat': chat})
