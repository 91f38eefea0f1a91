"""
Real-time messaging gateway (Flask-SocketIO).

Each socket joins a room named by its user id; admin and support sockets
also join the ``admins`` room. Private messages are stored through
ChatRepository before they are pushed, so a recipient who is offline
finds them on the next fetch. Live delivery is best-effort.

Events:
- join(userId?)  identity taken from the logged-in session
- private_message({recipientId, message, chatId?})  ack: {success, delivered, chatId, message}
- support_message({message, chatId?})  relayed to the admins room only
- disconnect
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Optional, Set

from flask import request, session
from flask_socketio import SocketIO, emit, join_room, leave_room

from database.connection import get_db_session
from database.models import User
from errors import AuthenticationRequiredError, MarketplaceError, PermissionDeniedError, ValidationError
from services.chat_service import ChatRepository
from validators import validate_string_length

logger = logging.getLogger(__name__)

ADMINS_ROOM = 'admins'

socketio = SocketIO()


class PresenceRegistry:
    """Which user each live socket belongs to."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_sid: Dict[str, Dict] = {}
        self._by_user: Dict[str, Set[str]] = {}

    def add(self, sid: str, user_id: str, role: str) -> Optional[Dict]:
        """Register the socket; returns the entry it replaced, if any"""
        with self._lock:
            previous = self._discard(sid)
            self._by_sid[sid] = {'userId': user_id, 'role': role}
            self._by_user.setdefault(user_id, set()).add(sid)
            return previous

    def remove(self, sid: str) -> Optional[str]:
        with self._lock:
            entry = self._discard(sid)
            return entry['userId'] if entry else None

    def _discard(self, sid: str) -> Optional[Dict]:
        # caller holds the lock
        entry = self._by_sid.pop(sid, None)
        if entry is None:
            return None
        sids = self._by_user.get(entry['userId'], set())
        sids.discard(sid)
        if not sids:
            self._by_user.pop(entry['userId'], None)
        return entry

    def user_for(self, sid: str) -> Optional[Dict]:
        with self._lock:
            return self._by_sid.get(sid)

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return bool(self._by_user.get(user_id))

    def online_users(self):
        with self._lock:
            return list(self._by_user)

    def clear(self):
        with self._lock:
            self._by_sid.clear()
            self._by_user.clear()


presence = PresenceRegistry()


def _require_joined() -> Dict:
    entry = presence.user_for(request.sid)
    if entry is None:
        raise PermissionDeniedError("Join before sending messages")
    return entry


def _payload(data) -> Dict:
    if not isinstance(data, dict):
        raise ValidationError("Event payload must be an object")
    return data


# ============================================================================
# EVENTS
# ============================================================================

@socketio.on('connect')
def handle_connect(auth=None):
    logger.info(f"👤 Socket connected: {request.sid}")


@socketio.on('join')
def handle_join(requested=None):
    """
    Join the session user's own room, and the admins room for staff.

    The identity always comes from the logged-in HTTP session; a userId in
    the payload is only checked against it.
    """
    user_id = session.get('user_id')
    if not user_id:
        raise AuthenticationRequiredError("Log in before joining")

    if isinstance(requested, dict):
        requested = requested.get('userId')
    if requested and requested != user_id:
        raise PermissionDeniedError("Cannot join as another user")

    with get_db_session() as db:
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise PermissionDeniedError("Unknown or inactive user")
        role = user.role
        is_staff = user.is_staff

    previous = presence.add(request.sid, user_id, role)
    if previous and previous['userId'] != user_id:
        leave_room(previous['userId'])
        leave_room(ADMINS_ROOM)

    join_room(user_id)
    rooms = [user_id]
    if is_staff:
        join_room(ADMINS_ROOM)
        rooms.append(ADMINS_ROOM)

    logger.info(f"👤 User {user_id} joined rooms {rooms}")
    emit('joined', {'userId': user_id, 'rooms': rooms})
    return {'success': True, 'rooms': rooms}


@socketio.on('private_message')
def handle_private_message(data):
    """Store a direct message, then push it to the recipient's room"""
    data = _payload(data)
    sender = _require_joined()
    sender_id = sender['userId']
    if data.get('senderId') and data['senderId'] != sender_id:
        raise PermissionDeniedError("senderId does not match the joined user")

    recipient_id = data.get('recipientId')
    if not recipient_id:
        raise ValidationError("recipientId is required", field='recipientId')
    content = data.get('message', data.get('content'))

    with get_db_session() as db:
        stored = ChatRepository(db).send_private_message(
            sender_id, recipient_id, content, chat_id=data.get('chatId')
        )

    delivered = presence.is_online(recipient_id)
    emit('private_message', {
        'chatId': stored['chatId'],
        'senderId': sender_id,
        'message': stored['message']['content'],
        'stored': stored['message'],
        'timestamp': stored['message']['timestamp']
    }, to=recipient_id)

    logger.debug(f"Private message {stored['message']['id']} to {recipient_id} (delivered={delivered})")
    return {'success': True, 'delivered': delivered, **stored}


@socketio.on('support_message')
def handle_support_message(data):
    """
    Relay a support message to staff.

    With a chatId the message is also stored in that chat.
    """
    data = _payload(data)
    sender = _require_joined()
    content = data.get('message', data.get('content'))
    is_valid, error = validate_string_length(content, 1, 2000)
    if not is_valid:
        raise ValidationError(error, field='message')
    content = content.strip()

    stored = None
    if data.get('chatId'):
        with get_db_session() as db:
            user = db.get(User, sender['userId'])
            stored = ChatRepository(db).add_message(data['chatId'], user, content)

    outgoing = {
        'message': content,
        'chatId': data.get('chatId'),
        'senderId': sender['userId'],
        'senderRole': sender['role'],
        'timestamp': stored['timestamp'] if stored else datetime.utcnow().isoformat()
    }
    if stored:
        outgoing['stored'] = stored
    emit('support_message', outgoing, to=ADMINS_ROOM, include_self=False)
    return {'success': True, 'stored': stored is not None}


@socketio.on('disconnect')
def handle_disconnect(reason=None):
    user_id = presence.remove(request.sid)
    logger.info(f"👤 Socket disconnected: {request.sid} (user={user_id})")


@socketio.on_error_default
def handle_socket_error(e):
    """Report errors to the calling socket only"""
    if isinstance(e, MarketplaceError):
        logger.warning(f"Socket event rejected for {request.sid}: {e.message}")
        payload = e.to_dict()
    else:
        logger.error(f"Socket event failed: {e}", exc_info=True)
        payload = {'success': False, 'error': 'Internal Server Error', 'message': 'An unexpected error occurred'}
    emit('error', payload)
    return payload
