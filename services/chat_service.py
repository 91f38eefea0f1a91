"""
Chat Repository - persistent side of support and direct messaging.

Messages and participants live in their own tables keyed by chat id; the
API still presents a chat as one document with embedded lists.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from database.models import Chat, ChatMessage, ChatParticipant, User
from errors import NotFoundError, PermissionDeniedError, ValidationError
from services.base import BaseRepository
from validators import (
    MESSAGE_TYPES,
    ensure_valid,
    validate_chat_request,
    validate_string_length,
)
from workflows import CHAT_WORKFLOW

logger = logging.getLogger(__name__)

LISTED_STATUSES = ('active', 'closed')


class ChatRepository(BaseRepository):
    """Repository for chats and chat messages."""

    def __init__(self, session: Session):
        super().__init__(session)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_chat_model(self, chat_id: str, user: Optional[User] = None) -> Chat:
        """Load a chat; only participants and staff may see it."""
        chat = self._get_or_404(Chat, chat_id, 'Chat')
        if user is not None and not user.is_staff and chat.participant(user.id) is None:
            raise PermissionDeniedError("Access denied")
        return chat

    def get_chat(self, chat_id: str, user: User) -> Dict:
        chat = self.get_chat_model(chat_id, user)
        return chat.to_dict(viewer_id=user.id)

    def list_chats(self, user_id: str) -> List[Dict]:
        """Active and closed chats the user takes part in, most recent activity first."""
        chats = self.session.query(Chat).join(ChatParticipant).filter(
            ChatParticipant.user_id == user_id,
            Chat.status.in_(LISTED_STATUSES)
        ).order_by(Chat.last_activity.desc()).all()
        return [c.to_dict(include_messages=False, viewer_id=user_id) for c in chats]

    # =========================================================================
    # CREATION
    # =========================================================================

    def create_chat(self, user: User, data: Dict) -> Dict:
        """Open a chat with its first message."""
        ensure_valid(validate_chat_request(data))
        now = datetime.utcnow()
        chat = Chat(
            type=data['type'],
            subject=data.get('subject'),
            related_order_id=data.get('relatedOrder'),
            related_quote_id=data.get('relatedQuote'),
            status=CHAT_WORKFLOW.initial,
            priority=data.get('priority') or 'medium',
            tags=[],
            last_activity=now
        )
        chat.participants.append(ChatParticipant(user_id=user.id, role=user.role, joined_at=now, last_seen=now))
        self.session.add(chat)
        self.session.flush()
        self._append(chat, user.id, data['message'].strip())
        logger.info(f"Created {chat.type} chat {chat.id} for {user.id}")
        return chat.to_dict(viewer_id=user.id)

    def find_direct_chat(self, user_a: str, user_b: str) -> Optional[Chat]:
        """Most recent active general chat that both users take part in."""
        with_b = select(ChatParticipant.chat_id).where(ChatParticipant.user_id == user_b)
        return self.session.query(Chat).join(ChatParticipant).filter(
            ChatParticipant.user_id == user_a,
            Chat.id.in_(with_b),
            Chat.type == 'general',
            Chat.status == 'active'
        ).order_by(Chat.last_activity.desc()).first()

    # =========================================================================
    # MESSAGES
    # =========================================================================

    def add_message(self, chat_id: str, sender: User, content: str,
                    message_type: str = 'text', attachments: List[Dict] = None) -> Dict:
        """
        Append a message to a chat and stamp lastActivity.

        Staff who are not participants yet join the chat by writing to it.
        """
        chat = self._get_or_404(Chat, chat_id, 'Chat')
        if chat.participant(sender.id) is None:
            if not sender.is_staff:
                raise PermissionDeniedError("Access denied")
            chat.participants.append(ChatParticipant(user_id=sender.id, role=sender.role))
        message = self._append(chat, sender.id, content, message_type, attachments)
        return message.to_dict()

    def send_private_message(self, sender_id: str, recipient_id: str, content: str,
                             chat_id: str = None) -> Dict:
        """
        Store a direct message durably before anything is pushed to sockets.

        Uses the given chat or the general chat between the two users,
        creating one if they have none.
        """
        sender = self._get_or_404(User, sender_id, 'User')
        recipient = self._get_or_404(User, recipient_id, 'User')
        if sender.id == recipient.id:
            raise ValidationError("Cannot message yourself", field='recipientId')

        if chat_id:
            chat = self.get_chat_model(chat_id, sender)
            if chat.participant(recipient.id) is None:
                chat.participants.append(ChatParticipant(user_id=recipient.id, role=recipient.role))
        else:
            chat = self.find_direct_chat(sender.id, recipient.id)
            if chat is None:
                chat = self._open_direct_chat(sender, recipient)
        if chat.participant(sender.id) is None:
            chat.participants.append(ChatParticipant(user_id=sender.id, role=sender.role))

        message = self._append(chat, sender.id, content)
        logger.debug(f"Stored private message {message.id} in chat {chat.id}")
        return {'chatId': chat.id, 'message': message.to_dict()}

    def _open_direct_chat(self, sender: User, recipient: User) -> Chat:
        now = datetime.utcnow()
        chat = Chat(type='general', status=CHAT_WORKFLOW.initial, priority='medium',
                    tags=[], last_activity=now)
        for user in (sender, recipient):
            chat.participants.append(
                ChatParticipant(user_id=user.id, role=user.role, joined_at=now, last_seen=now)
            )
        self.session.add(chat)
        self.session.flush()
        logger.info(f"Opened direct chat {chat.id} between {sender.id} and {recipient.id}")
        return chat

    def _append(self, chat: Chat, sender_id: str, content: str,
                message_type: str = 'text', attachments: List[Dict] = None) -> ChatMessage:
        if chat.status != 'active':
            raise ValidationError(f"Cannot send messages to a {chat.status} chat", field='status')
        is_valid, error = validate_string_length(content, 1, 2000)
        if not is_valid:
            raise ValidationError(error, field='content')
        if message_type not in MESSAGE_TYPES:
            raise ValidationError(f"Message type must be one of: {', '.join(MESSAGE_TYPES)}",
                                  field='messageType')

        stamp = self._touch(chat)
        message = ChatMessage(
            sender_id=sender_id,
            content=content.strip(),
            message_type=message_type,
            attachments=list(attachments or []),
            read_by=[],
            timestamp=stamp
        )
        chat.messages.append(message)
        self.session.flush()
        return message

    def _touch(self, chat: Chat) -> datetime:
        # lastActivity strictly increases even within one clock tick
        stamp = datetime.utcnow()
        if chat.last_activity and stamp <= chat.last_activity:
            stamp = chat.last_activity + timedelta(microseconds=1)
        chat.last_activity = stamp
        return stamp

    # =========================================================================
    # READ RECEIPTS
    # =========================================================================

    def mark_read(self, chat_id: str, message_id: str, user_id: str) -> Dict:
        """Append a read receipt. Repeated calls append repeated receipts."""
        chat = self._get_or_404(Chat, chat_id, 'Chat')
        message = next((m for m in chat.messages if m.id == message_id), None)
        if message is None:
            raise NotFoundError('Message', message_id)
        receipt = {'user': user_id, 'readAt': datetime.utcnow().isoformat()}
        message.read_by = list(message.read_by or []) + [receipt]
        self.session.flush()
        return message.to_dict()

    def mark_chat_read(self, chat_id: str, user: User) -> int:
        """Mark every unread message from others as read and stamp lastSeen."""
        chat = self.get_chat_model(chat_id, user)
        now = datetime.utcnow()
        marked = 0
        for message in chat.messages:
            if message.sender_id != user.id and not message.is_read_by(user.id):
                message.read_by = list(message.read_by or []) + [
                    {'user': user.id, 'readAt': now.isoformat()}
                ]
                marked += 1
        participant = chat.participant(user.id)
        if participant is not None:
            participant.last_seen = now
        self.session.flush()
        return marked

    # =========================================================================
    # STATUS
    # =========================================================================

    def close_chat(self, chat_id: str, closed_by: str, reason: str) -> Dict:
        if not closed_by:
            raise ValidationError("closedBy is required", field='closedBy')
        is_valid, error = validate_string_length(reason, 1, 500)
        if not is_valid:
            raise ValidationError(error, field='reason')
        chat = self._get_or_404(Chat, chat_id, 'Chat')
        CHAT_WORKFLOW.require_transition(chat.status, 'closed')
        chat.status = 'closed'
        chat.closed_at = datetime.utcnow()
        chat.closed_by = closed_by
        chat.close_reason = reason.strip()
        self.session.flush()
        logger.info(f"Chat {chat_id} closed by {closed_by}")
        return chat.to_dict(include_messages=False)

    def reopen_chat(self, chat_id: str) -> Dict:
        chat = self._get_or_404(Chat, chat_id, 'Chat')
        CHAT_WORKFLOW.require_transition(chat.status, 'active')
        chat.status = 'active'
        chat.closed_at = None
        chat.closed_by = None
        chat.close_reason = None
        self._touch(chat)
        self.session.flush()
        return chat.to_dict(include_messages=False)

    def archive_chat(self, chat_id: str) -> Dict:
        chat = self._get_or_404(Chat, chat_id, 'Chat')
        CHAT_WORKFLOW.require_transition(chat.status, 'archived')
        chat.status = 'archived'
        self.session.flush()
        logger.info(f"Chat {chat_id} archived")
        return chat.to_dict(include_messages=False)
