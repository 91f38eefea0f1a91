"""
Tests for the chat repository: threads, direct messages, read receipts and status
"""
import pytest
from datetime import datetime

from errors import InvalidTransitionError, PermissionDeniedError, ValidationError
from services.chat_service import ChatRepository


@pytest.fixture
def chats(db_session):
    return ChatRepository(db_session)


@pytest.fixture
def support_chat(chats, users, load_user):
    return chats.create_chat(load_user(users['client']), {
        'type': 'support', 'subject': 'Login trouble', 'message': 'I cannot log in'
    })


@pytest.mark.unit
class TestChatThreads:
    """Tests for opening and reading chats"""

    def test_create_chat_with_first_message(self, support_chat, users):
        """Test that a chat opens with its creator and first message"""
        assert support_chat['status'] == 'active'
        assert [p['user']['id'] for p in support_chat['participants']] == [users['client']]
        assert [m['content'] for m in support_chat['messages']] == ['I cannot log in']
        assert support_chat['lastActivity'] == support_chat['messages'][0]['timestamp']

    def test_outsider_cannot_read(self, chats, users, support_chat, load_user):
        """Test that non-participant clients are denied"""
        with pytest.raises(PermissionDeniedError):
            chats.get_chat(support_chat['id'], load_user(users['other_client']))

    def test_staff_reply_joins_chat(self, chats, users, support_chat, load_user):
        """Test that staff become participants by replying"""
        chats.add_message(support_chat['id'], load_user(users['support']), 'Resetting your password now')
        chat = chats.get_chat(support_chat['id'], load_user(users['client']))
        assert {p['user']['id'] for p in chat['participants']} == {users['client'], users['support']}
        assert chat['unreadCount'] == 1

    def test_outsider_cannot_write(self, chats, users, support_chat, load_user):
        """Test that non-participant clients cannot post"""
        with pytest.raises(PermissionDeniedError):
            chats.add_message(support_chat['id'], load_user(users['other_client']), 'hello?')

    def test_message_length_limit(self, chats, users, support_chat, load_user):
        """Test that messages over 2000 characters are rejected"""
        with pytest.raises(ValidationError):
            chats.add_message(support_chat['id'], load_user(users['client']), 'x' * 2001)

    def test_last_activity_strictly_increases(self, chats, users, support_chat, load_user, db_session):
        """Test that each message stamps a strictly later lastActivity"""
        client = load_user(users['client'])
        stamps = [chats.add_message(support_chat['id'], client, f'msg {i}')['timestamp'] for i in range(5)]
        parsed = [datetime.fromisoformat(s) for s in stamps]
        assert all(a < b for a, b in zip(parsed, parsed[1:]))
        assert chats.get_chat(support_chat['id'], client)['lastActivity'] == stamps[-1]

    def test_list_ordered_by_activity(self, chats, users, load_user):
        """Test that chats are listed most recently active first"""
        client = load_user(users['client'])
        first = chats.create_chat(client, {'type': 'support', 'message': 'first'})
        second = chats.create_chat(client, {'type': 'general', 'message': 'second'})
        chats.add_message(first['id'], client, 'bump')
        assert [c['id'] for c in chats.list_chats(users['client'])] == [first['id'], second['id']]


@pytest.mark.unit
class TestDirectMessages:
    """Tests for private messages"""

    def test_private_message_creates_general_chat(self, chats, users, load_user):
        """Test that the first direct message opens a general chat both users can read"""
        result = chats.send_private_message(users['client'], users['support'], 'Are you there?')
        chat = chats.get_chat(result['chatId'], load_user(users['support']))
        assert chat['type'] == 'general'
        assert chat['messages'][0]['content'] == 'Are you there?'
        assert chat['unreadCount'] == 1

    def test_private_messages_reuse_chat(self, chats, users):
        """Test that later messages between the same pair reuse the chat"""
        first = chats.send_private_message(users['client'], users['support'], 'one')
        reply = chats.send_private_message(users['support'], users['client'], 'two')
        assert first['chatId'] == reply['chatId']

    def test_cannot_message_self(self, chats, users):
        """Test that self messages are rejected"""
        with pytest.raises(ValidationError):
            chats.send_private_message(users['client'], users['client'], 'me')

    def test_closed_chat_gets_new_direct_chat(self, chats, users):
        """Test that a closed direct chat is not reused"""
        first = chats.send_private_message(users['client'], users['support'], 'one')
        chats.close_chat(first['chatId'], users['support'], 'Resolved')
        second = chats.send_private_message(users['client'], users['support'], 'two')
        assert second['chatId'] != first['chatId']


@pytest.mark.unit
class TestReadReceipts:
    """Tests for read tracking"""

    def test_mark_read_appends_receipts(self, chats, users, support_chat):
        """Test that repeated reads append repeated receipts"""
        message_id = support_chat['messages'][0]['id']
        chats.mark_read(support_chat['id'], message_id, users['support'])
        message = chats.mark_read(support_chat['id'], message_id, users['support'])
        assert [r['user'] for r in message['readBy']] == [users['support'], users['support']]

    def test_mark_chat_read(self, chats, users, support_chat, load_user):
        """Test that marking a chat read clears the unread count"""
        support = load_user(users['support'])
        chats.add_message(support_chat['id'], support, 'On it')
        client = load_user(users['client'])
        assert chats.mark_chat_read(support_chat['id'], client) == 1
        assert chats.get_chat(support_chat['id'], client)['unreadCount'] == 0
        assert chats.mark_chat_read(support_chat['id'], client) == 0


@pytest.mark.unit
class TestChatStatus:
    """Tests for close, reopen and archive"""

    def test_close_requires_reason(self, chats, users, support_chat):
        """Test that closing needs a reason"""
        with pytest.raises(ValidationError) as exc_info:
            chats.close_chat(support_chat['id'], users['support'], '')
        assert exc_info.value.field == 'reason'

    def test_closed_chat_rejects_messages(self, chats, users, support_chat, load_user):
        """Test that closed chats do not accept messages until reopened"""
        closed = chats.close_chat(support_chat['id'], users['support'], 'Resolved')
        assert closed['status'] == 'closed'
        assert closed['closeReason'] == 'Resolved'
        with pytest.raises(ValidationError):
            chats.add_message(support_chat['id'], load_user(users['client']), 'one more thing')

        reopened = chats.reopen_chat(support_chat['id'])
        assert reopened['status'] == 'active'
        assert reopened['closedAt'] is None
        chats.add_message(support_chat['id'], load_user(users['client']), 'one more thing')

    def test_archive_only_closed(self, chats, users, support_chat):
        """Test that only closed chats can be archived and archived chats are unlisted"""
        with pytest.raises(InvalidTransitionError):
            chats.archive_chat(support_chat['id'])
        chats.close_chat(support_chat['id'], users['support'], 'Resolved')
        assert chats.archive_chat(support_chat['id'])['status'] == 'archived'
        assert chats.list_chats(users['client']) == []
        with pytest.raises(InvalidTransitionError):
            chats.reopen_chat(support_chat['id'])
