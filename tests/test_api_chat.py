"""
Tests for the chat REST API
"""
import pytest


@pytest.fixture
def chat(client_http):
    response = client_http.post('/api/chat', json={
        'type': 'support', 'subject': 'Invoice question', 'message': 'Where is my invoice?'
    })
    assert response.status_code == 201
    return response.get_json()['chat']


@pytest.mark.integration
class TestChatEndpoints:
    """Tests for chat threads over HTTP"""

    def test_create_and_list(self, client_http, chat):
        """Test that a new chat is listed for its creator"""
        chats = client_http.get('/api/chat').get_json()['chats']
        assert [c['id'] for c in chats] == [chat['id']]
        assert 'messages' not in chats[0]

    def test_invalid_chat_type(self, client_http):
        """Test that chat types are validated"""
        response = client_http.post('/api/chat', json={'type': 'sales', 'message': 'hi'})
        assert response.status_code == 400

    def test_support_replies(self, client_http, support_http, chat):
        """Test that support can answer and the client sees an unread message"""
        response = support_http.post(f"/api/chat/{chat['id']}/messages", json={'content': 'Sent it again'})
        assert response.status_code == 201

        data = client_http.get(f"/api/chat/{chat['id']}").get_json()['chat']
        assert [m['content'] for m in data['messages']] == ['Where is my invoice?', 'Sent it again']
        assert data['unreadCount'] == 1

        assert client_http.post(f"/api/chat/{chat['id']}/read").get_json()['marked'] == 1
        assert client_http.get(f"/api/chat/{chat['id']}").get_json()['chat']['unreadCount'] == 0

    def test_outsider_forbidden(self, other_client_http, chat):
        """Test that other clients cannot read or write"""
        assert other_client_http.get(f"/api/chat/{chat['id']}").status_code == 403
        response = other_client_http.post(f"/api/chat/{chat['id']}/messages", json={'content': 'hi'})
        assert response.status_code == 403

    def test_message_too_long(self, client_http, chat):
        """Test that 2001 character messages are rejected"""
        response = client_http.post(f"/api/chat/{chat['id']}/messages", json={'content': 'x' * 2001})
        assert response.status_code == 400

    def test_read_receipt(self, support_http, chat):
        """Test that a single message can be marked read"""
        message_id = chat['messages'][0]['id']
        response = support_http.post(f"/api/chat/{chat['id']}/messages/{message_id}/read")
        assert response.status_code == 200
        assert response.get_json()['message']['readBy'][0]['user']

    def test_close_reopen_archive(self, client_http, admin_http, chat):
        """Test the chat status lifecycle over HTTP"""
        assert client_http.patch(f"/api/chat/{chat['id']}/close", json={}).status_code == 400

        closed = client_http.patch(f"/api/chat/{chat['id']}/close", json={'reason': 'Sorted'})
        assert closed.get_json()['chat']['status'] == 'closed'
        response = client_http.post(f"/api/chat/{chat['id']}/messages", json={'content': 'late'})
        assert response.status_code == 400

        assert client_http.patch(f"/api/chat/{chat['id']}/archive").status_code == 403
        assert admin_http.patch(f"/api/chat/{chat['id']}/archive").get_json()['chat']['status'] == 'archived'
        assert client_http.patch(f"/api/chat/{chat['id']}/reopen").status_code == 409
        assert client_http.get('/api/chat').get_json()['chats'] == []
