"""
Tests for authentication, the SPA route guard and the admin API
"""
import pytest

from database.connection import get_db_session
from database.models import User


@pytest.mark.integration
class TestAuthEndpoints:
    """Tests for login, logout and session state"""

    def test_login_returns_dashboard(self, http, users):
        """Test that login returns the user and their landing page"""
        response = http.post('/api/auth/login', json={'email': 'client@example.com', 'password': 'Password123'})
        assert response.status_code == 200
        data = response.get_json()
        assert data['user']['role'] == 'client'
        assert data['redirect'] == '/client/dashboard'
        assert 'passwordHash' not in data['user']

    def test_login_is_case_insensitive_on_email(self, http, users):
        """Test that emails are matched case-insensitively"""
        response = http.post('/api/auth/login', json={'email': 'Admin@TubeX.test', 'password': 'Password123'})
        assert response.get_json()['redirect'] == '/admin'

    def test_wrong_password(self, http, users):
        """Test that bad credentials are a 401"""
        response = http.post('/api/auth/login', json={'email': 'client@example.com', 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid email or password'

    def test_missing_credentials(self, http):
        """Test that missing fields are a 400"""
        assert http.post('/api/auth/login', json={'email': 'client@example.com'}).status_code == 400

    def test_me_and_logout(self, client_http, users):
        """Test that /me reflects the session until logout"""
        me = client_http.get('/api/auth/me').get_json()
        assert me['authenticated'] is True
        assert me['user']['id'] == users['client']
        assert me['dashboard'] == '/client/dashboard'

        client_http.post('/api/auth/logout')
        assert client_http.get('/api/auth/me').get_json()['authenticated'] is False

    def test_deactivated_user_loses_access(self, client_http, users):
        """Test that a user deactivated mid-session is rejected"""
        with get_db_session() as session:
            session.get(User, users['client']).is_active = False

        assert client_http.get('/api/orders').status_code == 403
        assert client_http.get('/api/auth/me').get_json()['authenticated'] is False


@pytest.mark.integration
class TestRouteGuard:
    """Tests for the guarded SPA areas"""

    def test_anonymous_redirected_to_login(self, http):
        """Test that anonymous visitors are sent to login with the path preserved"""
        response = http.get('/client/orders?page=2')
        assert response.status_code == 302
        assert response.headers['Location'] == '/login?next=/client/orders?page=2'

    def test_client_enters_client_area(self, client_http):
        """Test that clients may enter the client area"""
        response = client_http.get('/client/dashboard')
        assert response.status_code == 200
        assert response.get_json()['area'] == 'client'

    def test_client_bounced_from_admin_area(self, client_http):
        """Test that clients are redirected to their own dashboard"""
        response = client_http.get('/admin/users')
        assert response.status_code == 302
        assert response.headers['Location'] == '/client/dashboard'

    def test_admin_bounced_from_client_area(self, admin_http):
        """Test that admins are redirected to the admin area"""
        response = admin_http.get('/client')
        assert response.status_code == 302
        assert response.headers['Location'] == '/admin'

    def test_support_enters_admin_area(self, support_http):
        """Test that support staff may enter the admin area"""
        assert support_http.get('/admin').status_code == 200

    def test_serves_built_shell(self, app, client_http, tmp_path):
        """Test that the built index.html is served when present"""
        (tmp_path / 'index.html').write_text('<div id="root"></div>')
        app.config['FRONTEND_DIST'] = str(tmp_path)
        response = client_http.get('/client/orders')
        assert response.status_code == 200
        assert b'<div id="root"></div>' in response.data


@pytest.mark.integration
class TestAdminEndpoints:
    """Tests for the admin dashboard and user directory"""

    def test_dashboard_counts(self, admin_http, client_http, make_service):
        """Test that the dashboard reports headline counts"""
        service = make_service()
        client_http.post('/api/orders', json={
            'serviceId': service['id'], 'requirements': 'Five page site with a contact form',
            'contactPreference': 'email'
        })
        client_http.post('/api/chat', json={'type': 'support', 'message': 'hello'})

        stats = admin_http.get('/api/admin/dashboard').get_json()['stats']
        assert stats['totalUsers'] == 2
        assert stats['totalServices'] == 1
        assert stats['totalOrders'] == 1
        assert stats['activeChats'] == 1
        assert stats['monthlyRevenue'] == 0

    def test_dashboard_admin_only(self, support_http):
        """Test that support staff cannot see the dashboard"""
        assert support_http.get('/api/admin/dashboard').status_code == 403

    def test_user_directory_search(self, admin_http):
        """Test that the directory lists clients and supports search"""
        data = admin_http.get('/api/admin/users').get_json()
        assert data['pagination']['total'] == 2
        data = admin_http.get('/api/admin/users?search=otto').get_json()
        assert [u['email'] for u in data['users']] == ['other@example.com']
