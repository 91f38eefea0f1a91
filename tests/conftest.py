"""
Pytest configuration and shared fixtures
"""
import os
import pytest

from app_init import create_app
from app.realtime import socketio, presence
from database.connection import get_db_session, get_session_factory
from database.models import User
from services.service_catalog import ServiceCatalogRepository
from services.users_repository import UsersRepository

TEST_PASSWORD = 'Password123'

SEED_USERS = {
    'admin': {'email': 'admin@tubex.test', 'firstName': 'Ada', 'lastName': 'Admin', 'role': 'admin'},
    'support': {'email': 'support@tubex.test', 'firstName': 'Sam', 'lastName': 'Support', 'role': 'support'},
    'client': {'email': 'client@example.com', 'firstName': 'Cleo', 'lastName': 'Client',
               'company': 'Client Co', 'role': 'client'},
    'other_client': {'email': 'other@example.com', 'firstName': 'Otto', 'lastName': 'Other', 'role': 'client'},
}


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'
    os.environ['SECRET_KEY'] = 'a3f1c9e7b5d2049687f1e3c5a7b9d1f3e5c7a9b1'

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def app():
    """Fresh app on a fresh in-memory database"""
    application = create_app('testing')
    presence.clear()
    yield application
    presence.clear()


@pytest.fixture
def http(app):
    """Anonymous Flask test client"""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Session for repository tests; committed work is visible to the API"""
    session = get_session_factory()()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def users(app):
    """Seed one user per role; returns {key: user_id}"""
    ids = {}
    with get_db_session() as session:
        repo = UsersRepository(session)
        for key, data in SEED_USERS.items():
            ids[key] = repo.create_user({**data, 'password': TEST_PASSWORD})['id']
    return ids


@pytest.fixture
def load_user(db_session):
    """Load a seeded user model inside db_session"""
    def _load(user_id):
        return db_session.get(User, user_id)
    return _load


def login(app, email, password=TEST_PASSWORD):
    client = app.test_client()
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def admin_http(app, users):
    return login(app, SEED_USERS['admin']['email'])


@pytest.fixture
def support_http(app, users):
    return login(app, SEED_USERS['support']['email'])


@pytest.fixture
def client_http(app, users):
    return login(app, SEED_USERS['client']['email'])


@pytest.fixture
def other_client_http(app, users):
    return login(app, SEED_USERS['other_client']['email'])


def service_payload(**overrides):
    data = {
        'title': 'Business Website Build',
        'description': 'A responsive marketing website with CMS and analytics setup.',
        'category': 'Web Development',
        'pricing': {'type': 'fixed', 'amount': 500, 'currency': 'USD'},
        'features': [{'name': 'Responsive design', 'included': True}],
        'technologies': ['React', 'Flask'],
        'deliveryTime': '2 weeks',
        'tags': ['Web', 'CMS'],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_service(app, users):
    """Create a catalog service through the repository and return its dict"""
    def _make(**overrides):
        with get_db_session() as session:
            return ServiceCatalogRepository(session).create_service(
                service_payload(**overrides), created_by=users['admin']
            )
    return _make


@pytest.fixture
def socket_for(app):
    """Socket.IO test client, optionally sharing a logged-in HTTP client's cookies"""
    clients = []

    def _connect(flask_client=None):
        sio = socketio.test_client(app, flask_test_client=flask_client)
        clients.append(sio)
        return sio

    yield _connect

    for sio in clients:
        if sio.is_connected():
            sio.disconnect()


@pytest.fixture
def catalog(db_session):
    return ServiceCatalogRepository(db_session)


@pytest.fixture
def fixed_service(catalog, users):
    """A $500 fixed price service in db_session"""
    return catalog.create_service(service_payload(), created_by=users['admin'])


@pytest.fixture
def quoted_service(catalog, users):
    """A service priced on quote in db_session"""
    return catalog.create_service(
        service_payload(title='Custom ERP Integration', category='Custom Software',
                        pricing={'type': 'quote'}, tags=['erp']),
        created_by=users['admin']
    )


@pytest.fixture
def service_data():
    """Builder for valid service request bodies"""
    return service_payload
