# conftest.py
import pytest

from pawhaven import create_app
from pawhaven.realtime import socketio


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', test_config={'UPLOAD_DIR': str(tmp_path / 'uploads')})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def repositories(app):
    return app.services['repositories']


def _user_payload(username, **overrides):
    payload = {
        "username": username,
        "fullname": f"{username.title()} Tester",
        "email": f"{username}@example.com",
        "password": "password123",
        "phone": "0123456789",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register(client):
    """register('alice') -> (user dict, access token)"""
    def _register(username, **overrides):
        response = client.post('/api/auth/register', json=_user_payload(username, **overrides))
        assert response.status_code == 201, response.get_json()
        data = response.get_json()['data']
        return data['user'], data['accessToken']
    return _register


@pytest.fixture
def register_superadmin(client, register, repositories):
    """Register a user, promote them, and hand back a token that carries the new role."""
    def _register_superadmin(username='root'):
        user, _ = register(username)
        repositories.users.find_by_id_and_update(user['id'], {'role': 'superadmin'})
        # the role travels in the access token, so sign in again after promotion
        response = client.post('/api/auth/login', json={"email": user['email'], "password": "password123"})
        assert response.status_code == 200
        return user, response.get_json()['data']['accessToken']
    return _register_superadmin


@pytest.fixture
def socket_client_for(app):
    """Connect a Socket.IO test client with the given access token."""
    clients = []

    def _connect(token=None, **kwargs):
        auth = {"token": token} if token else None
        client = socketio.test_client(app, auth=auth, **kwargs)
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        if client.is_connected():
            client.disconnect()
