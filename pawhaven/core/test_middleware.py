# pawhaven/core/test_middleware.py
"""Auth decorators and the error boundary, exercised through the real app."""


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_missing_header_is_auth_required(client):
    response = client.get('/api/users/me')
    body = response.get_json()
    assert response.status_code == 401
    assert body == {"success": False, "message": "Missing or invalid Authorization header", "code": "AUTH_REQUIRED"}


def test_garbage_token_is_invalid(client):
    response = client.get('/api/users/me', headers=_bearer("not-a-jwt"))
    assert response.status_code == 401
    assert response.get_json()["code"] == "TOKEN_INVALID"


def test_expired_token_is_reported(app, client, register):
    user, _ = register('alice')
    repo_user = app.services['repositories'].users.find_by_id(user['id'])
    expired = app.services['tokens'].issue_access_token(repo_user, expires_in=-1)
    response = client.get('/api/users/me', headers=_bearer(expired))
    assert response.status_code == 401
    assert response.get_json()["code"] == "TOKEN_EXPIRED"


def test_refresh_token_is_not_an_access_token(app, client, register):
    user, _ = register('alice')
    repo_user = app.services['repositories'].users.find_by_id(user['id'])
    refresh = app.services['tokens'].issue_refresh_token(repo_user)
    response = client.get('/api/users/me', headers=_bearer(refresh))
    assert response.status_code == 401
    assert response.get_json()["code"] == "TOKEN_INVALID"


def test_optional_auth_still_rejects_bad_token(client):
    assert client.get('/api/pets').status_code == 200
    assert client.get('/api/pets', headers=_bearer("junk")).status_code == 401


def test_unknown_route_uses_envelope(client):
    response = client.get('/api/nothing-here')
    body = response.get_json()
    assert response.status_code == 404
    assert body["success"] is False
    assert body["code"] == "NOT_FOUND"


def test_security_headers_and_health(client):
    for path in ('/health', '/api/health'):
        response = client.get(path)
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["data"]["status"] == "ok"
        assert body["data"]["uptime"] >= 0
        assert response.headers["X-Content-Type-Options"] == "nosniff"
