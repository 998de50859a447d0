from tests.conftest import login_session, login_inactive_session


def test_enforcement_requires_login_for_private_endpoints(client):
    # /books redirige (308) a /books/
    res = client.get("/books/", follow_redirects=False)
    assert res.status_code == 401
    assert res.get_json()["error"] == "unauthorized"


def test_enforcement_allows_public_endpoints_without_login(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert client.get("/auth/me").get_json() == {"authenticated": False}


def test_enforcement_forbids_admin_blueprint_for_non_admin(client):
    login_session(client, role="bibliotecario")
    res = client.get("/admin/security-events")
    assert res.status_code == 403


def test_enforcement_forbids_inactive_user_everywhere(client):
    login_inactive_session(client)
    res = client.get("/books/", follow_redirects=False)
    assert res.status_code == 403


def test_enforcement_allows_admin_blueprint_for_admin(client):
    login_session(client, role="admin")
    res = client.get("/admin/security-events")
    assert res.status_code == 200


def test_session_for_deleted_user_is_rejected(client):
    with client.session_transaction() as sess:
        sess["user_id"] = 404
        sess["role"] = "admin"
    assert client.get("/dashboard/stats").status_code == 403
