from packcontrol.models.log import Log
from packcontrol.models.users import User


def test_register_login_me(client, session):
    r = client.post("/register", json={"email": "New.User@Example.com", "password": "hunter22", "full_name": "New"})
    assert r.status_code == 201
    assert r.json()["email"] == "new.user@example.com"
    assert r.json()["role"] == "viewer"

    r = client.post("/login", json={"email": "NEW.USER@example.com", "password": "hunter22"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["full_name"] == "New"

    actions = [(log.action, log.status) for log in session.query(Log).order_by(Log.id)]
    assert actions == [("REGISTER", "SUCCESS"), ("LOGIN", "SUCCESS")]


def test_register_duplicate_email(client, viewer):
    r = client.post("/register", json={"email": viewer.email, "password": "whatever"})
    assert r.status_code == 400


def test_register_short_password(client):
    assert client.post("/register", json={"email": "a@example.com", "password": "123"}).status_code == 422


def test_login_wrong_password_is_logged(client, session, operator):
    r = client.post("/login", json={"email": operator.email, "password": "wrong-password"})
    assert r.status_code == 401

    entry = session.query(Log).filter(Log.action == "LOGIN").one()
    assert entry.status == "FAIL"
    assert entry.user_id == operator.id


def test_bad_token_is_rejected(client):
    r = client.get("/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_admin_changes_role(client, session, admin_headers, viewer):
    r = client.put(f"/users/{viewer.id}/role", json={"role": "operator"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["role"] == "operator"

    session.expire_all()
    assert session.get(User, viewer.id).role == "operator"
    entry = session.query(Log).filter(Log.action == "ROLE_UPDATE").one()
    assert entry.meta == {"target_id": viewer.id, "from": "viewer", "to": "operator"}


def test_role_update_rules(client, admin, admin_headers, operator_headers, viewer):
    assert client.put(f"/users/{admin.id}/role", json={"role": "viewer"}, headers=admin_headers).status_code == 400
    assert client.put(f"/users/{viewer.id}/role", json={"role": "root"}, headers=admin_headers).status_code == 422
    assert client.put("/users/999/role", json={"role": "viewer"}, headers=admin_headers).status_code == 404
    assert client.put(f"/users/{viewer.id}/role", json={"role": "admin"}, headers=operator_headers).status_code == 403


def test_list_users_is_admin_only(client, admin_headers, viewer_headers, operator):
    r = client.get("/users", params={"role": "operator"}, headers=admin_headers)
    assert r.status_code == 200
    assert [u["email"] for u in r.json()["items"]] == [operator.email]

    assert client.get("/users", headers=viewer_headers).status_code == 403


def test_logs_are_filterable(client, viewer_headers, admin_headers):
    client.post("/categories", json={"name": "Office"}, headers=admin_headers)
    client.post("/categories", json={"name": "Cleaning"}, headers=admin_headers)

    r = client.get("/logs", params={"action": "category_create"}, headers=viewer_headers)
    assert r.status_code == 200
    assert r.json()["total"] == 2

    r = client.get("/logs", params={"status": "FAIL"}, headers=viewer_headers)
    assert r.json()["total"] == 0

    assert client.get("/logs", params={"date_from": "31/12/2024"}, headers=viewer_headers).status_code == 400


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
