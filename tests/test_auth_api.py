from evalink.extensions import db
from evalink.models import ActivityLog, User
from evalink.services.seed import create_admin_if_missing

PASSWORD = "secret123"


def test_login_by_school_id(client, seeded):
    response = client.post("/api/auth/login", json={"id": "S-001", "password": PASSWORD})

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["id"] == "S-001"
    assert user["role"] == "student"
    assert "password_hash" not in user
    assert ActivityLog.query.filter_by(user_id="S-001", activity_type="login").count() == 1


def test_admin_logs_in_by_email(client, seeded):
    response = client.post(
        "/api/auth/login", json={"email": "ADMIN@evalink.test", "password": PASSWORD}
    )

    assert response.status_code == 200
    assert response.get_json()["user"]["role"] == "admin"


def test_login_requires_identifier_and_password(client, seeded):
    assert client.post("/api/auth/login", json={"id": "S-001"}).status_code == 400
    assert client.post("/api/auth/login", json={"password": PASSWORD}).status_code == 400


def test_login_rejects_bad_credentials(client, seeded):
    response = client.post("/api/auth/login", json={"id": "S-001", "password": "nope"})

    assert response.status_code == 401


def test_disabled_account_cannot_log_in(client, seeded):
    db.session.get(User, "S-002").is_active = False
    db.session.commit()

    response = client.post("/api/auth/login", json={"id": "S-002", "password": PASSWORD})

    assert response.status_code == 403


def test_session_round_trip(client, seeded):
    client.post("/api/auth/login", json={"id": "F-001", "password": PASSWORD})

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.get_json()["user"]["name"] == "Dr. Reyes"

    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_protected_route_requires_auth(client, seeded):
    assert client.get("/api/departments").status_code == 401


def test_role_check(client, seeded, as_user):
    response = client.get("/api/users?role=student", headers=as_user("S-001"))

    assert response.status_code == 403


def test_default_admin_is_created_once(app):
    assert create_admin_if_missing() is True
    assert create_admin_if_missing() is False
    assert User.query.filter_by(role="admin").count() == 1


def test_api_is_served_under_prefix(client, seeded, as_user):
    assert client.get("/api/departments", headers=as_user("S-001")).status_code == 200
    assert client.get("/departments", headers=as_user("S-001")).status_code == 404
