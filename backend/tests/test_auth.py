"""Tests for registration, login/logout and the session cookie."""
from podplanner.models.user import User
from tests.conftest import PASSWORD, register_user


class TestRegistration:

    def test_register_signs_in(self, client):
        user = register_user(client, "alice")
        assert user["username"] == "alice"
        assert user["email"] == "alice@example.com"
        assert "password_hash" not in user

        resp = client.get("/api/user")
        assert resp.status_code == 200
        assert resp.json()["id"] == user["id"]

    def test_email_is_stored_lowercase(self, client):
        user = register_user(client, "bob", email="Bob@Example.COM")
        assert user["email"] == "bob@example.com"

    def test_duplicate_username(self, client, make_client):
        register_user(client, "alice")
        resp = make_client().post("/api/register", json={
            "username": "alice", "email": "other@example.com", "password": PASSWORD,
        })
        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "USERNAME_EXISTS"

    def test_duplicate_email_ignores_case(self, client, make_client):
        register_user(client, "alice")
        resp = make_client().post("/api/register", json={
            "username": "alice2", "email": "ALICE@example.com", "password": PASSWORD,
        })
        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "EMAIL_EXISTS"

    def test_short_password_rejected(self, client):
        resp = client.post("/api/register", json={
            "username": "alice", "email": "alice@example.com", "password": "123",
        })
        assert resp.status_code == 422

    def test_invalid_email_rejected(self, client):
        resp = client.post("/api/register", json={
            "username": "alice", "email": "not-an-email", "password": PASSWORD,
        })
        assert resp.status_code == 422


class TestLogin:

    def test_login_and_logout(self, client, make_client):
        register_user(client, "alice")
        other = make_client()
        assert other.get("/api/user").status_code == 401

        resp = other.post("/api/login", json={"username": "alice", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["username"] == "alice"
        assert other.get("/api/user").status_code == 200

        assert other.post("/api/logout").status_code == 204
        assert other.get("/api/user").status_code == 401

    def test_wrong_password(self, client, make_client):
        register_user(client, "alice")
        resp = make_client().post("/api/login", json={"username": "alice", "password": "wrong-pass"})
        assert resp.status_code == 401

    def test_unknown_user(self, client):
        resp = client.post("/api/login", json={"username": "nobody", "password": PASSWORD})
        assert resp.status_code == 401

    def test_protected_route_requires_session(self, client):
        assert client.get("/api/groups").status_code == 401
        assert client.post("/api/groups", json={"name": "X"}).status_code == 401

    def test_session_for_deleted_user(self, client, db):
        register_user(client, "alice")
        db.query(User).delete()
        db.commit()
        assert client.get("/api/user").status_code == 401


class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
