# strategy_hub/tests/integration/test_auth_flow.py
"""End-to-end account flow: register, verify, log in, reset password."""
from urllib.parse import parse_qs, urlparse

from strategy_hub.db import crud


def _register(client, email="trader@example.com", password="secret123"):
    return client.post("/api/register", json={"name": "Trader", "email": email, "password": password})


class TestRegistration:

    def test_register_returns_verification_url(self, client):
        response = _register(client)
        assert response.status_code == 200
        body = response.json()
        assert body["user"] == {"name": "Trader", "email": "trader@example.com"}
        assert "/verify-email?token=" in body["verificationUrl"]

    def test_register_duplicate(self, client):
        _register(client)
        response = _register(client, email="TRADER@example.com")
        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"

    def test_register_validation(self, client):
        response = client.post("/api/register", json={"name": "T", "email": "not-an-email", "password": "123"})
        assert response.status_code == 400
        assert {"name", "email", "password"} <= set(response.json()["details"])


class TestLoginAndProfile:

    def test_login_and_profile(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={"email": "trader@example.com", "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        profile = client.get("/api/profile", headers=headers).json()["data"]
        assert profile == {"name": "Trader", "email": "trader@example.com", "role": "user"}

        updated = client.put("/api/profile", json={"name": "Pro Trader"}, headers=headers).json()["data"]
        assert updated["name"] == "Pro Trader"

    def test_login_wrong_password(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={"email": "trader@example.com", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    def test_forged_token(self, client):
        response = client.get("/api/profile", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401


class TestEmailVerification:

    def test_link_redirects_and_verifies(self, client, db_session):
        url = _register(client).json()["verificationUrl"]
        token = parse_qs(urlparse(url).query)["token"][0]

        response = client.get(f"/api/auth/verify-email?token={token}", follow_redirects=False)
        assert response.status_code in (302, 307)
        assert response.headers["location"].endswith("/login?verified=true")
        assert crud.get_user_by_email(db_session, "trader@example.com").email_verified is True

        response = client.get(f"/api/auth/verify-email?token={token}", follow_redirects=False)
        assert response.headers["location"].endswith("/verify-email?error=invalid_token")

    def test_link_without_token(self, client):
        response = client.get("/api/auth/verify-email", follow_redirects=False)
        assert response.headers["location"].endswith("/verify-email?error=no_token")

    def test_post_verify(self, client):
        url = _register(client).json()["verificationUrl"]
        token = parse_qs(urlparse(url).query)["token"][0]
        response = client.post("/api/auth/verify-email", json={"token": token})
        assert response.json()["message"] == "Email verified successfully"


class TestPasswordReset:

    def test_same_answer_for_unknown_email(self, client):
        _register(client)
        known = client.post("/api/auth/reset-password", json={"email": "trader@example.com"}).json()
        unknown = client.post("/api/auth/reset-password", json={"email": "ghost@example.com"}).json()
        assert known == unknown
        assert "resetUrl" not in known

    def test_reset_with_token(self, client, db_session):
        _register(client)
        client.post("/api/auth/reset-password", json={"email": "trader@example.com"})
        token = crud.get_user_by_email(db_session, "trader@example.com").password_reset_token

        response = client.post("/api/auth/reset-password", json={"token": token, "password": "brandnew"})
        assert response.json()["message"] == "Password reset successfully"

        login = client.post("/api/auth/login", json={"email": "trader@example.com", "password": "brandnew"})
        assert login.status_code == 200

    def test_short_new_password(self, client):
        response = client.post("/api/auth/reset-password", json={"token": "abc", "password": "123"})
        assert response.status_code == 400
        assert "password" in response.json()["details"]

    def test_invalid_request_shape(self, client):
        response = client.post("/api/auth/reset-password", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
