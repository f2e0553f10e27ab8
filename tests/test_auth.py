"""Tests for signup, login and bearer-token verification."""

from datetime import datetime, timedelta, timezone

import jwt

from api.auth import ALGORITHM, create_access_token, hash_password, verify_password
from trading.config import TradingConfig
from trading.models.account import Account


class TestPasswords:
    """Tests for bcrypt password helpers."""

    def test_hash_and_verify(self):
        hashed = hash_password("hunter2")

        assert hashed != "hunter2"
        assert verify_password("hunter2", hashed)
        assert not verify_password("hunter3", hashed)

    def test_verify_against_garbage_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    """Tests for token issuance."""

    def test_token_carries_account_id(self):
        config = TradingConfig(jwt_secret="s")
        account = Account(id="abc", name="n", email="e@x.com", balance=0)

        token = create_access_token(account, config)
        payload = jwt.decode(token, "s", algorithms=[ALGORITHM])

        assert payload["sub"] == "abc"
        assert payload["email"] == "e@x.com"
        assert payload["exp"] > payload["iat"]


class TestSignupEndpoint:
    """Tests for POST /api/auth/signup."""

    def test_signup_returns_token_and_user(self, client):
        response = client.post(
            "/api/auth/signup",
            json={"name": "Ada", "email": "ada@example.com", "password": "pw"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["token"]
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["balance"] == 10000
        assert data["user"]["holdings"] == {
            "BTC": 0,
            "ETH": 0,
            "USDT": 0,
            "BNB": 0,
            "SOL": 0,
        }

    def test_signup_missing_fields(self, client):
        response = client.post("/api/auth/signup", json={"email": "a@b.com"})

        assert response.status_code == 400
        assert response.json()["message"] == "All fields are required"

    def test_signup_duplicate_email(self, client, auth_headers):
        response = client.post(
            "/api/auth/signup",
            json={"name": "Again", "email": "ada@example.com", "password": "x"},
        )

        assert response.status_code == 409


class TestLoginEndpoint:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client, auth_headers):
        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "s3cret!"}
        )

        assert response.status_code == 200
        token = response.json()["token"]
        portfolio = client.get(
            "/api/portfolio", headers={"Authorization": f"Bearer {token}"}
        )
        assert portfolio.status_code == 200

    def test_login_wrong_password(self, client, auth_headers):
        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_login_unknown_email(self, client):
        response = client.post(
            "/api/auth/login", json={"email": "who@example.com", "password": "x"}
        )

        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={})

        assert response.status_code == 400


class TestBearerVerification:
    """Tests for protected routes rejecting bad credentials."""

    def test_missing_header(self, client):
        response = client.get("/api/portfolio")

        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get(
            "/api/portfolio", headers={"Authorization": "Bearer not.a.jwt"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_wrong_secret(self, client):
        token = jwt.encode({"sub": "abc"}, "other-secret", algorithm=ALGORITHM)

        response = client.get(
            "/api/portfolio", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_expired_token(self, client, config):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        token = jwt.encode(
            {"sub": "abc", "iat": past - timedelta(hours=1), "exp": past},
            config.jwt_secret,
            algorithm=ALGORITHM,
        )

        response = client.get(
            "/api/portfolio", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_unknown_account(self, client, config):
        token = jwt.encode({"sub": "ghost"}, config.jwt_secret, algorithm=ALGORITHM)

        for method, path in [("get", "/api/portfolio"), ("post", "/api/trade")]:
            response = client.request(
                method.upper(),
                path,
                headers={"Authorization": f"Bearer {token}"},
                json={"symbol": "BTC", "side": "buy", "amount": 1, "price": 1},
            )
            assert response.status_code == 401
