"""
Tests for identity tokens, password hashing and the request gate.
"""

from datetime import timedelta

import jwt
import pytest

from errors import InvalidToken
from security import TokenService, hash_password, make_password_context, verify_password


class TestTokenService:
    """Issue/verify round trips against a pinned clock."""

    def test_issue_then_verify_returns_subject(self, tokens):
        token = tokens.issue("65a1b2c3d4e5f60718293a4b")
        assert tokens.verify(token) == "65a1b2c3d4e5f60718293a4b"

    def test_token_expires_after_24_hours(self, tokens, clock):
        token = tokens.issue("user-1")
        clock.advance(timedelta(hours=23, minutes=59))
        assert tokens.verify(token) == "user-1"
        clock.advance(timedelta(minutes=1))
        with pytest.raises(InvalidToken):
            tokens.verify(token)

    def test_expiry_claim_is_issue_time_plus_ttl(self, tokens, clock):
        token = tokens.issue("user-1")
        claims = jwt.decode(token, "test-secret", algorithms=["HS256"], options={"verify_exp": False, "verify_iat": False})
        assert claims["sub"] == "user-1"
        assert claims["exp"] - claims["iat"] == 24 * 3600
        assert claims["iat"] == int(clock.now.timestamp())

    def test_wrong_secret_is_rejected(self, tokens, clock):
        other = TokenService("another-secret", clock=clock)
        with pytest.raises(InvalidToken):
            tokens.verify(other.issue("user-1"))

    def test_malformed_token_is_rejected(self, tokens):
        with pytest.raises(InvalidToken):
            tokens.verify("not-a-token")

    def test_token_without_subject_is_rejected(self, tokens, clock):
        exp = int((clock.now + timedelta(hours=1)).timestamp())
        token = jwt.encode({"exp": exp}, "test-secret", algorithm="HS256")
        with pytest.raises(InvalidToken):
            tokens.verify(token)


class TestPasswords:

    def test_hash_is_salted_and_verifiable(self):
        ctx = make_password_context(rounds=4)
        first = hash_password(ctx, "hunter2")
        second = hash_password(ctx, "hunter2")
        assert first != second
        assert first != "hunter2"
        assert verify_password(ctx, "hunter2", first)
        assert not verify_password(ctx, "hunter3", first)


class TestRequestGate:
    """Missing tokens are 401, unusable ones are 400."""

    def test_missing_header_is_unauthorized(self, client):
        response = client.get("/api/budget")
        assert response.status_code == 401
        assert response.json() == {"message": "No token provided"}

    def test_garbage_token_is_invalid(self, client):
        response = client.get("/api/expenses", headers={"Authorization": "garbage"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid token"}

    def test_bearer_prefix_is_not_accepted(self, client, alice):
        headers = {"Authorization": "Bearer " + alice["Authorization"]}
        assert client.get("/api/budget", headers=headers).status_code == 400

    def test_expired_token_is_invalid(self, client, alice, clock):
        clock.advance(timedelta(hours=25))
        response = client.get("/api/budget", headers=alice)
        assert response.status_code == 400

    def test_gate_runs_before_store_access(self, client, db):
        response = client.post("/api/budget", json={"items": []})
        assert response.status_code == 401
        assert db["budget"].count_documents({}) == 0
