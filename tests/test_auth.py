"""Tests for token issuance, verification and the auth dependencies."""
import os
import subprocess
import sys
import time
from datetime import timedelta
from pathlib import Path

from jose import jwt

import auth
from schemas import Role


class TestTokenService:

    def test_issued_token_round_trips_claims(self):
        token = auth.create_access_token("alice", Role.ADMIN)
        claims = auth.decode_access_token(token)
        assert claims.username == "alice"
        assert claims.role == Role.ADMIN

    def test_token_expires_after_one_hour(self):
        before = int(time.time())
        token = auth.create_access_token("alice", Role.USER)
        payload = jwt.get_unverified_claims(token)
        assert before + 3600 <= payload["exp"] <= int(time.time()) + 3601

    def test_expired_token_is_rejected(self):
        token = auth.create_access_token("alice", Role.ADMIN, timedelta(seconds=-1))
        assert auth.decode_access_token(token) is None

    def test_token_signed_with_other_secret_is_rejected(self):
        token = jwt.encode({"username": "alice", "role": "Admin"}, "not-the-secret", algorithm="HS256")
        assert auth.decode_access_token(token) is None

    def test_malformed_token_is_rejected(self):
        assert auth.decode_access_token("not.a.token") is None

    def test_unknown_role_is_rejected(self):
        token = jwt.encode({"username": "alice", "role": "Root"}, auth.SECRET_KEY, algorithm=auth.ALGORITHM)
        assert auth.decode_access_token(token) is None

    def test_passwords_are_hashed(self):
        hashed = auth.get_password_hash("pw1")
        assert hashed != "pw1"
        assert auth.verify_password("pw1", hashed)
        assert not auth.verify_password("pw2", hashed)


class TestAuthDependencies:

    def test_missing_header_is_401(self, client):
        response = client.get("/me")
        assert response.status_code == 401
        assert response.json() == {"message": "Missing Auth Header"}

    def test_invalid_token_is_401(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized"

    def test_header_without_bearer_scheme_is_401(self, client):
        token = auth.create_access_token("alice", Role.USER)
        response = client.get("/me", headers={"Authorization": token})
        assert response.status_code == 401

    def test_expired_token_is_401(self, client):
        token = auth.create_access_token("alice", Role.ADMIN, timedelta(minutes=-61))
        response = client.get("/admin/courses", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_user_token_on_admin_route_is_404(self, client, user_headers):
        response = client.get("/admin/courses", headers=user_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Admins Only Allowed"}

    def test_admin_token_passes_user_routes(self, client, admin_headers):
        response = client.get("/users/courses", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"Courses": []}


def test_secret_is_read_from_dotenv(tmp_path):
    (tmp_path / ".env").write_text("JWT_SECRET=from-dotenv\nACCESS_TOKEN_EXPIRE_MINUTES=5\n")
    env = {k: v for k, v in os.environ.items() if k not in ("JWT_SECRET", "ACCESS_TOKEN_EXPIRE_MINUTES")}
    env["PYTHONPATH"] = str(Path(__file__).resolve().parents[1])
    result = subprocess.run(
        [sys.executable, "-c", "import main, auth; print(auth.SECRET_KEY, auth.ACCESS_TOKEN_EXPIRE_MINUTES)"],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.split() == ["from-dotenv", "5"]
