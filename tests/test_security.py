import logging
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.config import settings
from app.errors import AuthenticationError
from app.security import create_access_token, decode_access_token
from models.user import UserRole

API = settings.API_PREFIX.rstrip("/")


def test_token_round_trip():
    token = create_access_token(user_id=7, email="u@x.test", company_id=3, role=UserRole.OWNER)
    principal = decode_access_token(token)
    assert principal.user_id == 7
    assert principal.company_id == 3
    assert principal.email == "u@x.test"
    assert principal.is_owner


def test_expired_token_is_rejected():
    token = create_access_token(user_id=7, email="u@x.test", company_id=3, role="MEMBER", expires_minutes=-1)
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_without_company_is_rejected():
    token = jwt.encode(
        {"sub": "7", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.AUTH_JWT_SECRET,
        algorithm=settings.AUTH_JWT_ALGORITHM,
    )
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode(
        {"userId": 1, "companyId": 1, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "not-the-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_protected_route_requires_token(client):
    response = client.get(f"{API}/notes/my-notes")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "No token provided"
    assert body["statusCode"] == 401


def test_invalid_bearer_token(client):
    response = client.get(f"{API}/notes/my-notes", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_me_returns_profile(client, make_tenant):
    tenant = make_tenant("Acme")
    response = client.get(f"{API}/auth/me", headers=tenant.headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == tenant.owner.user_id
    assert data["companyId"] == tenant.company_id
    assert data["role"] == "OWNER"
    assert "passwordHash" not in data


def test_x_auth_token_header_is_accepted(client, make_tenant):
    tenant = make_tenant("Acme")
    response = client.get(f"{API}/auth/me", headers={"x-auth-token": tenant.owner.token})
    assert response.status_code == 200


def test_me_for_deleted_user_is_not_found(client):
    token = create_access_token(user_id=999, email="ghost@x.test", company_id=1, role="MEMBER")
    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_invalid_token_audit_log_names_claimed_user(client, caplog):
    forged = jwt.encode(
        {"userId": 12345678901, "companyId": 1, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "not-the-secret",
        algorithm="HS256",
    )
    with caplog.at_level(logging.WARNING, logger="notehub.security"):
        response = client.get(f"{API}/notes/my-notes", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401
    denials = [r.getMessage() for r in caplog.records if r.getMessage().startswith("AUTH_DENY")]
    assert denials
    assert "reason=invalid_token" in denials[-1]
    assert "claimed=1234...8901" in denials[-1]


def test_garbage_token_audit_log_has_no_claim(client, caplog):
    with caplog.at_level(logging.WARNING, logger="notehub.security"):
        client.get(f"{API}/notes/my-notes", headers={"Authorization": "Bearer garbage"})
    denials = [r.getMessage() for r in caplog.records if r.getMessage().startswith("AUTH_DENY")]
    assert "claimed=-" in denials[-1]
