"""
Integration tests for Authentication Flow.

Verifies Register -> Login -> Me -> Logout, the credential mismatch
message and role rules.
"""

import pytest
from sqlalchemy import select

from marketplace_backend.app.models.audit_log import AuditLog
from marketplace_backend.app.models.enums import UserRole

PASSWORD = "secret@123"
CREDENTIALS_MISMATCH = "The credentials does not match."


@pytest.mark.asyncio
async def test_register_merchant(client):
    """Merchants can self-register and get a token straight away."""
    response = await client.post("/v1/auth/register", json={
        "email": "shop@example.com",
        "username": "shop",
        "password": PASSWORD,
        "role": "MERCHANT"
    })

    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "MERCHANT"
    assert data["username"] == "shop"
    assert data["token_type"] == "bearer"
    assert data["access_token"]


@pytest.mark.asyncio
async def test_register_defaults_to_customer(client):
    response = await client.post("/v1/auth/register", json={
        "email": "buyer@example.com",
        "username": "buyer",
        "password": PASSWORD
    })

    assert response.status_code == 201
    assert response.json()["role"] == "CUSTOMER"


@pytest.mark.asyncio
async def test_register_admin_forbidden(client):
    """ADMIN accounts cannot be created through the API."""
    response = await client.post("/v1/auth/register", json={
        "email": "root@example.com",
        "username": "root",
        "password": PASSWORD,
        "role": "ADMIN"
    })

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_register_duplicate_username(client, merchant):
    response = await client.post("/v1/auth/register", json={
        "email": "other@example.com",
        "username": "merchant",
        "password": PASSWORD
    })

    assert response.status_code == 422
    assert response.json()["errors"] == {"username": ["The username has already been taken."]}


@pytest.mark.asyncio
async def test_register_duplicate_email(client, merchant):
    response = await client.post("/v1/auth/register", json={
        "email": "merchant@test.com",
        "username": "another",
        "password": PASSWORD
    })

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


@pytest.mark.asyncio
async def test_login_with_username(client, customer):
    response = await client.post("/v1/auth/login", json={
        "username": "johnlennon",
        "password": PASSWORD
    })

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == customer.id
    assert data["role"] == "CUSTOMER"


@pytest.mark.asyncio
async def test_login_with_email(client, customer):
    response = await client.post("/v1/auth/login", json={
        "username": "johnlennon@test.com",
        "password": PASSWORD
    })

    assert response.status_code == 200
    assert response.json()["username"] == "johnlennon"


@pytest.mark.asyncio
async def test_login_requires_both_fields(client):
    response = await client.post("/v1/auth/login", json={})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors == {
        "username": ["The username field is required."],
        "password": ["The password field is required."],
    }


@pytest.mark.asyncio
async def test_login_without_body_lists_each_field(client):
    response = await client.post("/v1/auth/login")

    assert response.status_code == 422
    assert response.json()["errors"] == {
        "username": ["The username field is required."],
        "password": ["The password field is required."],
    }


@pytest.mark.asyncio
async def test_login_with_non_object_body(client):
    response = await client.post("/v1/auth/login", json=[])

    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"username", "password"}


@pytest.mark.asyncio
async def test_login_wrong_password(client, session_factory, customer):
    response = await client.post("/v1/auth/login", json={
        "username": "johnlennon",
        "password": "wrong-password"
    })

    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "The given data was invalid."
    assert body["errors"]["username"][0] == CREDENTIALS_MISMATCH

    async with session_factory() as session:
        result = await session.execute(
            select(AuditLog).where(AuditLog.action == "LOGIN_FAILED")
        )
        failures = result.scalars().all()
    assert len(failures) == 1
    assert failures[0].actor_id == customer.id


@pytest.mark.asyncio
async def test_login_unknown_user_same_message(client):
    response = await client.post("/v1/auth/login", json={
        "username": "nobody",
        "password": PASSWORD
    })

    assert response.status_code == 422
    assert response.json()["errors"]["username"] == [CREDENTIALS_MISMATCH]


@pytest.mark.asyncio
async def test_login_inactive_user(client, make_user):
    await make_user(UserRole.MERCHANT, "closedshop", is_active=False)

    response = await client.post("/v1/auth/login", json={
        "username": "closedshop",
        "password": PASSWORD
    })

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_returns_profile(client, auth_headers, merchant):
    response = await client.get("/v1/auth/me", headers=auth_headers(merchant))

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == merchant.id
    assert data["username"] == "merchant"
    assert data["role"] == "MERCHANT"
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_then_logout_revokes_token(client, customer):
    login = await client.post("/v1/auth/login", json={
        "username": "johnlennon",
        "password": PASSWORD
    })
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    me = await client.get("/v1/auth/me", headers=headers)
    assert me.status_code == 200

    logout = await client.post("/v1/auth/logout", headers=headers)
    assert logout.status_code == 200
    assert logout.json()["message"] == "Logged out"

    after = await client.get("/v1/auth/me", headers=headers)
    assert after.status_code == 401
    assert after.json()["message"] == "Token has been revoked"


@pytest.mark.asyncio
async def test_logout_leaves_other_sessions_alone(client, customer):
    credentials = {"username": "johnlennon", "password": PASSWORD}
    first = (await client.post("/v1/auth/login", json=credentials)).json()["access_token"]
    second = (await client.post("/v1/auth/login", json=credentials)).json()["access_token"]

    await client.post("/v1/auth/logout", headers={"Authorization": f"Bearer {first}"})

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {second}"})
    assert response.status_code == 200
