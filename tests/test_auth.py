from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.models import Account, Profile

REGISTER_PAYLOAD = {
    "email": "Jane.Doe@school.edu",
    "password": "StrongPass123",
    "confirm_password": "StrongPass123",
    "first_name": "Jane",
    "last_name": "Doe",
    "phone": "+15550100",
}


@pytest.mark.asyncio
async def test_register_success(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "student"
    assert data["first_name"] == "Jane"
    profile_id = UUID(data["id"])

    # Verify profile and credentials created together
    profile = await db_session.get(Profile, profile_id)
    assert profile is not None
    assert profile.role == "student"

    account_result = await db_session.execute(select(Account).where(Account.id == profile_id))
    account = account_result.scalar_one_or_none()
    assert account is not None
    assert account.email == "jane.doe@school.edu"
    assert account.password_hash != REGISTER_PAYLOAD["password"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient) -> None:
    first = await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    assert first.status_code == 201
    second = await client.post(
        "/api/v1/auth/register",
        json={**REGISTER_PAYLOAD, "email": "jane.doe@SCHOOL.edu"},
    )
    assert second.status_code == 409
    assert second.json()["detail"] == "Email is already in use"


@pytest.mark.asyncio
async def test_register_password_mismatch(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/auth/register",
        json={**REGISTER_PAYLOAD, "confirm_password": "SomethingElse1"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_ignores_requested_role(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json={**REGISTER_PAYLOAD, "role": "admin"})
    assert response.status_code == 201
    assert response.json()["role"] == "student"


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient) -> None:
    register_resp = await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    assert register_resp.status_code == 201

    login_resp = await client.post(
        "/api/v1/auth/login",
        json={"email": REGISTER_PAYLOAD["email"], "password": REGISTER_PAYLOAD["password"]},
    )
    assert login_resp.status_code == 200
    data = login_resp.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "student"
    assert data["user_id"] == register_resp.json()["id"]

    me_resp = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me_resp.status_code == 200
    assert me_resp.json()["last_name"] == "Doe"


@pytest.mark.asyncio
async def test_login_oauth_form(client: AsyncClient) -> None:
    await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": REGISTER_PAYLOAD["email"], "password": REGISTER_PAYLOAD["password"]},
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert response.json()["access_token"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient) -> None:
    await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": REGISTER_PAYLOAD["email"], "password": "WrongPass999"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient) -> None:
    assert (await client.get("/api/v1/auth/me")).status_code == 401
    bad = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401
