"""Users API test cases."""
import pytest
from httpx import AsyncClient

from framework.security import create_access_token


class TestUsersApi:

    @pytest.mark.asyncio
    async def test_register_user(self, client: AsyncClient):
        payload = {"username": "alice", "email": "alice@example.com", "country_code": "KR"}

        response = await client.post("/api/v1/users", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == 200
        user = data["data"]
        assert user["username"] == "alice"
        assert user["account_status"] == "PENDING"
        assert user["uuid"]

    @pytest.mark.asyncio
    async def test_register_user_invalid_email(self, client: AsyncClient):
        response = await client.post("/api/v1/users", json={"username": "bob", "email": "not-an-email"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_user_by_id(self, client: AsyncClient):
        created = (await client.post(
            "/api/v1/users", json={"username": "carol", "email": "carol@example.com"}
        )).json()["data"]

        response = await client.get(f"/api/v1/users/{created['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["uuid"] == created["uuid"]

    @pytest.mark.asyncio
    async def test_get_missing_user(self, client: AsyncClient):
        response = await client.get("/api/v1/users/987654")

        assert response.status_code == 404
        assert response.json()["code"] == 404

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_returns_details(self, client: AsyncClient):
        created = (await client.post(
            "/api/v1/users", json={"username": "dora", "email": "dora@example.com"}
        )).json()["data"]
        token = create_access_token(created["uuid"])

        response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        me = response.json()["data"]
        assert me["user"]["uuid"] == created["uuid"]
        assert me["verification"]["email_verified"] is False
        assert me["socials"] == []

    @pytest.mark.asyncio
    async def test_me_with_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
