"""Auth API test cases: social login and email verification over HTTP."""
import pytest
from httpx import AsyncClient

from apps.auth.service import VerificationService
from apps.container import AppContainer
from framework.security import decode_access_token


async def social_login(client: AsyncClient, code: str = "good-code") -> dict:
    response = await client.get("/api/v1/auth/callback/kakao", params={"code": code})
    assert response.status_code == 200
    return response.json()["data"]


class TestSocialLogin:
    """Test login redirect and provider callback."""

    @pytest.mark.asyncio
    async def test_login_redirects_to_provider(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/login/kakao")

        assert response.status_code == 307
        assert response.headers["location"].startswith("https://oauth.test/authorize")

    @pytest.mark.asyncio
    async def test_login_unknown_provider(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/login/myspace")

        data = response.json()
        assert data["code"] == 400
        assert "Unsupported provider" in data["message"]

    @pytest.mark.asyncio
    async def test_callback_registers_new_user(self, client: AsyncClient):
        """First login creates a PENDING user and asks for more action."""
        response = await client.get("/api/v1/auth/callback/kakao", params={"code": "good-code"})

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == 200
        assert data["message"] == "success"

        login = data["data"]
        assert login["token_type"] == "bearer"
        assert login["need_more_action"] is True
        assert login["created"] is True
        assert login["user"]["account_status"] == "PENDING"
        assert decode_access_token(login["access_token"]).sub == login["user"]["uuid"]
        assert "access_token" in response.headers.get("set-cookie", "")

    @pytest.mark.asyncio
    async def test_second_callback_finds_same_user(self, client: AsyncClient):
        first = await social_login(client)
        second = await social_login(client)

        assert second["created"] is False
        assert second["user"]["uuid"] == first["user"]["uuid"]

    @pytest.mark.asyncio
    async def test_callback_upstream_failure(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/callback/kakao", params={"code": "bad-code"})

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == 502
        assert data["message"] == "Upstream service unavailable"

    @pytest.mark.asyncio
    async def test_callback_requires_code(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/callback/kakao")

        assert response.status_code == 422
        assert response.json()["code"] == 422

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client: AsyncClient):
        await social_login(client)
        response = await client.post("/api/v1/auth/logout")

        assert response.status_code == 200
        assert "access_token=" in response.headers.get("set-cookie", "")


class TestEmailVerification:
    """Test email challenge over HTTP."""

    @pytest.mark.asyncio
    async def test_request_requires_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/email/request", json={"email": "a@example.com"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_full_verification_flow(self, client: AsyncClient, container: AppContainer):
        login = await social_login(client)
        headers = {"Authorization": f"Bearer {login['access_token']}"}

        response = await client.post(
            "/api/v1/auth/email/request", json={"email": "verified@example.com"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["code"] == 200

        code = await container.code_store.get(VerificationService.code_key("verified@example.com"))
        assert code is not None

        response = await client.post(
            "/api/v1/auth/email/verify",
            json={"email": "verified@example.com", "code": code},
            headers=headers,
        )
        assert response.status_code == 200
        verification = response.json()["data"]
        assert verification["email_verified"] is True

        me = (await client.get("/api/v1/users/me", headers=headers)).json()["data"]
        assert me["user"]["account_status"] == "ACTIVE"
        assert me["user"]["email"] == "verified@example.com"
        assert me["verification"]["email_verified"] is True
        assert me["socials"][0]["provider"] == "KAKAO"

        # Next login no longer needs more action
        assert (await social_login(client))["need_more_action"] is False

    @pytest.mark.asyncio
    async def test_verify_with_wrong_code(self, client: AsyncClient, container: AppContainer):
        login = await social_login(client)
        headers = {"Authorization": f"Bearer {login['access_token']}"}
        await client.post("/api/v1/auth/email/request", json={"email": "w@example.com"}, headers=headers)

        code = await container.code_store.get(VerificationService.code_key("w@example.com"))
        wrong = "000000" if code != "000000" else "111111"
        response = await client.post(
            "/api/v1/auth/email/verify", json={"email": "w@example.com", "code": wrong}, headers=headers
        )

        data = response.json()
        assert data["code"] == 400
        assert data["message"] == "Invalid verification code"

    @pytest.mark.asyncio
    async def test_invalidate_drops_code(self, client: AsyncClient, container: AppContainer):
        login = await social_login(client)
        headers = {"Authorization": f"Bearer {login['access_token']}"}
        await client.post("/api/v1/auth/email/request", json={"email": "i@example.com"}, headers=headers)

        response = await client.post(
            "/api/v1/auth/email/invalidate", json={"email": "i@example.com"}, headers=headers
        )

        assert response.json()["code"] == 200
        assert await container.code_store.get(VerificationService.code_key("i@example.com")) is None
