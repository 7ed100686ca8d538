"""OAuth provider clients and their registry."""

from abc import ABC, abstractmethod
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from apps.users.models import SocialProvider
from framework.exceptions.errors import UpstreamError
from framework.logging.logger import get_logger

logger = get_logger("oauth")


class OAuthUserInfo(BaseModel):
    """What a provider tells us about the user behind an authorization code."""
    provider_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = None
    connected_at: Optional[str] = None


class OAuthProvider(ABC):
    @abstractmethod
    def get_authorization_url(self) -> str:
        ...

    @abstractmethod
    async def get_user_info(self, code: str) -> OAuthUserInfo:
        """Exchange an authorization code for the user's profile. Raises UpstreamError."""


class KakaoProvider(OAuthProvider):
    AUTHORIZE_URL = "https://kauth.kakao.com/oauth/authorize"
    TOKEN_URL = "https://kauth.kakao.com/oauth/token"
    USER_INFO_URL = "https://kapi.kakao.com/v2/user/me"

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.transport = transport

    def get_authorization_url(self) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
        })
        return f"{self.AUTHORIZE_URL}?{query}"

    async def get_user_info(self, code: str) -> OAuthUserInfo:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                token_res = await client.post(
                    self.TOKEN_URL,
                    data={
                        "grant_type": "authorization_code",
                        "client_id": self.client_id,
                        "redirect_uri": self.redirect_uri,
                        "code": code,
                    },
                )
                token_res.raise_for_status()
                access_token = token_res.json()["access_token"]

                user_res = await client.get(
                    self.USER_INFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                user_res.raise_for_status()
                payload = user_res.json()
                provider_id = str(payload["id"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning(f"Kakao user info request failed: {e!r}")
            raise UpstreamError("Kakao user info request failed", cause=e) from e

        account = payload.get("kakao_account") or {}
        profile = account.get("profile") or {}
        return OAuthUserInfo(
            provider_id=provider_id,
            email=account.get("email"),
            name=profile.get("nickname"),
            phone_number=account.get("phone_number"),
            connected_at=payload.get("connected_at"),
        )


class OAuthProviderRegistry:
    def __init__(self):
        self._providers: Dict[SocialProvider, OAuthProvider] = {}

    def register(self, provider_type: SocialProvider, provider: OAuthProvider) -> "OAuthProviderRegistry":
        self._providers[provider_type] = provider
        return self

    def get(self, provider_type: SocialProvider) -> Optional[OAuthProvider]:
        return self._providers.get(provider_type)
