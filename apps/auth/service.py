import hmac
import secrets
from typing import Awaitable, Callable, NamedTuple, Optional

from apps.users.models import (
    AccountStatus,
    SocialLogin,
    SocialProvider,
    User,
    UserUpdate,
    Verification,
    VerificationUpdate,
    utc_now,
)
from apps.users.repository import UserRepository
from apps.users.service import UserService
from framework.config import settings
from framework.exceptions.errors import ConfigurationError, DeliveryError, NotFoundError, StorageError
from framework.exceptions.handler import BusinessException
from framework.logging.logger import get_logger
from framework.notification.notifier import send_verification_code
from framework.repository.manager import RepositoryManager
from framework.repository.unit_of_work import UnitOfWork
from framework.security import create_access_token
from .code_store import CodeStore
from .providers import OAuthProvider, OAuthProviderRegistry

logger = get_logger("auth_service")

CodeSender = Callable[[str, str], Awaitable[None]]


def generate_verification_code() -> str:
    """Six-digit numeric code."""
    return str(secrets.randbelow(900000) + 100000)


class SocialLoginResult(NamedTuple):
    token: str
    need_more_action: bool
    user: User
    created: bool


class AuthService:
    """Social login: provider code -> user (found or registered) -> access token."""

    def __init__(self, user_service: UserService, providers: OAuthProviderRegistry):
        self.user_service = user_service
        self.providers = providers

    def _provider(self, provider: SocialProvider) -> OAuthProvider:
        oauth_provider = self.providers.get(provider)
        if oauth_provider is None:
            raise ConfigurationError(f"{provider.value} provider not configured")
        return oauth_provider

    def authorization_url(self, provider: SocialProvider) -> str:
        return self._provider(provider).get_authorization_url()

    async def handle_social_login(self, provider: SocialProvider, code: str) -> SocialLoginResult:
        info = await self._provider(provider).get_user_info(code)
        user, created = await self.user_service.find_or_create_social_user(
            SocialLogin(provider=provider, **info.model_dump())
        )
        token = create_access_token(user.uuid)
        return SocialLoginResult(
            token=token,
            need_more_action=user.account_status != AccountStatus.ACTIVE,
            user=user,
            created=created,
        )


class VerificationService:
    """Email verification challenge: issue a code, check it, flip the account to ACTIVE."""

    def __init__(
        self,
        manager: RepositoryManager,
        code_store: CodeStore,
        send_code: CodeSender = send_verification_code,
        ttl_seconds: Optional[int] = None,
    ):
        self.manager = manager
        self.users = manager.require(UserRepository)
        self.code_store = code_store
        self.send_code = send_code
        self.ttl_seconds = settings.VERIFICATION_CODE_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    @staticmethod
    def code_key(email: str) -> str:
        return f"{settings.VERIFICATION_KEY_PREFIX}:{email}"

    def _bind(self, uow: UnitOfWork) -> UserRepository:
        users = self.users.with_transaction(uow)
        if users is None:
            raise ConfigurationError(f"UserRepository cannot join {uow!r}")
        return users

    async def _load(self, user_uuid: str):
        details = await self.users.find_with_details_by_uuid(user_uuid)
        if details is None:
            raise NotFoundError("User not found")
        if details.verification is None:
            logger.error(f"User {user_uuid} has no verification record")
            raise BusinessException("Verification record missing", status_code=500, code=500)
        return details

    async def request_email_code(self, user_uuid: str, email: str) -> None:
        user, verification, _ = await self._load(user_uuid)

        if user.account_status != AccountStatus.PENDING:
            raise BusinessException("User is already active or banned", code=400)
        if verification.email_verified:
            raise BusinessException("Email already verified", code=400)

        code = generate_verification_code()
        key = self.code_key(email)
        # Row first: if it fails, no new code is live in the store
        await self.users.update_verification(
            VerificationUpdate(user_id=user.id, verification_code=code)
        )

        try:
            await self.code_store.set_with_ttl(key, code, self.ttl_seconds)
            await self.send_code(email, code)
        except (StorageError, DeliveryError):
            await self._clear_code(user.id, key)
            raise

        logger.info(f"Verification code issued for user {user.uuid}")

    async def verify_email_code(self, user_uuid: str, email: str, code: str) -> Verification:
        """Returns the verification record; unchanged when the email was already verified."""
        user, verification, _ = await self._load(user_uuid)

        if verification.email_verified:
            return verification

        key = self.code_key(email)
        stored = await self.code_store.get(key)
        if stored is None:
            raise BusinessException("No verification code found (or expired)", code=400)
        if not hmac.compare_digest(stored.encode(), code.encode()):
            raise BusinessException("Invalid verification code", code=400)

        now = utc_now()
        async with self.manager.transaction() as uow:
            users = self._bind(uow)
            verification = await users.update_verification(
                VerificationUpdate(
                    user_id=user.id,
                    email_verified=True,
                    email_verified_at=now,
                    verification_code=None,
                )
            )
            await users.update_user(
                UserUpdate(id=user.id, account_status=AccountStatus.ACTIVE, email=email, updated_at=now)
            )
            await uow.commit()

        await self.code_store.delete(key)
        logger.info(f"User {user.uuid} verified email and is now ACTIVE")
        return verification

    async def invalidate_code(self, user_uuid: str, email: str) -> None:
        user, _, _ = await self._load(user_uuid)
        await self._clear_code(user.id, self.code_key(email))

    async def _clear_code(self, user_id: int, key: str) -> None:
        await self.code_store.delete(key)
        await self.users.update_verification(VerificationUpdate(user_id=user_id, verification_code=None))
