import uuid
from typing import Tuple

from framework.exceptions.errors import NotFoundError, StorageError
from framework.logging.logger import get_logger
from framework.repository.manager import RepositoryManager
from .models import (
    AccountStatus,
    SocialLinkCreate,
    SocialLogin,
    User,
    UserCreate,
    UserDetails,
    UserUpdate,
    VerificationCreate,
    utc_now,
)
from .repository import UserRepository

logger = get_logger("user_service")


def generate_user_uuid() -> str:
    """External identifier: decimal form of a random 128-bit UUID."""
    return str(uuid.uuid4().int)


class UserService:
    """User lookup and registration on top of whatever UserRepository is wired."""

    def __init__(self, manager: RepositoryManager):
        self.manager = manager
        self.users = manager.require(UserRepository)

    async def register_user(
        self,
        username: str,
        email: str,
        country_code: str = "",
        phone_number: str = "",
    ) -> User:
        """Create a PENDING user together with a blank verification record."""
        now = utc_now()
        draft = UserCreate(
            uuid=generate_user_uuid(),
            username=username,
            email=email,
            country_code=country_code,
            phone_number=phone_number,
            account_status=AccountStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        user = await self.users.create_user_with_verification(draft, None, VerificationCreate())
        logger.info(f"User {user.uuid} registered")
        return user

    async def find_or_create_social_user(self, login: SocialLogin) -> Tuple[User, bool]:
        """Return (user, created). Existing users get last_login_at refreshed."""
        now = utc_now()
        social = await self.users.find_social(login.provider, login.provider_id)

        if social is not None:
            user = await self.users.find_by_id(social.user_id)
            if user is None:
                raise StorageError(
                    f"Social link {login.provider.value}/{login.provider_id} points at missing user {social.user_id}"
                )
            user = await self.users.update_user(UserUpdate(id=user.id, last_login_at=now))
            logger.info(f"User {user.uuid} logged in via {login.provider.value}")
            return user, False

        draft = UserCreate(
            uuid=generate_user_uuid(),
            username=login.name or "User",
            email=login.email or "",
            phone_number=login.phone_number or "",
            account_status=AccountStatus.PENDING,
            created_at=now,
            updated_at=now,
            last_login_at=now,
        )
        user = await self.users.create_user_with_verification(
            draft,
            SocialLinkCreate(provider=login.provider, provider_id=login.provider_id, created_at=now),
            VerificationCreate(),
        )
        logger.info(f"User {user.uuid} registered via {login.provider.value}")
        return user, True

    async def get_user(self, user_id: int) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def get_details(self, user_uuid: str) -> UserDetails:
        details = await self.users.find_with_details_by_uuid(user_uuid)
        if details is None:
            raise NotFoundError("User not found")
        return details
