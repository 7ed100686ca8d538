"""In-memory users backend for local development and tests."""

import itertools
import threading
from typing import Dict, List, Optional, TypeVar

from sqlmodel import SQLModel

from framework.exceptions.errors import NotFoundError, StorageError
from framework.logging.logger import get_logger
from framework.repository.unit_of_work import InMemoryUnitOfWork, UnitOfWork
from .models import (
    DeliveryData,
    SocialLink,
    SocialLinkCreate,
    SocialProvider,
    User,
    UserCreate,
    UserDetails,
    UserUpdate,
    Verification,
    VerificationCreate,
    VerificationUpdate,
)
from .repository import UserRepository

E = TypeVar("E", bound=SQLModel)

logger = get_logger("user_repository.memory")


def copy_entity(entity: E) -> E:
    return type(entity).model_validate(entity.model_dump())


class InMemoryUserStore:
    """Shared state of the in-memory backend.

    Owned by the application container and passed to every repository that uses it.
    ``lock`` is a plain threading lock: take it, copy or mutate, release, and never await
    while holding it.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.users: Dict[int, User] = {}
        self.verifications: Dict[int, Verification] = {}  # keyed by user_id
        self.socials: List[SocialLink] = []
        self.deliveries: Dict[int, DeliveryData] = {}  # keyed by user_id
        self.user_ids = itertools.count(1)
        self.verification_ids = itertools.count(1)
        self.social_ids = itertools.count(1)
        self.delivery_ids = itertools.count(1)

    def __len__(self) -> int:
        with self.lock:
            return len(self.users)


class InMemoryUserRepository(UserRepository):
    """UserRepository over an InMemoryUserStore, with the same filters and constraints as SQL."""

    def __init__(self, store: InMemoryUserStore, uow: Optional[InMemoryUnitOfWork] = None):
        self.store = store
        self.uow = uow

    def with_transaction(self, uow: UnitOfWork) -> Optional["InMemoryUserRepository"]:
        if not isinstance(uow, InMemoryUnitOfWork):
            logger.warning(f"InMemoryUserRepository cannot join foreign unit of work {uow!r}")
            return None
        return InMemoryUserRepository(self.store, uow)

    def _ensure_active(self) -> None:
        if self.uow is not None:
            self.uow.ensure_active()

    async def find_by_id(self, id: int) -> Optional[User]:
        self._ensure_active()
        with self.store.lock:
            user = self.store.users.get(id)
            return copy_entity(user) if user is not None else None

    async def find_by_uuid(self, uuid: str) -> Optional[User]:
        self._ensure_active()
        with self.store.lock:
            user = self._user_by_uuid(uuid)
            return copy_entity(user) if user is not None else None

    async def find_by_email(self, email: str) -> Optional[User]:
        self._ensure_active()
        with self.store.lock:
            user = next((u for u in self.store.users.values() if u.email == email), None)
            return copy_entity(user) if user is not None else None

    async def find_social(self, provider: SocialProvider, provider_id: str) -> Optional[SocialLink]:
        self._ensure_active()
        with self.store.lock:
            social = self._social_by_key(provider, provider_id)
            return copy_entity(social) if social is not None else None

    async def find_with_details_by_uuid(self, uuid: str) -> Optional[UserDetails]:
        self._ensure_active()
        with self.store.lock:
            user = self._user_by_uuid(uuid)
            if user is None:
                return None
            verification = self.store.verifications.get(user.id)
            socials = [copy_entity(s) for s in self.store.socials if s.user_id == user.id]
            return UserDetails(
                copy_entity(user),
                copy_entity(verification) if verification is not None else None,
                socials,
            )

    async def create_user_with_verification(
        self,
        user: UserCreate,
        social: Optional[SocialLinkCreate],
        verification: VerificationCreate,
    ) -> User:
        self._ensure_active()
        with self.store.lock:
            # Constraint checks run before any insert so a rejected call leaves no trace
            if self._user_by_uuid(user.uuid) is not None:
                raise self._constraint_violation(f"users.uuid {user.uuid!r} already exists")
            if social is not None and self._social_by_key(social.provider, social.provider_id) is not None:
                raise self._constraint_violation(
                    f"user_socials ({social.provider.value}, {social.provider_id!r}) already exists"
                )

            user_id = next(self.store.user_ids)
            created = User.model_validate(user, update={"id": user_id})
            self.store.users[user_id] = created

            if social is not None:
                self.store.socials.append(
                    SocialLink.model_validate(
                        social, update={"id": next(self.store.social_ids), "user_id": user_id}
                    )
                )

            self.store.verifications[user_id] = Verification.model_validate(
                verification, update={"id": next(self.store.verification_ids), "user_id": user_id}
            )
            result = copy_entity(created)

        logger.info(f"Created user id={result.id} uuid={result.uuid} (in-memory)")
        return result

    async def update_user(self, patch: UserUpdate) -> User:
        self._ensure_active()
        with self.store.lock:
            user = self.store.users.get(patch.id)
            if user is None:
                raise NotFoundError(f"User {patch.id} not found")
            for field, value in patch.changes().items():
                setattr(user, field, value)
            return copy_entity(user)

    async def update_verification(self, patch: VerificationUpdate) -> Verification:
        self._ensure_active()
        with self.store.lock:
            verification = self.store.verifications.get(patch.user_id)
            if verification is None:
                raise NotFoundError(f"Verification of user {patch.user_id} not found")
            for field, value in patch.changes().items():
                setattr(verification, field, value)
            return copy_entity(verification)

    async def delete_user(self, id: int) -> bool:
        self._ensure_active()
        with self.store.lock:
            if self.store.users.pop(id, None) is None:
                return False
            self.store.verifications.pop(id, None)
            self.store.deliveries.pop(id, None)
            self.store.socials[:] = [s for s in self.store.socials if s.user_id != id]
        logger.info(f"Deleted user id={id} (in-memory)")
        return True

    def _user_by_uuid(self, uuid: str) -> Optional[User]:
        return next((u for u in self.store.users.values() if u.uuid == uuid), None)

    def _social_by_key(self, provider: SocialProvider, provider_id: str) -> Optional[SocialLink]:
        return next(
            (s for s in self.store.socials if s.provider == provider and s.provider_id == provider_id),
            None,
        )

    @staticmethod
    def _constraint_violation(message: str) -> StorageError:
        logger.error(f"Unique constraint violated: {message}")
        return StorageError(f"Unique constraint violated: {message}")
