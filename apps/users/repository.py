"""Users module repository contract and SQL implementation."""

from abc import abstractmethod
from typing import List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from framework.exceptions.errors import NotFoundError
from framework.logging.logger import get_logger
from framework.repository.base import Repository, SessionFactory, SqlRepository
from framework.repository.unit_of_work import SqlUnitOfWork, UnitOfWork
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

logger = get_logger("user_repository")


class UserRepository(Repository):
    """Storage contract of the User aggregate (User + Verification + SocialLinks).

    Lookups return None when nothing matches. Storage failures raise StorageError.
    """

    @abstractmethod
    async def find_by_id(self, id: int) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_uuid(self, uuid: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_social(self, provider: SocialProvider, provider_id: str) -> Optional[SocialLink]:
        ...

    @abstractmethod
    async def find_with_details_by_uuid(self, uuid: str) -> Optional[UserDetails]:
        """Load the user and, only if found, its verification and social links."""

    @abstractmethod
    async def create_user_with_verification(
        self,
        user: UserCreate,
        social: Optional[SocialLinkCreate],
        verification: VerificationCreate,
    ) -> User:
        """Insert user, optional social link and verification as one atomic unit.

        On a bare connection this opens its own transaction; bound to a unit of work it
        joins the caller's transaction.
        """

    @abstractmethod
    async def update_user(self, patch: UserUpdate) -> User:
        """Write the explicitly set fields; NotFoundError if the user does not exist."""

    @abstractmethod
    async def update_verification(self, patch: VerificationUpdate) -> Verification:
        """Write the explicitly set fields; NotFoundError if there is no verification row."""

    @abstractmethod
    async def delete_user(self, id: int) -> bool:
        """Delete the user with its verification and social links."""

    @abstractmethod
    def with_transaction(self, uow: UnitOfWork) -> Optional["UserRepository"]:
        ...


class SqlUserRepository(SqlRepository[User], UserRepository):
    """User repository backed by the relational store."""

    def __init__(self, session_factory: SessionFactory, uow: Optional[SqlUnitOfWork] = None):
        super().__init__(session_factory, User, uow)

    async def find_by_id(self, id: int) -> Optional[User]:
        return await self.get_by_id(id)

    async def find_by_uuid(self, uuid: str) -> Optional[User]:
        return await self.find_one(uuid=uuid)

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self.find_one(email=email)

    async def find_social(self, provider: SocialProvider, provider_id: str) -> Optional[SocialLink]:
        async with self._session() as session:
            result = await session.exec(
                self._filtered(SocialLink, provider=provider, provider_id=provider_id)
            )
            return result.first()

    async def find_with_details_by_uuid(self, uuid: str) -> Optional[UserDetails]:
        async with self._session() as session:
            user = (await session.exec(self._filtered(uuid=uuid))).first()
            if user is None:
                return None
            verification = (
                await session.exec(self._filtered(Verification, user_id=user.id))
            ).first()
            socials = await self._socials_of(session, user.id)
            return UserDetails(user, verification, socials)

    async def create_user_with_verification(
        self,
        user: UserCreate,
        social: Optional[SocialLinkCreate],
        verification: VerificationCreate,
    ) -> User:
        async with self._session() as session:
            created = User.model_validate(user)
            session.add(created)
            await session.flush()

            if social is not None:
                session.add(SocialLink.model_validate(social, update={"user_id": created.id}))
                await session.flush()

            session.add(Verification.model_validate(verification, update={"user_id": created.id}))
            await session.flush()

        logger.info(f"Created user id={created.id} uuid={created.uuid} (in_transaction={self.in_transaction})")
        return created

    async def update_user(self, patch: UserUpdate) -> User:
        async with self._session() as session:
            user = await session.get(User, patch.id)
            if user is None:
                raise NotFoundError(f"User {patch.id} not found")
            for field, value in patch.changes().items():
                setattr(user, field, value)
            session.add(user)
            await session.flush()
            return user

    async def update_verification(self, patch: VerificationUpdate) -> Verification:
        async with self._session() as session:
            verification = (
                await session.exec(self._filtered(Verification, user_id=patch.user_id))
            ).first()
            if verification is None:
                raise NotFoundError(f"Verification of user {patch.user_id} not found")
            for field, value in patch.changes().items():
                setattr(verification, field, value)
            session.add(verification)
            await session.flush()
            return verification

    async def delete_user(self, id: int) -> bool:
        async with self._session() as session:
            user = await session.get(User, id)
            if user is None:
                return False
            # SQLite leaves FK cascades off unless the pragma is set
            verification = (await session.exec(self._filtered(Verification, user_id=id))).first()
            if verification is not None:
                await session.delete(verification)
            for social in await self._socials_of(session, id):
                await session.delete(social)
            delivery = (await session.exec(self._filtered(DeliveryData, user_id=id))).first()
            if delivery is not None:
                await session.delete(delivery)
            await session.delete(user)
            await session.flush()
        logger.info(f"Deleted user id={id}")
        return True

    @staticmethod
    async def _socials_of(session: AsyncSession, user_id: int) -> List[SocialLink]:
        result = await session.exec(
            select(SocialLink).where(SocialLink.user_id == user_id).order_by(SocialLink.id)
        )
        return list(result.all())
