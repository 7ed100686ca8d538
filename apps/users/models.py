from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from sqlalchemy import Column, ForeignKey, Integer, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Timezone-aware UTC timestamp; datetime columns reject naive values."""
    return datetime.now(timezone.utc)


def _user_fk(unique: bool = False) -> Column:
    return Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        unique=unique,
        index=True,
    )


class AccountStatus(str, Enum):
    """Account status; BANNED/PERM_BANNED are set by external moderation."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    BANNED = "BANNED"
    PERM_BANNED = "PERM_BANNED"


class SocialProvider(str, Enum):
    KAKAO = "KAKAO"
    GOOGLE = "GOOGLE"
    APPLE = "APPLE"


# --- users ---

class UserBase(SQLModel):
    username: str = Field(max_length=255)
    email: str = Field(default="", max_length=320, index=True)
    country_code: str = Field(default="", max_length=8)
    phone_number: str = Field(default="", max_length=32)


class User(UserBase, table=True):
    """Identity aggregate root."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    uuid: str = Field(unique=True, index=True, max_length=128, description="External identifier, immutable")
    account_status: AccountStatus = Field(default=AccountStatus.PENDING)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_login_at: Optional[datetime] = Field(default=None)


class UserCreate(UserBase):
    """Insert draft; id is assigned by storage."""
    uuid: str
    account_status: AccountStatus = AccountStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_login_at: Optional[datetime] = None


class UserUpdate(SQLModel):
    """Partial update; only explicitly set fields are written. uuid is not patchable."""
    id: int
    username: Optional[str] = None
    email: Optional[str] = None
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    account_status: Optional[AccountStatus] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class UserRead(UserBase):
    id: int
    uuid: str
    account_status: AccountStatus
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None


# --- user_verifications ---

class VerificationBase(SQLModel):
    email_verified: bool = Field(default=False)
    email_verified_at: Optional[datetime] = Field(default=None)
    phone_verified: bool = Field(default=False)
    phone_verified_at: Optional[datetime] = Field(default=None)
    business_verified: bool = Field(default=False)


class Verification(VerificationBase, table=True):
    """One-to-one child of User, created together with it."""
    __tablename__ = "user_verifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=_user_fk(unique=True))
    business_info: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    verification_code: Optional[str] = Field(default=None, max_length=16)


class VerificationCreate(VerificationBase):
    business_info: Optional[str] = None


class VerificationUpdate(SQLModel):
    """Partial update keyed by the owning user id."""
    user_id: int
    email_verified: Optional[bool] = None
    email_verified_at: Optional[datetime] = None
    phone_verified: Optional[bool] = None
    phone_verified_at: Optional[datetime] = None
    business_verified: Optional[bool] = None
    business_info: Optional[str] = None
    verification_code: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"user_id"})


class VerificationRead(VerificationBase):
    business_info: Optional[str] = None


# --- user_socials ---

class SocialLinkBase(SQLModel):
    provider: SocialProvider
    provider_id: str = Field(index=True, max_length=255)
    created_at: datetime = Field(default_factory=utc_now)


class SocialLink(SocialLinkBase, table=True):
    """Many-to-one child of User; (provider, provider_id) is the login key."""
    __tablename__ = "user_socials"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_user_socials_provider_provider_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=_user_fk())


class SocialLinkCreate(SocialLinkBase):
    pass


class SocialLinkRead(SocialLinkBase):
    pass


# --- user_delivery_data ---

class DeliveryData(SQLModel, table=True):
    """Optional shipping address of a user; schema only."""
    __tablename__ = "user_delivery_data"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=_user_fk(unique=True))
    recipient_name: str = Field(max_length=255)
    phone_number: str = Field(max_length=32)
    zip_code: str = Field(max_length=16)
    address: str = Field(max_length=512)
    detail_address: Optional[str] = Field(default=None, max_length=512)
    entrance_password: Optional[str] = Field(default=None, max_length=64)
    shipping_memo: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class UserDetails(NamedTuple):
    """User joined with its verification (may be missing) and social links."""
    user: User
    verification: Optional[Verification]
    socials: List[SocialLink]


class SocialLogin(SQLModel):
    """Profile handed over by an OAuth provider for login-or-register."""
    provider: SocialProvider
    provider_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = None
    connected_at: Optional[str] = None
