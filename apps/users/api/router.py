from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr

from framework.response import ResponseModel
from framework.security import TokenClaims, get_current_claims
from apps.dependencies import get_user_service
from ..models import SocialLinkRead, UserDetails, UserRead, VerificationRead
from ..service import UserService

router = APIRouter()

class RegisterUserSchema(BaseModel):
    username: str
    email: EmailStr
    country_code: str = ""
    phone_number: str = ""

class UserDetailsRead(BaseModel):
    user: UserRead
    verification: Optional[VerificationRead] = None
    socials: List[SocialLinkRead] = []

    @classmethod
    def from_details(cls, details: UserDetails) -> "UserDetailsRead":
        user, verification, socials = details
        return cls(
            user=UserRead.model_validate(user),
            verification=VerificationRead.model_validate(verification) if verification is not None else None,
            socials=[SocialLinkRead.model_validate(s) for s in socials],
        )

@router.post("", response_model=ResponseModel[UserRead])
async def register_user(
    data: RegisterUserSchema,
    service: UserService = Depends(get_user_service)
):
    """Register a PENDING user with a blank verification record."""
    user = await service.register_user(
        data.username, data.email, data.country_code, data.phone_number
    )
    return ResponseModel.success(data=UserRead.model_validate(user))

# Declared before /{user_id} so "me" is not parsed as an id
@router.get("/me", response_model=ResponseModel[UserDetailsRead])
async def read_me(
    claims: TokenClaims = Depends(get_current_claims),
    service: UserService = Depends(get_user_service)
):
    """Current user with verification and social links."""
    details = await service.get_details(claims.sub)
    return ResponseModel.success(data=UserDetailsRead.from_details(details))

@router.get("/{user_id}", response_model=ResponseModel[UserRead])
async def read_user(
    user_id: int,
    service: UserService = Depends(get_user_service)
):
    user = await service.get_user(user_id)
    return ResponseModel.success(data=UserRead.model_validate(user))
