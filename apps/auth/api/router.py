from datetime import timedelta

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field

from framework.config import settings
from framework.exceptions.handler import BusinessException
from framework.response import ResponseModel
from framework.security import TokenClaims, get_current_claims
from apps.dependencies import get_auth_service, get_verification_service
from apps.users.models import SocialProvider, VerificationRead
from ..service import AuthService, VerificationService

router = APIRouter()

class EmailRequestSchema(BaseModel):
    email: EmailStr

class EmailVerifySchema(BaseModel):
    email: EmailStr
    code: str = Field(min_length=6, max_length=6)

def parse_provider(provider: str) -> SocialProvider:
    try:
        return SocialProvider(provider.upper())
    except ValueError:
        raise BusinessException(f"Unsupported provider: {provider}", code=400)

def _set_token_cookie(response: Response, token: str) -> None:
    max_age = int(timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES).total_seconds())
    response.set_cookie(
        key=settings.ACCESS_TOKEN_COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE
    )

@router.get("/login/{provider}")
async def login(
    provider: SocialProvider = Depends(parse_provider),
    service: AuthService = Depends(get_auth_service)
):
    """Redirect the browser to the provider's consent page."""
    return RedirectResponse(service.authorization_url(provider))

@router.get("/callback/{provider}")
async def callback(
    response: Response,
    code: str = Query(..., min_length=1),
    provider: SocialProvider = Depends(parse_provider),
    service: AuthService = Depends(get_auth_service)
):
    """Finish social login: return JWT and set cookie."""
    result = await service.handle_social_login(provider, code)
    _set_token_cookie(response, result.token)
    return ResponseModel.success(
        data={
            "access_token": result.token,
            "token_type": "bearer",
            "need_more_action": result.need_more_action,
            "created": result.created,
            "user": {
                "uuid": result.user.uuid,
                "username": result.user.username,
                "account_status": result.user.account_status.value,
            }
        }
    )

@router.post("/email/request")
async def request_email_code(
    data: EmailRequestSchema,
    claims: TokenClaims = Depends(get_current_claims),
    service: VerificationService = Depends(get_verification_service)
):
    """Send a verification code to the given address."""
    await service.request_email_code(claims.sub, data.email)
    return ResponseModel.success(data={"message": "Verification code sent"})

@router.post("/email/verify")
async def verify_email_code(
    data: EmailVerifySchema,
    claims: TokenClaims = Depends(get_current_claims),
    service: VerificationService = Depends(get_verification_service)
):
    verification = await service.verify_email_code(claims.sub, data.email, data.code)
    return ResponseModel.success(
        data=VerificationRead.model_validate(verification).model_dump(mode="json")
    )

@router.post("/email/invalidate")
async def invalidate_email_code(
    data: EmailRequestSchema,
    claims: TokenClaims = Depends(get_current_claims),
    service: VerificationService = Depends(get_verification_service)
):
    await service.invalidate_code(claims.sub, data.email)
    return ResponseModel.success(data={"message": "Verification code invalidated"})

@router.post("/logout")
async def logout(response: Response):
    """Logout: clear token cookie."""
    response.delete_cookie(
        key=settings.ACCESS_TOKEN_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE
    )
    return ResponseModel.success(data={"message": "Logged out successfully"})
