from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from framework.config import settings

bearer_scheme = HTTPBearer(auto_error=False)

# --- Core models ---

class TokenClaims(BaseModel):
    """JWT payload; sub is the user's external uuid."""
    sub: str
    exp: int
    iat: int

# --- Helpers ---

def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT token"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": subject, "iat": int(now.timestamp()), "exp": int(expire.timestamp())}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> TokenClaims:
    """Decode and validate a token; raises JWTError on failure."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    return TokenClaims(**payload)

# --- FastAPI dependencies ---

def get_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """
    Get token from request: prefer cookie, then Authorization header.
    """
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE_NAME)

    if not token and credentials is not None:
        token = credentials.credentials

    return token

def get_current_claims(
    token: Optional[str] = Depends(get_token_from_request)
) -> TokenClaims:
    """
    Dependency: validate token and return its claims. Use in router as claims: TokenClaims = Depends(get_current_claims).
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    try:
        return decode_access_token(token)
    except (JWTError, ValueError):
        raise credentials_exception
