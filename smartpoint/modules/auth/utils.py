from fastapi import Depends
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from smartpoint.core.config import settings
from smartpoint.common.exceptions import Unauthorized
from smartpoint.database.database import get_async_db
from smartpoint.modules.auth.models import User
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

oauth2_scheme = HTTPBearer(auto_error=False)

SECRET_KEY = settings.APP_SECRET_STRING
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token with an expiration time.
    If expires_delta is not provided, it defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(token: str) -> dict:
    """
    Verify a JWT token and return the payload.
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


async def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_db)
) -> User:
    """ Retrieve the current user based on the provided JWT token. """
    if token is None:
        raise Unauthorized("Access denied. No token provided.")

    payload = verify_token(token.credentials)
    if payload.get("type") != "access":
        raise Unauthorized("Invalid token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise Unauthorized()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or user.is_active is not True:
        raise Unauthorized("Invalid token or user not found.")

    return user
