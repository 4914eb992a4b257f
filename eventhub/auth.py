from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from eventhub.config import settings
from eventhub.exceptions import UnauthorizedError


bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity resolved from the bearer token"""

    id: str


def create_access_token(user_id: str, expires_in: Optional[timedelta] = None) -> str:
    expires_in = expires_in or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "exp": int((datetime.now(timezone.utc) + expires_in).timestamp()),
    }
    return jwt.encode(
        payload, settings.JWT_SECRET.get_secret_value(), algorithm=settings.JWT_ALGORITHM
    )


def decode_access_token(token: str) -> CurrentUser:
    try:
        data = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        raise UnauthorizedError("Token is not valid")

    user_id = data.get("sub")
    if not user_id:
        raise UnauthorizedError("Token is not valid")
    return CurrentUser(id=str(user_id))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Dependency for routes that require a caller identity"""
    if credentials is None:
        raise UnauthorizedError("No token, authorization denied")
    return decode_access_token(credentials.credentials)
