"""JWT authentication for FastAPI using Supabase-style HS256 access tokens."""

import uuid
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from wishlist.core.config import settings
from wishlist.core.logging_config import caller_id_var

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


class Caller(BaseModel):
    """The authenticated identity every assistant operation is scoped to."""

    id: uuid.UUID
    email: str | None = None
    role: str = "user"


def verify_token(token: str) -> dict[str, Any]:
    """Verify an access token signed with the shared project secret.

    Args:
        token: The JWT token to verify

    Returns:
        The decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={
                "verify_exp": True,
                "verify_aud": True,
                "require": ["sub", "exp"],
            },
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any]:
    """Get current authenticated user from JWT token.

    Returns:
        The decoded JWT payload containing user information

    Raises:
        HTTPException: If no token provided or token is invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return verify_token(credentials.credentials)


async def require_authenticated_caller(
    user: dict[str, Any] = Depends(get_current_user),
) -> Caller:
    """Resolve the token payload into a Caller, rejecting non-UUID subjects."""
    try:
        caller_id = uuid.UUID(str(user.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    app_metadata = user.get("app_metadata") or {}
    caller = Caller(
        id=caller_id,
        email=user.get("email"),
        role=user.get("user_role") or app_metadata.get("role") or "user",
    )
    caller_id_var.set(str(caller.id))
    return caller


# Type aliases for dependency injection
CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
CurrentCaller = Annotated[Caller, Depends(require_authenticated_caller)]
