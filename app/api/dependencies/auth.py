"""FastAPI authentication dependency for JWT-based auth.

Tokens are issued by the workout-logging side of the app; this service only
verifies them. The user id is read from the 'sub' claim and scopes every
workout lookup.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from loguru import logger

from app.config.settings import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_id_from_token(token: str) -> str:
    """Verify a bearer token and return the user id it was issued to.

    Raises:
        ValueError: If no secret is configured, or the token is invalid,
            expired or has no 'sub' claim
    """
    if not settings.auth_secret_key:
        raise ValueError("AUTH_SECRET_KEY is not configured")
    try:
        payload = jwt.decode(token, settings.auth_secret_key, algorithms=[settings.auth_algorithm])
    except JWTError as e:
        raise ValueError(f"Invalid or expired token: {e}") from e

    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    return str(user_id)


def get_current_user_id(request: Request, token: str | None = Depends(oauth2_scheme)) -> str:
    """FastAPI dependency to get current authenticated user ID from JWT token.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    if not token:
        logger.bind(path=request.url.path).warning("Auth failed: missing Authorization header")
        raise _unauthorized("Missing or invalid Authorization header")

    try:
        return user_id_from_token(token)
    except ValueError as e:
        logger.bind(path=request.url.path).warning(f"Auth failed: {e}")
        raise _unauthorized("Invalid token") from e
