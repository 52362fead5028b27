"""
JWT session tokens for the admin console.
The token travels in the httpOnly "cms_token" cookie, or as a Bearer header.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Header, Request
from parish.config import settings
from parish.utils.auth import verify_admin_password

ALGORITHM = "HS256"
COOKIE_NAME = "cms_token"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to include in the token
        expires_delta: Optional custom lifetime (default JWT_EXPIRE_MINUTES)
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))

    to_encode = data.copy()
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Decode a token and check it is an unexpired access token.

    Raises:
        HTTPException: 401 if token is invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Authentication token is invalid or expired"}
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type", "message": "Token is not an access token"}
        )

    return payload


def token_from_request(request: Request, authorization: Optional[str] = None) -> Optional[str]:
    """Cookie first, then the Authorization header."""
    token = request.cookies.get(COOKIE_NAME)
    if not token and authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]
    return token


def verify_cms_token(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to cookie)")
) -> dict:
    """
    FastAPI dependency guarding admin endpoints.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = token_from_request(request, authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing token", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    return verify_token(token)


def has_session(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to cookie)")
) -> bool:
    """FastAPI dependency: True when the request carries a valid admin session."""
    token = token_from_request(request, authorization)
    if not token:
        return False
    try:
        verify_token(token)
    except HTTPException:
        return False
    return True


def authenticate_user(password: str) -> dict:
    """
    Check the admin password and return the token claims.

    Raises:
        HTTPException: 401 if password is invalid
        ValueError: If ADMIN_PASSWORD_HASH is not configured
    """
    if not verify_admin_password(password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Incorrect password"}
        )

    return {"role": "admin", "sub": "cms_admin"}
