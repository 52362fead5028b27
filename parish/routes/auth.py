"""
Admin session routes: login, logout and session check.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import logging

from parish.config import settings
from parish.schemas import LoginRequest, SessionResponse, TokenResponse
from parish.utils.jwt_auth import COOKIE_NAME, authenticate_user, create_access_token, has_session
from parish.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, response: Response, credentials: LoginRequest):
    """
    Exchange the admin password for a session token.
    The token is also set as an httpOnly cookie.

    Raises:
        HTTPException: 401 on wrong password, 500 if no password hash is configured
    """
    try:
        claims = authenticate_user(credentials.password)
    except ValueError as e:
        logger.error(f"Login attempted without ADMIN_PASSWORD_HASH: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Authentication not configured", "detail": str(e)}
        )

    token = create_access_token(claims)
    max_age = settings.JWT_EXPIRE_MINUTES * 60
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
    )

    logger.info("Admin logged in")
    return TokenResponse(access_token=token, expires_in=max_age)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/session", response_model=SessionResponse)
async def get_session(authenticated: bool = Depends(has_session)):
    """Whether the caller has an admin session."""
    return SessionResponse(authenticated=authenticated)
