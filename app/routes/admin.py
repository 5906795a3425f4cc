"""
Admin session routes.
A single shared password is exchanged for a short-lived bearer token.
"""
from fastapi import APIRouter, Depends, Request, Response, status
from datetime import datetime, timezone
import logging

from app.config import settings
from app.schemas import LoginRequest, LoginResponse
from app.utils.jwt_auth import (
    ADMIN_COOKIE_NAME,
    authenticate_admin,
    create_access_token,
    verify_admin_token,
)
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, response: Response, credentials: LoginRequest):
    """
    Exchange the admin password for a bearer token.

    The token is returned in the body and also set as an httpOnly cookie.

    Raises:
        HTTPException: 401 if the password is wrong
    """
    claims = authenticate_admin(credentials.password)
    token, expires_at = create_access_token(claims)
    expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=token,
        max_age=expires_in,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"Admin login succeeded, token expires at {expires_at.isoformat()}")
    return LoginResponse(token=token, expires_in=expires_in, expires_at=expires_at)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout():
    """Clear the admin cookie. Bearer tokens simply expire."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(ADMIN_COOKIE_NAME)
    return response


@router.get("/session")
async def get_session(token: dict = Depends(verify_admin_token)):
    """Report the current token's role and expiry."""
    expires_at = datetime.fromtimestamp(token["exp"], tz=timezone.utc)
    return {
        "role": token.get("role"),
        "expiresAt": expires_at.isoformat(),
        "expiresIn": max(0, int((expires_at - datetime.now(timezone.utc)).total_seconds())),
        "tokenLifetimeMinutes": settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    }
