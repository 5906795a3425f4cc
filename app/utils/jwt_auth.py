"""
JWT token utilities.
Admin session tokens (issued on login) and short-lived upload tokens that sign
direct uploads to the local storage backend.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import HTTPException, status, Header, Request
from app.config import settings
from app.utils.auth import verify_admin_password


ALGORITHM = "HS256"
ADMIN_COOKIE_NAME = "admin_token"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> Tuple[str, datetime]:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        tuple: Encoded JWT token and its expiry timestamp
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt, expire


def verify_token(token: str) -> dict:
    """
    Verify and decode an admin access token.

    Raises:
        HTTPException: 401 if token is invalid, expired, or not an access token
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Token expired", "message": "Please login again"},
            headers={"WWW-Authenticate": "Bearer"}
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Authentication token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type", "message": "Token is not an access token"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    return payload


def verify_admin_token(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token for authentication")
) -> dict:
    """
    FastAPI dependency for admin endpoints.
    Reads the Bearer token from the Authorization header, falling back to the admin_token cookie.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = None

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]

    if not token:
        token = request.cookies.get(ADMIN_COOKIE_NAME)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing token", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    return verify_token(token)


def authenticate_admin(password: str) -> dict:
    """
    Check the shared admin password and return the claims for a new token.

    Raises:
        HTTPException: 401 if password is invalid, 500 if no admin password is configured
    """
    try:
        is_valid = verify_admin_password(password)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Server configuration error", "message": str(e)}
        )

    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Invalid password"}
        )

    return {
        "role": "admin",
        "sub": "admin"
    }


def create_upload_token(object_key: str, content_type: str) -> str:
    """Sign a direct upload of one object with one content type."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.UPLOAD_TOKEN_EXPIRE_SECONDS)
    claims = {
        "key": object_key,
        "ct": content_type,
        "exp": expire,
        "type": "upload",
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def verify_upload_token(token: str, object_key: str, content_type: Optional[str]) -> None:
    """
    Check an upload token against the requested key and content type.

    Raises:
        HTTPException: 403 if the token is invalid, expired, or issued for another object
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Invalid upload token", "message": "Upload URL is invalid or expired"}
        )

    if claims.get("type") != "upload" or claims.get("key") != object_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Invalid upload token", "message": "Upload URL does not match this object"}
        )

    if content_type and claims.get("ct") != content_type.split(";")[0].strip():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Content type mismatch", "message": f"Upload must use Content-Type {claims.get('ct')}"}
        )
