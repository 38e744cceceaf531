"""Authentication service: JWT tokens and admin password verification."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from tisorah_admin.config import settings

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(subject: str) -> str:
    """Create a JWT access token for the given admin username."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {
        "sub": subject,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Decode a JWT token and return the subject, or None if invalid."""
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload.get("sub")
    except JWTError:
        return None


def authenticate_admin(username: str, password: str) -> Optional[str]:
    """Check the dashboard credentials and return the username on success.

    Login is disabled while ADMIN_PASSWORD_HASH is empty.
    """
    if not settings.ADMIN_PASSWORD_HASH:
        logger.warning("admin_login_disabled")
        return None

    if username != settings.ADMIN_USERNAME:
        logger.info("admin_login_rejected", username=username)
        return None

    try:
        valid = verify_password(password, settings.ADMIN_PASSWORD_HASH)
    except ValueError:
        logger.error("admin_password_hash_invalid")
        return None

    if not valid:
        logger.info("admin_login_rejected", username=username)
        return None

    logger.info("admin_logged_in", username=username)
    return username
