"""
Credential layer

Password hashing (passlib/bcrypt), access-token issuance and decoding
(python-jose) and the FastAPI dependency that turns a bearer token into the
ActorContext every core operation takes. The core itself never compares
passwords; ``auth_service.authenticate`` is the only caller of
``verify_password``.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.config import settings
from tracker.core.authorization import ActorContext
from tracker.database import get_db
from tracker.exceptions import AuthenticationError, ForbiddenError
from tracker.models.user import User

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

# OAuth2 scheme for token validation
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """Issue a signed token carrying the user's id, tenant and role."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {
        "sub": str(user.id),
        "tenant_id": user.tenant_id,
        "role": getattr(user.role, "value", user.role),
        "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> int:
    """Return the user id carried by *token*, or raise AuthenticationError."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise AuthenticationError("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT decoding failed: {str(e)}")
        raise AuthenticationError("Invalid token")

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise AuthenticationError("Token does not identify a user")
    return int(subject)


def get_client_ip(request: Request) -> str | None:
    """Best-effort client address for audit rows (first hop of X-Forwarded-For wins)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def get_current_actor(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> ActorContext:
    """
    Resolve the bearer token into an ActorContext.

    Role and tenant are read from the user row rather than the token so a
    demotion or deactivation takes effect on the next request.
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    user_id = decode_access_token(token)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if user is None:
        raise AuthenticationError("User no longer exists")
    if not user.is_active:
        raise ForbiddenError("Account is inactive")

    return ActorContext(user_id=user.id, tenant_id=user.tenant_id, role=user.role)
