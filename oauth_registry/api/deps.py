"""
FastAPI Dependencies

Provides dependency injection for database sessions, the session identity,
the client service and the ownership-checked client.

SECURITY NOTES:
- JWT payloads are never logged
- Bearer token and session cookie carry the same signed token
- Client ownership is checked in exactly one place (get_owned_client)
"""

from functools import lru_cache
from typing import Annotated
from datetime import datetime, timedelta
import logging

from fastapi import Depends, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt

from oauth_registry.database import get_db
from oauth_registry.config import settings
from oauth_registry.exceptions import ForbiddenError, UnauthorizedError
from oauth_registry.models.oauth_client import OAuthClient
from oauth_registry.models.user import User
from oauth_registry.services.client_guard import authorize_client
from oauth_registry.services.client_service import ClientService
from oauth_registry.services.client_store import ClientStore
from oauth_registry.services.logo_storage import LogoStorage

logger = logging.getLogger(__name__)


security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed session token. Issuing it to users is handled elsewhere."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_session_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
    session_token: Annotated[str | None, Cookie(alias=settings.SESSION_COOKIE_NAME)] = None,
) -> str | None:
    """Bearer token first, then the session cookie."""
    if credentials:
        return credentials.credentials
    return session_token


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    token: Annotated[str | None, Depends(get_session_token)],
) -> User:
    """
    Resolve the session token to an active user.

    SECURITY:
    - Never reveals why a token was rejected
    - JWT payloads are NOT logged to prevent credential leakage
    """
    if not token:
        raise UnauthorizedError()

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        sub = payload.get("sub")
        if sub is None:
            raise UnauthorizedError("Could not validate credentials")
        user_id = int(sub)
    except JWTError:
        logger.warning("JWT validation failed")
        raise UnauthorizedError("Could not validate credentials")
    except ValueError:
        logger.warning("Invalid token subject")
        raise UnauthorizedError("Could not validate credentials")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    logger.debug("User authenticated", extra={"user_id": user.id})
    return user


@lru_cache()
def get_logo_storage() -> LogoStorage:
    """Logo store configured from settings."""
    return LogoStorage(
        upload_dir=settings.LOGO_UPLOAD_DIR,
        base_url=settings.LOGO_BASE_URL,
        default_filename=settings.DEFAULT_LOGO_FILENAME,
        max_bytes=settings.MAX_LOGO_BYTES,
        allowed_types=settings.ALLOWED_LOGO_TYPES,
    )


def get_client_store(db: Annotated[AsyncSession, Depends(get_db)]) -> ClientStore:
    return ClientStore(db)


def get_client_service(
    store: Annotated[ClientStore, Depends(get_client_store)],
    logos: Annotated[LogoStorage, Depends(get_logo_storage)],
) -> ClientService:
    return ClientService(store, logos)


async def get_owned_client(
    client_id: str,
    store: Annotated[ClientStore, Depends(get_client_store)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> OAuthClient:
    """The only ownership check used by client-by-id routes."""
    return await authorize_client(store, current_user.id, client_id)


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
Clients = Annotated[ClientService, Depends(get_client_service)]
OwnedClient = Annotated[OAuthClient, Depends(get_owned_client)]
