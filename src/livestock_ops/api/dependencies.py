"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.database import init_db
from livestock_ops.errors import AppError
from livestock_ops.models import User, utcnow
from livestock_ops.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    The request's work is committed when the handler returns and rolled
    back when it raises.
    """
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_user(
    db: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None:
        raise AppError("UNAUTHORIZED")
    payload = decode_access_token(credentials.credentials)
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise AppError("UNAUTHORIZED", "Invalid access token")

    user = await db.get(User, user_id)
    if user is None:
        raise AppError("UNAUTHORIZED", "User no longer exists")
    if user.is_banned(utcnow()):
        raise AppError("BANNED", metadata={"reason": user.ban_reason})
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    if not user.is_admin:
        raise AppError("ACCESS_DENIED", "Admin access required")
    return user


# Type aliases for cleaner dependency injection
AdminUser = Annotated[User, Depends(require_admin)]
