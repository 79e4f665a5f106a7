from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from frequency.core.database import get_db
from frequency.core.security import decode_token
from frequency.models.user import User
from frequency.repositories.user import UserRepository
from frequency.utils.exceptions import NotAuthenticated

bearer_scheme = HTTPBearer(auto_error=False)


async def get_user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    """Resolve an access token to an active user"""
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    user = await UserRepository(db).get_by_id(user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Identity of the caller. Every social and playlist operation depends on
    it and fails with 401 when nobody is signed in.
    """
    if credentials is None:
        raise NotAuthenticated()

    user = await get_user_from_token(credentials.credentials, db)
    if user is None:
        raise NotAuthenticated("Invalid or expired token")
    return user
