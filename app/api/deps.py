from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Cookie, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.db.session import AsyncSessionLocal, get_db_session
from app.services.cache import CodeCache
from app.services.friends import FriendCountPolicy
from app.services.relations import RelationshipStore

COOKIE_NAME = "access_token"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_code_cache() -> CodeCache:
    return CodeCache(AsyncSessionLocal)


def get_relationship_store(db: AsyncSession = Depends(get_db)) -> RelationshipStore:
    return RelationshipStore(db)


def get_friend_policy(
    cache: CodeCache = Depends(get_code_cache),
    store: RelationshipStore = Depends(get_relationship_store),
) -> FriendCountPolicy:
    return FriendCountPolicy(cache, store)


async def get_current_stu_id(
    access_token: str | None = Cookie(default=None, alias=COOKIE_NAME),
    authorization: str | None = Header(default=None),
) -> str:
    token = access_token
    if not token and authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            token = credentials.strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    stu_id, error = decode_access_token(token)
    if error == "expired":
        raise HTTPException(status_code=401, detail="Token expired")
    if not stu_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return stu_id
