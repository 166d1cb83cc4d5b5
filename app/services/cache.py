from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)

CODE_MAPPING_PREFIX = "code_mapping:"
INVITATION_CODE_PREFIX = "invitation_code:"
USER_FRIENDS_PREFIX = "user_friends:"


def code_mapping_key(code: str) -> str:
    return f"{CODE_MAPPING_PREFIX}{code}"


def invitation_code_key(stu_id: str) -> str:
    return f"{INVITATION_CODE_PREFIX}{stu_id}"


def user_friends_key(stu_id: str) -> str:
    return f"{USER_FRIENDS_PREFIX}{stu_id}"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_live(entry: CacheEntry | None, now: datetime) -> bool:
    if entry is None:
        return False
    if entry.expires_at is None:
        return True
    return _as_utc(entry.expires_at) > now


class CodeCache:
    """Key/value cache with TTL backed by the ``cache_entries`` table.

    Each call opens its own short session, so cache reads and writes never
    join the caller's transaction and can run from detached tasks.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        code_ttl: timedelta | None = None,
        friend_ttl: timedelta | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.code_ttl = code_ttl or timedelta(minutes=settings.invitation_code_ttl_minutes)
        self.friend_ttl = friend_ttl or timedelta(minutes=settings.friend_cache_ttl_minutes)

    # ─────────────────────────────────────────────
    # Raw key/value access
    # ─────────────────────────────────────────────

    async def get_entry(self, key: str) -> CacheEntry | None:
        async with self._session_factory() as session:
            entry = await session.get(CacheEntry, key)
        if not _is_live(entry, _now_utc()):
            return None
        return entry

    async def get(self, key: str) -> str | None:
        entry = await self.get_entry(key)
        return entry.value if entry else None

    async def exists(self, key: str) -> bool:
        return await self.get_entry(key) is not None

    async def set(
        self, key: str, value: str, ttl: timedelta | None = None, *, now: datetime | None = None
    ) -> CacheEntry:
        now = now or _now_utc()
        entry = CacheEntry(
            key=key,
            value=value,
            expires_at=(now + ttl) if ttl is not None else None,
            created_at=now,
        )
        async with self._session_factory() as session:
            entry = await session.merge(entry)
            await session.commit()
        return entry

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(sa.delete(CacheEntry).where(CacheEntry.key == key))
            await session.commit()

    # ─────────────────────────────────────────────
    # Invitation codes
    # ─────────────────────────────────────────────

    async def resolve_inviter_id(self, key: str) -> str:
        value = await self.get(key)
        if value is None:
            raise LookupError(f"cache key {key!r} not found")
        return value

    async def set_code_mapping(self, code: str, stu_id: str) -> CacheEntry:
        # Same timestamp so the pointer never outlives the mapping.
        now = _now_utc()
        await self.set(code_mapping_key(code), stu_id, self.code_ttl, now=now)
        return await self.set(invitation_code_key(stu_id), code, self.code_ttl, now=now)

    async def get_user_code(self, stu_id: str) -> CacheEntry | None:
        return await self.get_entry(invitation_code_key(stu_id))

    async def delete_mapping(self, key: str) -> None:
        await self.delete(key)

    async def clear_user_code(self, stu_id: str, code: str) -> None:
        # The user may have refreshed to a newer code in the meantime.
        if await self.get(invitation_code_key(stu_id)) == code:
            await self.delete(invitation_code_key(stu_id))

    # ─────────────────────────────────────────────
    # Friend lists
    # ─────────────────────────────────────────────

    async def get_friend_ids(self, stu_id: str) -> list[str] | None:
        raw = await self.get(user_friends_key(stu_id))
        if raw is None:
            return None
        return list(json.loads(raw))

    async def set_friend_list(self, stu_id: str, friend_ids: list[str]) -> None:
        await self.set(user_friends_key(stu_id), json.dumps(friend_ids), self.friend_ttl)

    async def set_friend_cache_entry(self, owner_id: str, friend_id: str) -> None:
        # Only extend warm lists; a cold list is rebuilt from the store on next read.
        # Lock the row so concurrent post-bind tasks for one owner don't lose an append.
        key = user_friends_key(owner_id)
        async with self._session_factory() as session:
            entry = (
                await session.execute(
                    sa.select(CacheEntry)
                    .where(CacheEntry.key == key)
                    .with_for_update()
                )
            ).scalar_one_or_none()
            if not _is_live(entry, _now_utc()):
                logger.debug("friend cache cold, skip owner=%s friend=%s", owner_id, friend_id)
                return

            friend_ids = list(json.loads(entry.value))
            if friend_id in friend_ids:
                return
            friend_ids.append(friend_id)
            entry.value = json.dumps(friend_ids)
            await session.commit()
