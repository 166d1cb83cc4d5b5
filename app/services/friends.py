from __future__ import annotations

import logging
from typing import Protocol

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import (
    CacheLookupFailed,
    ConfinementCheckFailed,
    DuplicateRelationError,
    FriendListFull,
    InvalidInvitationCode,
    RelationAlreadyExists,
    RelationCreateFailed,
    RelationLookupFailed,
    SelfBindingNotAllowed,
)
from app.models.follow_relation import FollowRelation
from app.models.student import Student
from app.services import background
from app.services.cache import code_mapping_key

logger = logging.getLogger(__name__)


class CodeCacheLike(Protocol):
    async def exists(self, key: str) -> bool: ...

    async def resolve_inviter_id(self, key: str) -> str: ...

    async def get_friend_ids(self, stu_id: str) -> list[str] | None: ...

    async def set_friend_list(self, stu_id: str, friend_ids: list[str]) -> None: ...

    async def set_friend_cache_entry(self, owner_id: str, friend_id: str) -> None: ...

    async def delete_mapping(self, key: str) -> None: ...

    async def clear_user_code(self, stu_id: str, code: str) -> None: ...


class RelationshipStoreLike(Protocol):
    async def find_relation(self, follower_id: str, followed_id: str) -> tuple[bool, FollowRelation | None]: ...

    async def create_relation(self, follower_id: str, followed_id: str) -> None: ...

    async def count_relations(self, follower_id: str) -> int: ...

    async def list_friend_ids(self, follower_id: str) -> list[str]: ...


class FriendCountPolicyLike(Protocol):
    async def is_confined(self, stu_id: str) -> bool: ...


class FriendCountPolicy:
    """A user is confined once their friend count reaches ``max_friends``."""

    def __init__(self, cache: CodeCacheLike, store: RelationshipStoreLike, max_friends: int | None = None) -> None:
        self.cache = cache
        self.store = store
        self.max_friends = max_friends if max_friends is not None else settings.max_friend_nums

    async def is_confined(self, stu_id: str) -> bool:
        friend_ids = await self.cache.get_friend_ids(stu_id)
        if friend_ids is not None:
            count = len(friend_ids)
        else:
            count = await self.store.count_relations(stu_id)
        return count >= self.max_friends


async def _after_bind(cache: CodeCacheLike, stu_id: str, friend_id: str, code: str) -> None:
    try:
        await cache.set_friend_cache_entry(friend_id, stu_id)
        await cache.set_friend_cache_entry(stu_id, friend_id)
    except Exception:
        logger.exception("set friend cache failed stu_id=%s friend_id=%s", stu_id, friend_id)

    try:
        await cache.delete_mapping(code_mapping_key(code))
        await cache.clear_user_code(friend_id, code)
    except Exception:
        logger.exception("remove invitation code failed code=%s friend_id=%s", code, friend_id)


async def bind_invitation(
    stu_id: str,
    code: str,
    *,
    cache: CodeCacheLike,
    store: RelationshipStoreLike,
    policy: FriendCountPolicyLike,
) -> None:
    """Redeem ``code`` so that ``stu_id`` and the code's issuer become friends.

    Checks run in order and stop at the first failure. Nothing holds a lock
    between ``find_relation`` and ``create_relation``; two concurrent binds of
    the same pair are separated by the store's unique constraint, and the
    loser gets ``RelationAlreadyExists``.

    On success the friend-list caches are updated and the code is consumed by
    a detached task. It is not awaited and its failures are only logged.
    """
    key = code_mapping_key(code)
    try:
        found = await cache.exists(key)
    except Exception as exc:
        raise CacheLookupFailed(f"Failed to check invitation code: {exc}") from exc
    if not found:
        raise InvalidInvitationCode()

    try:
        friend_id = await cache.resolve_inviter_id(key)
    except Exception as exc:
        raise CacheLookupFailed(f"Failed to resolve invitation code: {exc}") from exc

    if friend_id == stu_id:
        raise SelfBindingNotAllowed()

    try:
        exists, _ = await store.find_relation(stu_id, friend_id)
    except Exception as exc:
        raise RelationLookupFailed(f"Failed to look up relation: {exc}") from exc
    if exists:
        raise RelationAlreadyExists()

    for party in (stu_id, friend_id):
        try:
            confined = await policy.is_confined(party)
        except Exception as exc:
            raise ConfinementCheckFailed(party) from exc
        if confined:
            raise FriendListFull(party)

    try:
        await store.create_relation(stu_id, friend_id)
    except DuplicateRelationError as exc:
        raise RelationAlreadyExists() from exc
    except Exception as exc:
        raise RelationCreateFailed(f"Failed to create relation: {exc}") from exc

    logger.info("friend bound stu_id=%s friend_id=%s", stu_id, friend_id)
    background.spawn(_after_bind(cache, stu_id, friend_id, code), name=f"after-bind:{stu_id}:{friend_id}")


async def list_friends(db: AsyncSession, cache: CodeCacheLike, store: RelationshipStoreLike, stu_id: str) -> list[dict]:
    friend_ids = await store.list_friend_ids(stu_id)

    try:
        await cache.set_friend_list(stu_id, friend_ids)
    except Exception:
        logger.warning("warm friend cache failed stu_id=%s", stu_id, exc_info=True)

    if not friend_ids:
        return []

    q = sa.select(Student).where(Student.stu_id.in_(friend_ids))
    students = {s.stu_id: s for s in (await db.execute(q)).scalars().all()}
    return [
        {
            "stu_id": fid,
            "name": students[fid].name if fid in students else None,
            "college": students[fid].college if fid in students else None,
            "major": students[fid].major if fid in students else None,
        }
        for fid in friend_ids
    ]
