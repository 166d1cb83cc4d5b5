from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateRelationError
from app.models.follow_relation import FollowRelation


class RelationshipStore:
    """Durable friend relations.

    Mutating calls commit their own transaction, so a relation returned as
    created is already visible to other requests.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_relation(self, follower_id: str, followed_id: str) -> tuple[bool, FollowRelation | None]:
        q = sa.select(FollowRelation).where(
            FollowRelation.follower_id == follower_id,
            FollowRelation.followed_id == followed_id,
        )
        relation = (await self.db.execute(q)).scalar_one_or_none()
        return relation is not None, relation

    async def create_relation(self, follower_id: str, followed_id: str) -> None:
        # Both directions in one transaction; the pair constraint rejects a
        # concurrent bind that slipped past find_relation.
        self.db.add(FollowRelation(follower_id=follower_id, followed_id=followed_id))
        self.db.add(FollowRelation(follower_id=followed_id, followed_id=follower_id))
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateRelationError(
                f"relation {follower_id} -> {followed_id} already stored"
            ) from exc
        except Exception:
            await self.db.rollback()
            raise

    async def count_relations(self, follower_id: str) -> int:
        q = sa.select(sa.func.count(FollowRelation.id)).where(FollowRelation.follower_id == follower_id)
        return int((await self.db.execute(q)).scalar_one())

    async def list_friend_ids(self, follower_id: str) -> list[str]:
        q = (
            sa.select(FollowRelation.followed_id)
            .where(FollowRelation.follower_id == follower_id)
            .order_by(FollowRelation.followed_id.asc())
        )
        return list((await self.db.execute(q)).scalars().all())
