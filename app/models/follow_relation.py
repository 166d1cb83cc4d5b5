from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from app.db.base_class import Base


class FollowRelation(Base):
    """Directed friend edge: ``follower_id`` has ``followed_id`` as a friend."""

    __tablename__ = "follow_relations"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    follower_id: Mapped[str] = mapped_column(sa.String(32), nullable=False, index=True)
    followed_id: Mapped[str] = mapped_column(sa.String(32), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("follower_id", "followed_id", name="uq_follow_relations_pair"),
        sa.CheckConstraint("follower_id <> followed_id", name="ck_follow_relations_not_self"),
    )
