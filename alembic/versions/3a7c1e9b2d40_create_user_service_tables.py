"""create students, follow_relations and cache_entries

Revision ID: 3a7c1e9b2d40
Revises:
Create Date: 2026-10-12 14:22:08.417215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa



# revision identifiers, used by Alembic.
revision: str = '3a7c1e9b2d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "students",
        sa.Column("stu_id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("sex", sa.String(8), nullable=True),
        sa.Column("college", sa.String(120), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.Column("major", sa.String(120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "follow_relations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("follower_id", sa.String(32), nullable=False),
        sa.Column("followed_id", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("follower_id", "followed_id", name="uq_follow_relations_pair"),
        sa.CheckConstraint("follower_id <> followed_id", name="ck_follow_relations_not_self"),
    )
    op.create_index("ix_follow_relations_follower_id", "follow_relations", ["follower_id"])
    op.create_index("ix_follow_relations_followed_id", "follow_relations", ["followed_id"])

    op.create_table(
        "cache_entries",
        sa.Column("key", sa.String(128), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_cache_entries_expires_at", "cache_entries", ["expires_at"])


def downgrade():
    op.drop_index("ix_cache_entries_expires_at", table_name="cache_entries")
    op.drop_table("cache_entries")
    op.drop_index("ix_follow_relations_followed_id", table_name="follow_relations")
    op.drop_index("ix_follow_relations_follower_id", table_name="follow_relations")
    op.drop_table("follow_relations")
    op.drop_table("students")
