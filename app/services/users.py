from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import UserNotFound
from app.models.student import Student


async def get_user_info(db: AsyncSession, stu_id: str) -> Student:
    student = (await db.execute(sa.select(Student).where(Student.stu_id == stu_id))).scalar_one_or_none()
    if student is None:
        raise UserNotFound(f"User {stu_id} not found")
    return student
