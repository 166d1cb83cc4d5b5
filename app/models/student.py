from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class Student(Base):
    __tablename__ = "students"

    stu_id: Mapped[str] = mapped_column(String(32), primary_key=True)

    name: Mapped[str] = mapped_column(String(64), nullable=False)
    sex: Mapped[str | None] = mapped_column(String(8), nullable=True)
    college: Mapped[str | None] = mapped_column(String(120), nullable=True)
    grade: Mapped[int | None] = mapped_column(nullable=True)
    major: Mapped[str | None] = mapped_column(String(120), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
