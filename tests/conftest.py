import os
import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing app.settings/app.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_campus_helper.db")
os.environ.setdefault("JWT_SECRET", "dev-test-secret")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from app.main import app as fastapi_app  # noqa: E402
from app.db.base_class import Base  # noqa: E402
import app.db.base  # noqa: F401,E402  (register models)
from app.db.session import engine, AsyncSessionLocal  # noqa: E402
from app.api.deps import get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.models.student import Student  # noqa: E402
from app.services import background  # noqa: E402
from app.services.cache import CodeCache  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session(db_schema):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def code_cache(db_schema):
    return CodeCache(AsyncSessionLocal)


@pytest.fixture
def drain_background():
    async def _drain():
        tasks = background.pending()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    return _drain


@pytest.fixture
async def client(db_session, drain_background):
    async def _override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    # Let detached post-bind work finish before the schema is dropped.
    await drain_background()
    fastapi_app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
    def _headers(stu_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(stu_id)}"}

    return _headers


@pytest.fixture
def student_factory(db_session):
    async def _create(stu_id: str, *, name: str | None = None, **kwargs):
        student = Student(stu_id=stu_id, name=name or f"student-{stu_id}", **kwargs)
        db_session.add(student)
        await db_session.commit()
        return student

    return _create
