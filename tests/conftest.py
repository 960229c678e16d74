import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Use test DB
os.environ.setdefault("MONGODB_DB_NAME", "enrol_credit_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory MongoDB bound to the beanie documents."""
    from enrol_credit.db.init import init_db
    client = AsyncMongoMockClient()
    await init_db(client=client)
    yield client


@pytest_asyncio.fixture
async def make_user(db):
    from enrol_credit.models.user import User

    async def _make(user_id: int, role: str = "user", **kwargs) -> User:
        user = User(id=user_id, username=f"user{user_id}", email=f"user{user_id}@example.com", role=role, **kwargs)
        await user.insert()
        return user

    return _make


@pytest_asyncio.fixture
async def make_course(db):
    from enrol_credit.models.course import Course

    async def _make(course_id: int, visible: bool = True) -> Course:
        course = Course(id=course_id, shortname=f"C{course_id}", fullname=f"Course {course_id}", visible=visible)
        await course.insert()
        return course

    return _make


@pytest_asyncio.fixture
async def make_instance(db):
    from enrol_credit.models.enrol_instance import EnrolInstance

    async def _make(instance_id: int, course_id: int, **kwargs) -> EnrolInstance:
        instance = EnrolInstance(id=instance_id, course_id=course_id, **kwargs)
        await instance.insert()
        return instance

    return _make


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    from enrol_credit.main import app
    app.state.db_ready = True
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers():
    from enrol_credit.core.security import create_session_token
    from enrol_credit.deps import session_payload_for_user

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_session_token(session_payload_for_user(user))}"}

    return _headers


@pytest.fixture
def settings():
    """Cached app settings; change attributes with monkeypatch.setattr."""
    from enrol_credit.core.config import get_settings
    return get_settings()
