import base64
import os
from datetime import time
from typing import AsyncGenerator, Awaitable, Callable, Dict, List

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.models import Common, LineSlot, Room, SlotTime, Subject, SubjectTeacher, User
from app.db.session import Base, build_session_factory
from app.integrations.clerk import ClerkClient
from app.main import create_app


TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_JWT_SECRET = "test-jwt-secret"
TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"test-webhook-secret").decode()

TEACHER_USER_ID = "user_teacher"
TEACHER_EMAIL = "jane.doe@ormiston.school.nz"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        CLERK_JWT_KEY=TEST_JWT_SECRET,
        CLERK_JWT_ALGORITHM="HS256",
        CLERK_SECRET_KEY="sk_test",
        CLERK_API_URL="https://clerk.test/v1",
        CLERK_WEBHOOK_SECRET=TEST_WEBHOOK_SECRET,
        TEACHER_EMAIL_DOMAIN="@ormiston.school.nz",
        SENTRY_DSN=None,
    )


@pytest.fixture()
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory SQLite DB per test; StaticPool keeps every session on the same connection."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def clerk_users() -> Dict[str, dict]:
    """Users the mocked identity provider knows about, keyed by id."""
    return {}


@pytest.fixture()
def clerk_client(clerk_users) -> ClerkClient:
    def handler(request: httpx.Request) -> httpx.Response:
        user_id = request.url.path.rsplit("/", 1)[-1]
        if user_id in clerk_users:
            return httpx.Response(200, json=clerk_users[user_id])
        return httpx.Response(404, json={"errors": [{"code": "resource_not_found"}]})

    return ClerkClient(
        secret_key="sk_test",
        base_url="https://clerk.test/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture()
def app(test_settings, session_factory, clerk_client):
    application = create_app(test_settings)
    application.state.session_factory = session_factory
    application.state.clerk = clerk_client
    return application


@pytest.fixture()
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_token() -> Callable[..., str]:
    def _make(sub: str = TEACHER_USER_ID, email: str = TEACHER_EMAIL, **claims) -> str:
        payload = {"sub": sub, **claims}
        if email is not None:
            payload["email"] = email
        return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")

    return _make


@pytest.fixture()
def auth_headers(make_token) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}


async def seed_school(db_session: AsyncSession) -> Dict[str, object]:
    """
    One teacher teaching Mathematics on lines 1 and 3.
    Hub A: Room 10, Room 2, Room 1, Store (not bookable). Hub B: Room 1.
    Monday periods 1-4; line 1 occupies Monday periods 1 and 3.
    """
    teacher = User(user_id=TEACHER_USER_ID, name="Jane Doe", email=TEACHER_EMAIL, role="teacher")
    maths = Subject(code="MAT", name="Mathematics")
    hub_a = Common(name="Hub A")
    hub_b = Common(name="Hub B")
    db_session.add_all([teacher, maths, hub_a, hub_b])
    await db_session.flush()

    rooms_a: List[Room] = [
        Room(name="Room 10", common_id=hub_a.id),
        Room(name="Room 2", common_id=hub_a.id),
        Room(name="Room 1", common_id=hub_a.id),
        Room(name="Store", common_id=hub_a.id, is_bookable=False),
    ]
    room_b = Room(name="Room 1", common_id=hub_b.id)
    db_session.add_all(rooms_a + [room_b])

    db_session.add_all(
        [
            SubjectTeacher(teacher_id=teacher.id, subject_id=maths.id, line_number=1),
            SubjectTeacher(teacher_id=teacher.id, subject_id=maths.id, line_number=3),
        ]
    )
    starts = [time(8, 45), time(9, 50), time(11, 15), time(12, 20)]
    db_session.add_all(
        [
            SlotTime(slot_number=n, weekday="Monday", start_time=start, end_time=time(start.hour + 1, start.minute))
            for n, start in enumerate(starts, start=1)
        ]
    )
    db_session.add_all(
        [
            LineSlot(line_number=1, weekday="Monday", slot_number=1),
            LineSlot(line_number=1, weekday="Monday", slot_number=3),
        ]
    )
    await db_session.commit()
    return {
        "teacher": teacher,
        "subject": maths,
        "hub_a": hub_a,
        "hub_b": hub_b,
        "rooms_a": {r.name: r for r in rooms_a},
        "room_b": room_b,
    }


@pytest.fixture()
async def seeded(db_session: AsyncSession) -> Dict[str, object]:
    return await seed_school(db_session)


@pytest.fixture()
async def file_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite file DB: each session gets its own connection, and connections can be replaced."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def school_seeder() -> Callable[[AsyncSession], Awaitable[Dict[str, object]]]:
    """Seeds the same reference data as `seeded` into a session of the caller's choosing."""
    return seed_school
