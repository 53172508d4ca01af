"""Test configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from edura.core.clock import FixedClock, get_clock
from edura.core.config import settings
from edura.core.database import Base, get_db
from edura.core.permissions import Role
from edura.core.security import get_password_hash
from edura.core.storage import LocalBlobStorage, get_storage
from edura.models.classroom import ClassSchedule, Classroom, Enrollment
from edura.models.user import User
from main import app

# Separate test database; SQLite file by default, set TEST_DATABASE_URL for PostgreSQL
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./edura_test.db")

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)

# Create test engine with NullPool to avoid connection issues
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
)
test_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    """Override database dependency for tests."""
    async with test_session_maker() as session:
        yield session


def local_time(*args: int) -> datetime:
    """Aware datetime in the center's timezone."""
    return datetime(*args, tzinfo=LOCAL_TZ)


@pytest_asyncio.fixture(scope="function")
async def setup_database() -> AsyncGenerator[None, None]:
    """Create test database tables before each test that needs it."""
    app.dependency_overrides[get_db] = override_get_db

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def clock() -> FixedClock:
    """Frozen clock: Monday 2024-06-10 09:00 local time. Move it with `clock.moment = ...`."""
    fixed = FixedClock(local_time(2024, 6, 10, 9, 0))
    app.dependency_overrides[get_clock] = lambda: fixed
    yield fixed
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def storage(tmp_path) -> LocalBlobStorage:
    """Blob storage in a temporary directory."""
    blob_storage = LocalBlobStorage(str(tmp_path / "uploads"))
    app.dependency_overrides[get_storage] = lambda: blob_storage
    yield blob_storage
    app.dependency_overrides.pop(get_storage, None)


@pytest_asyncio.fixture
async def db(setup_database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for tests."""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(setup_database: None, clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    """Get async HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def create_user(
    db: AsyncSession,
    email: str,
    role: Role,
    manager: User | None = None,
    name: str = "Test User",
) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash("password123"),
        name=name,
        role=role,
        manager_id=manager.id if manager else None,
        has_changed_password=True,
    )
    db.add(user)
    await db.flush()
    if role == Role.MANAGER:
        user.manager_id = user.id
    await db.commit()
    await db.refresh(user)
    return user


async def login(client: AsyncClient, email: str) -> str:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": "password123"},
    )
    return response.json()["access_token"]


@pytest_asyncio.fixture
async def manager_user(db: AsyncSession) -> User:
    """Create a manager (learning center owner) for tests."""
    return await create_user(db, "manager@edura-center.com", Role.MANAGER, name="Manager")


@pytest_asyncio.fixture
async def teacher_user(db: AsyncSession, manager_user: User) -> User:
    """Create a teacher in the manager's center."""
    return await create_user(
        db, "teacher@edura-center.com", Role.TEACHER, manager_user, name="Teacher"
    )


@pytest_asyncio.fixture
async def student_user(db: AsyncSession, manager_user: User) -> User:
    """Create a student in the manager's center."""
    return await create_user(
        db, "student@edura-center.com", Role.STUDENT, manager_user, name="Student"
    )


@pytest_asyncio.fixture
async def manager_token(client: AsyncClient, manager_user: User) -> str:
    return await login(client, manager_user.email)


@pytest_asyncio.fixture
async def teacher_token(client: AsyncClient, teacher_user: User) -> str:
    return await login(client, teacher_user.email)


@pytest_asyncio.fixture
async def student_token(client: AsyncClient, student_user: User) -> str:
    return await login(client, student_user.email)


async def create_class(
    db: AsyncSession,
    teacher: User,
    code: str = "ABC12",
    tuition_rate: int | None = None,
    name: str = "Math 101",
) -> Classroom:
    classroom = Classroom(
        class_name=name,
        class_code=code,
        teacher_id=teacher.id,
        tuition_rate=tuition_rate,
    )
    db.add(classroom)
    await db.commit()
    await db.refresh(classroom)
    return classroom


async def enroll(db: AsyncSession, student: User, classroom: Classroom) -> Enrollment:
    enrollment = Enrollment(student_id=student.id, class_id=classroom.id)
    db.add(enrollment)
    await db.commit()
    await db.refresh(enrollment)
    return enrollment


async def create_schedule(
    db: AsyncSession,
    classroom: Classroom,
    day_of_week: int,
    start_time: str,
    end_time: str,
    title: str = "Lesson",
) -> ClassSchedule:
    schedule = ClassSchedule(
        class_id=classroom.id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        title=title,
    )
    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)
    return schedule


@pytest_asyncio.fixture
async def classroom(db: AsyncSession, teacher_user: User) -> Classroom:
    """A class of the test teacher with a monthly rate of 500000."""
    return await create_class(db, teacher_user, tuition_rate=500000)


def auth_header(token: str) -> dict[str, str]:
    """Create authorization header."""
    return {"Authorization": f"Bearer {token}"}
