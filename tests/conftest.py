import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Callable, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from academic_control.auth.models import Profile
from academic_control.auth.schemas import CurrentUser
from academic_control.auth.security import create_access_token
from academic_control.core.enums import Role
from academic_control.core.models import Enrollment, SchoolClass
from academic_control.db.session import Base, get_db
from academic_control.main import app


@pytest.fixture()
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh SQLite file per test so every session sees committed rows."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, one DB session per request."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def make_profile(db_session: AsyncSession) -> Callable:
    async def _make(role: Role, first_name: str = "Test", last_name: str = "User") -> Profile:
        profile = Profile(role=role.value, first_name=first_name, last_name=last_name)
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture()
def make_class(db_session: AsyncSession) -> Callable:
    async def _make(teacher: Profile, class_code: str = "ABC123", is_active: bool = True, name: str = "Algebra") -> SchoolClass:
        obj = SchoolClass(
            name=name,
            code="MAT101",
            class_code=class_code,
            credits=3,
            teacher_id=teacher.id,
            is_active=is_active,
        )
        db_session.add(obj)
        await db_session.commit()
        await db_session.refresh(obj)
        return obj

    return _make


@pytest.fixture()
def make_enrollment(db_session: AsyncSession) -> Callable:
    async def _make(student: Profile, school_class: SchoolClass, academic_year: str = "2025", semester: str = "Fall") -> Enrollment:
        obj = Enrollment(
            student_id=student.id,
            class_id=school_class.id,
            academic_year=academic_year,
            semester=semester,
        )
        db_session.add(obj)
        await db_session.commit()
        await db_session.refresh(obj)
        return obj

    return _make


def actor_for(profile: Profile) -> CurrentUser:
    return CurrentUser(id=profile.id, role=profile.role)


def auth_headers(profile: Profile) -> Dict[str, str]:
    token = create_access_token(subject={"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}
