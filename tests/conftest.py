import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'seedplot_test.db')}",
)
TEST_JWT_SECRET = "test-jwt-secret"

# Settings are read at import time; the worker jobs open their own sessions
# through app.db.session, so they must point at the test database too.
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["SUPABASE_URL"] = ""
os.environ["EMAIL_HOST"] = ""

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Garden, GardenBed, GardenUser, Profile, Seed  # noqa: E402

# NullPool keeps connections from being cached across event loop boundaries.
engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="session", autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db():
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db: AsyncSession):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Data helpers ──────────────────────────────────────────────────────────────


def make_token(user_id: uuid.UUID, secret: str = TEST_JWT_SECRET) -> str:
    payload = {
        "sub": str(user_id),
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth(user: Profile) -> dict:
    return {"Authorization": f"Bearer {make_token(user.id)}"}


async def make_profile(db: AsyncSession, **prefs) -> Profile:
    profile = Profile(id=uuid.uuid4(), display_name="Sam", notification_prefs=prefs or None)
    db.add(profile)
    await db.commit()
    return profile


async def make_garden(db: AsyncSession, owner: Profile, beds: tuple = ((2, False),)) -> tuple[Garden, list[GardenBed]]:
    """A garden owned by `owner` with one bed per (segments, is_greenhouse) pair."""
    garden = Garden(name="Allotment 12", join_code=uuid.uuid4().hex[:8])
    db.add(garden)
    await db.flush()
    db.add(GardenUser(garden_id=garden.id, user_id=owner.id, role="owner"))
    made = []
    for i, (segments, greenhouse) in enumerate(beds):
        bed = GardenBed(
            garden_id=garden.id,
            name=f"Bed {i + 1}",
            segments=segments,
            is_greenhouse=greenhouse,
            sort_order=i,
        )
        db.add(bed)
        made.append(bed)
    await db.commit()
    return garden, made


async def make_seed(db: AsyncSession, garden: Garden, sowing_type="direct", presow=None, grow=6, harvest=3) -> Seed:
    seed = Seed(
        garden_id=garden.id,
        name="Beetroot",
        sowing_type=sowing_type,
        presow_duration_weeks=presow,
        grow_duration_weeks=grow,
        harvest_duration_weeks=harvest,
        default_color="#aa3355",
    )
    db.add(seed)
    await db.commit()
    return seed
