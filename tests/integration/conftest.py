"""
Shared fixtures for integration tests.

Each test gets a fresh SQLite database file through aiosqlite with the
full schema, including the partial unique index on the ledger.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rebate_core.models import Base, ReferralRelation, User
from rebate_core.repositories.system_config_repository import (
    SystemConfigRepository,
)
from rebate_core.utils.datetime_utils import utc_now


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Async engine on a temporary database file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rebate.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session maker matching the application factory."""
    return async_sessionmaker(
        bind=db_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def session(session_maker):
    """Session used by the code under test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(session_maker):
    """
    Factory creating committed users.

    Defaults describe an eligible inviter: active, paid class, no expiry.
    """
    counter = {"n": 0}

    async def _make(**overrides) -> User:
        counter["n"] += 1
        data = {
            "email": f"user{counter['n']}@example.com",
            "username": f"user{counter['n']}",
            "status": 1,
            "user_class": 1,
            "class_expire_time": None,
            "invite_limit": 0,
            "invite_used": 0,
            "rebate_available": Decimal("0"),
            "rebate_total": Decimal("0"),
        }
        data.update(overrides)
        async with session_maker() as s:
            user = User(**data)
            s.add(user)
            await s.commit()
            return user

    return _make


@pytest.fixture
def set_config(session_maker):
    """Write system_configs values in a separate committed session."""

    async def _set(**values: str) -> None:
        async with session_maker() as s:
            repo = SystemConfigRepository(s)
            for key, value in values.items():
                await repo.set_value(key, value)
            await s.commit()

    return _set


@pytest.fixture
def load_user(session_maker):
    """Read a user back through a fresh session."""

    async def _load(user_id: int) -> User:
        async with session_maker() as s:
            return await s.get(User, user_id)

    return _load


@pytest.fixture
def load_relation(session_maker):
    """Read an invitee's relation back through a fresh session."""

    async def _load(invitee_id: int) -> ReferralRelation | None:
        async with session_maker() as s:
            result = await s.execute(
                select(ReferralRelation).where(
                    ReferralRelation.invitee_id == invitee_id
                )
            )
            return result.scalar_one_or_none()

    return _load


@pytest.fixture
def expired():
    """A class expiry in the past."""
    return utc_now() - timedelta(days=1)
