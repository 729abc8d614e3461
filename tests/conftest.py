"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment so the global Settings instance can load
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from rebate_core.models.enums import RebateMode
from rebate_core.services.settings_provider import RebateSettings


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


class StaticSettingsProvider:
    """Settings provider returning fixed values, counting reads."""

    def __init__(
        self,
        rate: Decimal | str = "0",
        mode: RebateMode = RebateMode.EVERY_ORDER,
    ) -> None:
        self.settings = RebateSettings(rate=Decimal(str(rate)), mode=mode)
        self.calls = 0

    async def get_rebate_settings(self) -> RebateSettings:
        self.calls += 1
        return self.settings


@pytest.fixture
def static_settings():
    """Factory for fixed rebate settings providers."""
    return StaticSettingsProvider
