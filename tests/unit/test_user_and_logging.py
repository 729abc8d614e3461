"""Unit tests for User eligibility and logging setup."""

from datetime import timedelta

import pytest
from loguru import logger

from rebate_core.config.settings import Settings
from rebate_core.models import User
from rebate_core.utils.datetime_utils import utc_now
from rebate_core.utils.logging import setup_logging


class TestUserEligibility:
    """Test User.is_rebate_eligible."""

    @pytest.mark.parametrize(
        "status,user_class,expires_in,expected",
        [
            (1, 1, None, True),
            (1, 2, timedelta(days=1), True),
            (1, 1, timedelta(days=-1), False),
            (0, 1, None, False),
            (1, 0, None, False),
        ],
    )
    def test_eligibility(self, status, user_class, expires_in, expected):
        """Active, paid and unexpired accounts are eligible."""
        user = User(
            status=status,
            user_class=user_class,
            class_expire_time=utc_now() + expires_in if expires_in else None,
        )

        assert user.is_rebate_eligible is expected

    def test_naive_expiry_treated_as_utc(self):
        """Naive datetimes read back from SQLite are compared as UTC."""
        naive = (utc_now() + timedelta(hours=1)).replace(tzinfo=None)
        user = User(status=1, user_class=1, class_expire_time=naive)

        assert user.is_rebate_eligible is True


class TestSetupLogging:
    """Test loguru sink configuration."""

    def test_file_sink_receives_records(self, tmp_path):
        """Records reach the configured log file."""
        log_file = tmp_path / "rebate.log"
        config = Settings(
            database_url="sqlite+aiosqlite://",
            log_file=str(log_file),
            log_level="info",
        )

        setup_logging(config)
        logger.info("settlement check")
        logger.remove()

        assert "settlement check" in log_file.read_text(encoding="utf-8")

    def test_without_file(self):
        """An empty log_file configures stderr only."""
        config = Settings(database_url="sqlite+aiosqlite://", log_file="")

        setup_logging(config)
        logger.remove()
