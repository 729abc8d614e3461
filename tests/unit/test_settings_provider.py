"""Unit tests for rebate settings parsing and the system config provider."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from rebate_core.models.enums import RebateMode
from rebate_core.services.settings_provider import (
    RebateSettings,
    SystemConfigSettingsProvider,
    parse_invite_limit,
    parse_rebate_mode,
    parse_rebate_rate,
)


class TestParseRebateRate:
    """Test rebate_rate parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("0.1", Decimal("0.1")),
            ("1", Decimal("1")),
            ("1.5", Decimal("1")),
            ("-0.2", Decimal("0")),
            ("abc", Decimal("0")),
            ("", Decimal("0")),
            (None, Decimal("0")),
        ],
    )
    def test_parse_and_clamp(self, raw, expected):
        """Rate is clamped to [0, 1]; garbage disables rebates."""
        assert parse_rebate_rate(raw) == expected


class TestParseRebateMode:
    """Test rebate_mode parsing."""

    def test_first_order_exact(self):
        """Exact value (after trimming) selects first-order mode."""
        assert parse_rebate_mode("first_order") == RebateMode.FIRST_ORDER
        assert parse_rebate_mode("  first_order ") == RebateMode.FIRST_ORDER

    @pytest.mark.parametrize("raw", [None, "", "every_order", "FIRST_ORDER", "first"])
    def test_everything_else_is_every_order(self, raw):
        """Any other value means every order."""
        assert parse_rebate_mode(raw) == RebateMode.EVERY_ORDER


class TestParseInviteLimit:
    """Test invite_default_limit parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("5", 5), (" 3 ", 3), ("0", 0), ("-1", 0), ("x", 0), (None, 0)],
    )
    def test_parse(self, raw, expected):
        """Non-positive and invalid values mean no default."""
        assert parse_invite_limit(raw) == expected


class TestRebateSettings:
    """Test RebateSettings snapshot."""

    def test_defaults_disabled(self):
        """Default snapshot pays nothing."""
        settings = RebateSettings()

        assert settings.enabled is False
        assert settings.mode == RebateMode.EVERY_ORDER

    def test_enabled_with_positive_rate(self):
        """Positive rate enables rebates."""
        assert RebateSettings(rate=Decimal("0.01")).enabled is True


class TestSystemConfigSettingsProvider:
    """Test provider reads through the config repository."""

    @pytest.mark.asyncio
    async def test_reads_every_call(self, mock_session):
        """Each call queries storage again."""
        provider = SystemConfigSettingsProvider(mock_session)
        provider.config_repo.get_values = AsyncMock(
            side_effect=[
                {"rebate_rate": "0.1", "rebate_mode": "first_order"},
                {"rebate_rate": "0.2"},
            ]
        )

        first = await provider.get_rebate_settings()
        second = await provider.get_rebate_settings()

        assert first == RebateSettings(Decimal("0.1"), RebateMode.FIRST_ORDER)
        assert second == RebateSettings(Decimal("0.2"), RebateMode.EVERY_ORDER)
        assert provider.config_repo.get_values.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_keys(self, mock_session):
        """Absent keys give rate 0 and every_order."""
        provider = SystemConfigSettingsProvider(mock_session)
        provider.config_repo.get_values = AsyncMock(return_value={})

        settings = await provider.get_rebate_settings()

        assert settings == RebateSettings()
