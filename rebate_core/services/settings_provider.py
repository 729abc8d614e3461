"""
Rebate settings provider.

Reads rate and mode from the system_configs table on every call. No
caching: an admin change applies to the next settlement.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.constants import (
    CONFIG_KEY_INVITE_DEFAULT_LIMIT,
    CONFIG_KEY_REBATE_MODE,
    CONFIG_KEY_REBATE_RATE,
    REBATE_RATE_MAX,
    REBATE_RATE_MIN,
)
from rebate_core.models.enums import RebateMode
from rebate_core.repositories.system_config_repository import (
    SystemConfigRepository,
)
from rebate_core.utils.money import to_decimal


@dataclass(frozen=True)
class RebateSettings:
    """Rebate configuration snapshot."""

    rate: Decimal = Decimal("0")
    mode: RebateMode = RebateMode.EVERY_ORDER

    @property
    def enabled(self) -> bool:
        """Rebates are paid only with a positive rate."""
        return self.rate > 0


class RebateSettingsProvider(Protocol):
    """Source of rebate settings, queried once per settlement."""

    async def get_rebate_settings(self) -> RebateSettings:
        ...


def parse_rebate_rate(raw: str | None) -> Decimal:
    """
    Parse a configured rate, clamped to [0, 1].

    Absent or unparsable values disable rebates (rate 0).
    """
    if raw is None or not str(raw).strip():
        return Decimal("0")
    try:
        rate = to_decimal(raw)
    except ValueError:
        logger.warning(f"Unparsable rebate rate {raw!r}, rebates disabled")
        return Decimal("0")
    return min(max(rate, REBATE_RATE_MIN), REBATE_RATE_MAX)


def parse_rebate_mode(raw: str | None) -> RebateMode:
    """Only an exact 'first_order' selects first-order mode."""
    if raw is not None and raw.strip() == RebateMode.FIRST_ORDER.value:
        return RebateMode.FIRST_ORDER
    return RebateMode.EVERY_ORDER


def parse_invite_limit(raw: str | None) -> int:
    """Parse the default invite limit, non-positive or invalid means none."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return 0
    return value if value > 0 else 0


class SystemConfigSettingsProvider:
    """RebateSettingsProvider backed by the system_configs table."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize provider on the caller's session."""
        self.session = session
        self.config_repo = SystemConfigRepository(session)

    async def get_rebate_settings(self) -> RebateSettings:
        """Read rebate_rate and rebate_mode fresh from the database."""
        values = await self.config_repo.get_values(
            [CONFIG_KEY_REBATE_RATE, CONFIG_KEY_REBATE_MODE]
        )
        return RebateSettings(
            rate=parse_rebate_rate(values.get(CONFIG_KEY_REBATE_RATE)),
            mode=parse_rebate_mode(values.get(CONFIG_KEY_REBATE_MODE)),
        )

    async def get_default_invite_limit(self) -> int:
        """Read invite_default_limit, 0 when unset."""
        raw = await self.config_repo.get_value(CONFIG_KEY_INVITE_DEFAULT_LIMIT)
        return parse_invite_limit(raw)
