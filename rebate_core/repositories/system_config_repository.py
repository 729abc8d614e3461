"""
System config repository.

Data access layer for the key-value settings table.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.models.system_config import SystemConfig
from rebate_core.repositories.base import BaseRepository
from rebate_core.utils.datetime_utils import utc_now


class SystemConfigRepository(BaseRepository[SystemConfig]):
    """Key-value settings repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize system config repository."""
        super().__init__(SystemConfig, session)

    async def get_values(self, keys: list[str]) -> dict[str, str | None]:
        """
        Read several keys in one query, straight from the database.

        Args:
            keys: Config keys

        Returns:
            Dict of the keys that exist
        """
        if not keys:
            return {}
        stmt = select(SystemConfig.key, SystemConfig.value).where(
            SystemConfig.key.in_(keys)
        )
        result = await self.session.execute(stmt)
        return {row.key: row.value for row in result.all()}

    async def get_value(self, key: str) -> str | None:
        """Read one key, None when absent."""
        values = await self.get_values([key])
        return values.get(key)

    async def set_value(self, key: str, value: str | None) -> SystemConfig:
        """
        Create or update a key.

        Args:
            key: Config key
            value: New value

        Returns:
            Stored config row
        """
        row = await self.get_by_id(key)
        if row is None:
            row = SystemConfig(key=key, value=value)
            self.session.add(row)
        else:
            row.value = value
            row.updated_at = utc_now()
        await self.session.flush()
        return row
