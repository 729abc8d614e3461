"""
SystemConfig model.

Key-value table for runtime-tunable settings edited from the admin panel.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rebate_core.models.base import Base
from rebate_core.utils.datetime_utils import utc_now


class SystemConfig(Base):
    """Small KV storage for runtime-tunable settings."""

    __tablename__ = "system_configs"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<SystemConfig(key={self.key!r}, value={self.value!r})>"
