"""
User model.

The account row is owned by the account subsystem. Only the referral and
rebate columns are written by this package.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rebate_core.config.constants import USER_STATUS_ACTIVE
from rebate_core.models.base import Base
from rebate_core.models.types import MoneyType
from rebate_core.utils.datetime_utils import as_utc, utc_now

if TYPE_CHECKING:
    from rebate_core.models.referral_relation import ReferralRelation


class User(Base):
    """User model - panel accounts."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'rebate_available >= 0',
            name='check_user_rebate_available_non_negative'
        ),
        CheckConstraint(
            'rebate_total >= 0',
            name='check_user_rebate_total_non_negative'
        ),
        CheckConstraint(
            'invite_used >= 0',
            name='check_user_invite_used_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True
    )
    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )

    # Referral
    invite_code: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True, index=True
    )
    invited_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    # 0 means unlimited
    invite_limit: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    invite_used: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Balances
    money: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    rebate_available: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    rebate_total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Eligibility flags (owned by the account subsystem)
    status: Mapped[int] = mapped_column(
        SmallInteger, default=USER_STATUS_ACTIVE, nullable=False
    )
    user_class: Mapped[int] = mapped_column(
        "class", Integer, default=0, nullable=False
    )
    class_expire_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    # Relationships
    referral_relation: Mapped["ReferralRelation | None"] = relationship(
        "ReferralRelation",
        foreign_keys="ReferralRelation.invitee_id",
        back_populates="invitee",
        uselist=False,
        lazy="raise",
    )

    @property
    def is_rebate_eligible(self) -> bool:
        """Active account with a paid class that has not expired."""
        if self.status != USER_STATUS_ACTIVE or (self.user_class or 0) <= 0:
            return False
        expires = as_utc(self.class_expire_time)
        return expires is None or expires > utc_now()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, invite_code={self.invite_code!r}, "
            f"invited_by={self.invited_by})>"
        )
