"""
ReferralRelation model.

One row per invitee recording who invited them and when they first paid.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rebate_core.models.base import Base
from rebate_core.models.enums import ReferralStatus
from rebate_core.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from rebate_core.models.user import User


class ReferralRelation(Base):
    """
    ReferralRelation entity.

    Created at registration (or lazily on the first rebate attempt) in
    'pending' state and advanced to 'active' by the first qualifying
    payment. Status never moves back; first_payment_* is written once.

    Attributes:
        id: Primary key
        inviter_id: User who owns the invite code
        invitee_id: Invited user (unique)
        invite_code: Code snapshot at registration time
        invite_ip: First seen registration IP, never overwritten
        registered_at: When the relation was recorded
        status: pending or active
        first_payment_type: Source type of the first qualifying payment
        first_payment_id: Source id of the first qualifying payment
        first_paid_at: When the first qualifying payment was settled
    """

    __tablename__ = "referral_relations"
    __table_args__ = (
        CheckConstraint(
            'inviter_id <> invitee_id',
            name='check_referral_relation_not_self'
        ),
        Index("idx_referral_relations_inviter_status", "inviter_id", "status"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    inviter_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invitee_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    invite_code: Mapped[str | None] = mapped_column(
        String(32), nullable=True
    )
    invite_ip: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(16), default=ReferralStatus.PENDING.value, nullable=False
    )

    first_payment_type: Mapped[str | None] = mapped_column(
        String(32), nullable=True
    )
    first_payment_id: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    first_paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    # Relationships
    invitee: Mapped["User"] = relationship(
        "User",
        foreign_keys=[invitee_id],
        back_populates="referral_relation",
        lazy="raise",
    )

    @property
    def is_active(self) -> bool:
        """Whether the invitee already made a qualifying payment."""
        return self.status == ReferralStatus.ACTIVE.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralRelation(id={self.id}, inviter_id={self.inviter_id}, "
            f"invitee_id={self.invitee_id}, status={self.status!r})>"
        )
