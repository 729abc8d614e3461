"""
RebateTransaction model.

Append-only rebate ledger.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rebate_core.config.constants import LEDGER_SOURCE_UNIQUE_INDEX
from rebate_core.models.base import Base
from rebate_core.models.enums import TransactionStatus
from rebate_core.models.types import MoneyType
from rebate_core.utils.datetime_utils import utc_now


class RebateTransaction(Base):
    """
    RebateTransaction entity.

    Every settlement outcome and manual rebate adjustment is one row.
    Rows are never updated or deleted.

    The partial unique index on (source_type, source_id) for positive
    amounts makes a second credit for the same payment event fail at the
    storage layer, even when two callbacks pass the pre-check together.
    Rows without a source_id are not constrained.

    Attributes:
        id: Primary key
        inviter_id: User credited (or debited)
        referral_id: Relation the rebate came from, NULL for manual entries
        invitee_id: Paying user, NULL for manual entries
        source_type: purchase, recharge, withdraw, ...
        source_id: Internal id of the source record
        trade_no: External transaction reference
        event_type: Ledger annotation (purchase_rebate, recharge_rebate, ...)
        amount: Signed amount, two decimals
        status: Entry status
        remark: Free-form note
        created_at: Entry time
    """

    __tablename__ = "rebate_transactions"
    __table_args__ = (
        Index(
            LEDGER_SOURCE_UNIQUE_INDEX,
            "source_type",
            "source_id",
            unique=True,
            postgresql_where=text("amount > 0"),
            sqlite_where=text("amount > 0"),
        ),
        Index("idx_rebate_transactions_inviter_created", "inviter_id", "created_at"),
        Index("idx_rebate_transactions_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    inviter_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    referral_id: Mapped[int | None] = mapped_column(
        ForeignKey("referral_relations.id", ondelete="SET NULL"),
        nullable=True,
    )
    invitee_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    source_type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )
    source_id: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    trade_no: Mapped[str | None] = mapped_column(
        String(128), nullable=True
    )
    event_type: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(16), default=TransactionStatus.CONFIRMED.value, nullable=False
    )
    remark: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RebateTransaction(id={self.id}, inviter_id={self.inviter_id}, "
            f"source={self.source_type}:{self.source_id}, amount={self.amount})>"
        )
