"""
Rebate transaction repository.

Data access layer for the append-only rebate ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.constants import LEDGER_SOURCE_UNIQUE_INDEX
from rebate_core.models.rebate_transaction import RebateTransaction
from rebate_core.repositories.base import BaseRepository

# SQLite reports partial index violations by column, not by index name
_SQLITE_SOURCE_VIOLATION = (
    "UNIQUE constraint failed: "
    "rebate_transactions.source_type, rebate_transactions.source_id"
)


def is_duplicate_source_error(error: IntegrityError) -> bool:
    """Check whether an insert hit the one-credit-per-event index."""
    message = str(error.orig)
    return LEDGER_SOURCE_UNIQUE_INDEX in message or _SQLITE_SOURCE_VIOLATION in message


class RebateTransactionRepository(BaseRepository[RebateTransaction]):
    """Rebate ledger repository. Insert and read only."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize rebate transaction repository."""
        super().__init__(RebateTransaction, session)

    async def has_positive_entry(
        self, source_type: str, source_id: int
    ) -> bool:
        """
        Check whether a payment event was already credited.

        Args:
            source_type: Source type (purchase, recharge, ...)
            source_id: Source record ID

        Returns:
            True if a row with amount > 0 exists for the pair
        """
        stmt = (
            select(RebateTransaction.id)
            .where(
                RebateTransaction.source_type == source_type,
                RebateTransaction.source_id == source_id,
                RebateTransaction.amount > 0,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    def _filters(
        self,
        inviter_id: int | None = None,
        event_type: str | None = None,
        source_type: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[Any]:
        """Build WHERE clauses shared by list and aggregate queries."""
        clauses: list[Any] = []
        if inviter_id is not None:
            clauses.append(RebateTransaction.inviter_id == inviter_id)
        if event_type:
            clauses.append(RebateTransaction.event_type == event_type)
        if source_type:
            clauses.append(RebateTransaction.source_type == source_type)
        if since is not None:
            clauses.append(RebateTransaction.created_at >= since)
        if until is not None:
            clauses.append(RebateTransaction.created_at < until)
        return clauses

    async def find_paginated(
        self,
        page: int,
        per_page: int,
        inviter_id: int | None = None,
        event_type: str | None = None,
    ) -> tuple[list[RebateTransaction], int]:
        """
        Find ledger entries, newest first, with pagination.

        Args:
            page: Page number (1-indexed)
            per_page: Items per page
            inviter_id: Optional inviter filter
            event_type: Optional event type filter

        Returns:
            Tuple of (items, total_count)
        """
        clauses = self._filters(inviter_id=inviter_id, event_type=event_type)

        count_stmt = select(func.count(RebateTransaction.id)).where(*clauses)
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0

        offset = (page - 1) * per_page
        stmt = (
            select(RebateTransaction)
            .where(*clauses)
            .order_by(RebateTransaction.created_at.desc(), RebateTransaction.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        result = await self.session.execute(stmt)
        items = list(result.scalars().all())

        return items, total

    async def aggregate(
        self,
        inviter_id: int | None = None,
        source_type: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Aggregate ledger amounts in a single query.

        Returns:
            Dict with count, total, positive and negative sums
        """
        clauses = self._filters(
            inviter_id=inviter_id,
            source_type=source_type,
            since=since,
            until=until,
        )
        amount = RebateTransaction.amount
        stmt = select(
            func.count(RebateTransaction.id).label("count"),
            func.coalesce(func.sum(amount), 0).label("total"),
            func.coalesce(
                func.sum(case((amount > 0, amount), else_=0)), 0
            ).label("positive"),
            func.coalesce(
                func.sum(case((amount < 0, amount), else_=0)), 0
            ).label("negative"),
        ).where(*clauses)

        result = await self.session.execute(stmt)
        row = result.one()
        return {
            "count": int(row.count or 0),
            "total": row.total,
            "positive": row.positive,
            "negative": row.negative,
        }

    async def sum_by_source_type(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> dict[str, Decimal]:
        """
        Sum ledger amounts grouped by source type.

        Returns:
            Dict mapping source_type to summed amount
        """
        clauses = self._filters(since=since, until=until)
        stmt = (
            select(
                RebateTransaction.source_type,
                func.coalesce(func.sum(RebateTransaction.amount), 0).label("total"),
            )
            .where(*clauses)
            .group_by(RebateTransaction.source_type)
            .order_by(RebateTransaction.source_type)
        )
        result = await self.session.execute(stmt)
        return {row.source_type: row.total for row in result.all()}
