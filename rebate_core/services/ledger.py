"""
Rebate ledger reader.

Read-only views over rebate_transactions for the inviter's own screen and
for admin reporting. Entries are written only by RebateSettlementEngine.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.constants import LEDGER_DEFAULT_PAGE_SIZE
from rebate_core.config.settings import settings
from rebate_core.models.rebate_transaction import RebateTransaction
from rebate_core.repositories.rebate_transaction_repository import (
    RebateTransactionRepository,
)
from rebate_core.utils.money import round2


@dataclass
class LedgerPage:
    """One page of ledger entries."""

    items: list[RebateTransaction] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = LEDGER_DEFAULT_PAGE_SIZE

    @property
    def pages(self) -> int:
        """Number of pages, at least 1."""
        return max(1, math.ceil(self.total / self.limit))


@dataclass
class LedgerSummary:
    """Aggregated ledger amounts."""

    count: int = 0
    total_amount: Decimal = Decimal("0.00")
    positive_amount: Decimal = Decimal("0.00")
    negative_amount: Decimal = Decimal("0.00")


class RebateLedger:
    """Rebate ledger queries."""

    def __init__(
        self,
        session: AsyncSession,
        default_page_size: int | None = None,
        max_page_size: int | None = None,
    ) -> None:
        """
        Initialize ledger reader.

        Args:
            session: Async database session
            default_page_size: Page size used for missing or non-positive limits
            max_page_size: Upper bound on page size
        """
        self.session = session
        self.default_page_size = default_page_size or settings.ledger_default_page_size
        self.max_page_size = max_page_size or settings.ledger_max_page_size
        self.ledger_repo = RebateTransactionRepository(session)

    def _clamp(self, page: int | None, limit: int | None) -> tuple[int, int]:
        page = page if page and page > 0 else 1
        if not limit or limit <= 0:
            limit = self.default_page_size
        return page, min(limit, self.max_page_size)

    async def list_for_inviter(
        self,
        inviter_id: int,
        page: int = 1,
        limit: int | None = None,
        event_type: str | None = None,
    ) -> LedgerPage:
        """
        List an inviter's ledger entries, newest first.

        Args:
            inviter_id: Inviter user ID
            page: Page number (1-indexed)
            limit: Page size, clamped to the configured bounds
            event_type: Optional event type filter

        Returns:
            LedgerPage
        """
        page, limit = self._clamp(page, limit)
        items, total = await self.ledger_repo.find_paginated(
            page, limit, inviter_id=inviter_id, event_type=event_type
        )
        return LedgerPage(items=items, total=total, page=page, limit=limit)

    async def list_all(
        self,
        inviter_id: int | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> LedgerPage:
        """List ledger entries of all inviters, optionally narrowed to one."""
        page, limit = self._clamp(page, limit)
        items, total = await self.ledger_repo.find_paginated(
            page, limit, inviter_id=inviter_id
        )
        return LedgerPage(items=items, total=total, page=page, limit=limit)

    async def summarize(
        self,
        inviter_id: int | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        source_type: str | None = None,
    ) -> LedgerSummary:
        """
        Aggregate ledger amounts.

        Args:
            inviter_id: Optional inviter filter
            since: Inclusive lower bound on created_at
            until: Exclusive upper bound on created_at
            source_type: Optional source type filter

        Returns:
            LedgerSummary with amounts rounded to cents
        """
        row = await self.ledger_repo.aggregate(
            inviter_id=inviter_id,
            source_type=source_type,
            since=since,
            until=until,
        )
        return LedgerSummary(
            count=row["count"],
            total_amount=round2(row["total"]),
            positive_amount=round2(row["positive"]),
            negative_amount=round2(row["negative"]),
        )

    async def totals_by_source(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> dict[str, Decimal]:
        """Sum ledger amounts per source type."""
        totals = await self.ledger_repo.sum_by_source_type(since=since, until=until)
        return {source: round2(amount) for source, amount in totals.items()}

    async def has_positive_entry(self, source_type: str, source_id: int) -> bool:
        """Check whether a payment event has already been credited."""
        return await self.ledger_repo.has_positive_entry(source_type, source_id)
