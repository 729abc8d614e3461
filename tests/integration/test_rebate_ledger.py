"""Integration tests for RebateLedger queries."""

from datetime import timedelta
from decimal import Decimal

import pytest

from rebate_core.models import RebateTransaction
from rebate_core.services.ledger import RebateLedger
from rebate_core.utils.datetime_utils import utc_now


@pytest.fixture
def add_entries(session_maker):
    """Insert ledger rows directly."""

    async def _add(*entries: dict) -> None:
        async with session_maker() as s:
            for entry in entries:
                data = {
                    "source_type": "purchase",
                    "event_type": "purchase_rebate",
                    "status": "confirmed",
                }
                data.update(entry)
                s.add(RebateTransaction(**data))
            await s.commit()

    return _add


class TestListing:
    """Test paginated listing."""

    @pytest.mark.asyncio
    async def test_newest_first_with_pagination(self, session, make_user, add_entries):
        """Pages are ordered newest first."""
        inviter = await make_user()
        base = utc_now()
        await add_entries(
            *[
                {
                    "inviter_id": inviter.id,
                    "source_id": i,
                    "amount": Decimal("1.00") + i,
                    "created_at": base + timedelta(minutes=i),
                }
                for i in range(5)
            ]
        )
        ledger = RebateLedger(session)

        first = await ledger.list_for_inviter(inviter.id, page=1, limit=2)
        last = await ledger.list_for_inviter(inviter.id, page=3, limit=2)

        assert first.total == 5
        assert first.pages == 3
        assert [e.source_id for e in first.items] == [4, 3]
        assert [e.source_id for e in last.items] == [0]

    @pytest.mark.asyncio
    async def test_filters_inviter_and_event_type(self, session, make_user, add_entries):
        """Other inviters and event types are excluded."""
        inviter = await make_user()
        other = await make_user()
        await add_entries(
            {"inviter_id": inviter.id, "source_id": 1, "amount": Decimal("2")},
            {
                "inviter_id": inviter.id,
                "source_type": "recharge",
                "event_type": "recharge_rebate",
                "source_id": 1,
                "amount": Decimal("3"),
            },
            {"inviter_id": other.id, "source_id": 2, "amount": Decimal("4")},
        )
        ledger = RebateLedger(session)

        mine = await ledger.list_for_inviter(inviter.id)
        recharges = await ledger.list_for_inviter(inviter.id, event_type="recharge_rebate")
        everything = await ledger.list_all()
        others = await ledger.list_all(inviter_id=other.id)

        assert mine.total == 2
        assert [e.amount for e in recharges.items] == [Decimal("3.00")]
        assert everything.total == 3
        assert others.total == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page,limit,expected_page,expected_limit",
        [(0, 0, 1, 20), (-3, -1, 1, 20), (2, 500, 2, 200), (1, None, 1, 20)],
    )
    async def test_pagination_clamped(
        self, session, page, limit, expected_page, expected_limit
    ):
        """Bad page numbers and sizes are normalized."""
        ledger = RebateLedger(session)

        result = await ledger.list_for_inviter(1, page=page, limit=limit)

        assert result.page == expected_page
        assert result.limit == expected_limit
        assert result.items == []
        assert result.pages == 1


class TestAggregates:
    """Test summaries."""

    @pytest.mark.asyncio
    async def test_summarize(self, session, make_user, add_entries):
        """Totals split into positive and negative parts."""
        inviter = await make_user()
        await add_entries(
            {"inviter_id": inviter.id, "source_id": 1, "amount": Decimal("10.50")},
            {"inviter_id": inviter.id, "source_id": 2, "amount": Decimal("4.25")},
            {
                "inviter_id": inviter.id,
                "source_type": "withdraw",
                "event_type": "withdraw",
                "source_id": 3,
                "amount": Decimal("-5.00"),
            },
        )
        ledger = RebateLedger(session)

        summary = await ledger.summarize(inviter_id=inviter.id)
        purchases = await ledger.summarize(inviter_id=inviter.id, source_type="purchase")

        assert summary.count == 3
        assert summary.total_amount == Decimal("9.75")
        assert summary.positive_amount == Decimal("14.75")
        assert summary.negative_amount == Decimal("-5.00")
        assert purchases.count == 2
        assert purchases.negative_amount == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_summarize_time_window(self, session, make_user, add_entries):
        """since is inclusive, until exclusive."""
        inviter = await make_user()
        base = utc_now() - timedelta(days=10)
        await add_entries(
            {"inviter_id": inviter.id, "source_id": 1, "amount": Decimal("1"), "created_at": base},
            {
                "inviter_id": inviter.id,
                "source_id": 2,
                "amount": Decimal("2"),
                "created_at": base + timedelta(days=5),
            },
        )
        ledger = RebateLedger(session)

        window = await ledger.summarize(
            since=base + timedelta(days=1), until=base + timedelta(days=6)
        )

        assert window.count == 1
        assert window.total_amount == Decimal("2.00")

    @pytest.mark.asyncio
    async def test_empty_summary(self, session):
        """An empty ledger sums to zero."""
        summary = await RebateLedger(session).summarize()

        assert summary.count == 0
        assert summary.total_amount == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_totals_by_source(self, session, make_user, add_entries):
        """Amounts are grouped per source type."""
        inviter = await make_user()
        await add_entries(
            {"inviter_id": inviter.id, "source_id": 1, "amount": Decimal("1.10")},
            {"inviter_id": inviter.id, "source_id": 2, "amount": Decimal("2.20")},
            {
                "inviter_id": inviter.id,
                "source_type": "recharge",
                "event_type": "recharge_rebate",
                "source_id": 1,
                "amount": Decimal("0.70"),
            },
        )
        ledger = RebateLedger(session)

        totals = await ledger.totals_by_source()

        assert totals == {"purchase": Decimal("3.30"), "recharge": Decimal("0.70")}

    @pytest.mark.asyncio
    async def test_has_positive_entry(self, session, make_user, add_entries):
        """Only positive rows count as settled."""
        inviter = await make_user()
        await add_entries(
            {"inviter_id": inviter.id, "source_id": 1, "amount": Decimal("1")},
            {"inviter_id": inviter.id, "source_type": "manual", "source_id": 2, "amount": Decimal("-1")},
        )
        ledger = RebateLedger(session)

        assert await ledger.has_positive_entry("purchase", 1) is True
        assert await ledger.has_positive_entry("purchase", 2) is False
        assert await ledger.has_positive_entry("manual", 2) is False
