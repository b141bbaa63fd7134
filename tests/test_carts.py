"""Tests for marking carts recovered and the recovery statistics."""

from unittest.mock import AsyncMock, Mock

import pytest

from cart_whisperer.core.errors import NotFoundAppError
from cart_whisperer.services.carts import (
    CARTS_TABLE,
    CartService,
    RecoveryStatsService,
    percentage,
)
from cart_whisperer.services.tracking import EMAIL_EVENTS_TABLE


class TestMarkRecovered:
    @pytest.mark.asyncio
    async def test_updates_cart(self) -> None:
        db = Mock()
        db.update = AsyncMock(return_value=[{"id": "cart-42", "recovered": True}])

        await CartService(db).mark_recovered("cart-42")

        table, values = db.update.await_args.args
        assert table == CARTS_TABLE
        assert values["recovered"] is True
        assert values["updated_at"]
        assert db.update.await_args.kwargs == {"filters": {"id": "eq.cart-42"}}

    @pytest.mark.asyncio
    async def test_unknown_cart(self) -> None:
        db = Mock()
        db.update = AsyncMock(return_value=[])

        with pytest.raises(NotFoundAppError) as exc_info:
            await CartService(db).mark_recovered("nope")

        assert exc_info.value.code == "cart_not_found"


class TestPercentage:
    @pytest.mark.parametrize(
        ("part", "whole", "expected"),
        [(0, 0, 0.0), (1, 4, 25.0), (1, 3, 33.33), (3, 3, 100.0)],
    )
    def test_percentage(self, part: int, whole: int, expected: float) -> None:
        assert percentage(part, whole) == expected


class TestRecoveryStats:
    @pytest.mark.asyncio
    async def test_cart_stats_for_store(self) -> None:
        db = Mock()
        db.count = AsyncMock(side_effect=[8, 2])

        stats = await RecoveryStatsService(db).cart_stats("store-1")

        assert stats.total == 8
        assert stats.recovered == 2
        assert stats.conversion_rate == 25.0
        first, second = db.count.await_args_list
        assert first.args == (CARTS_TABLE,)
        assert first.kwargs == {"filters": {"store_id": "eq.store-1"}}
        assert second.kwargs == {
            "filters": {"store_id": "eq.store-1", "recovered": "eq.true"}
        }

    @pytest.mark.asyncio
    async def test_cart_stats_without_carts(self) -> None:
        db = Mock()
        db.count = AsyncMock(return_value=0)

        stats = await RecoveryStatsService(db).cart_stats()

        assert stats.conversion_rate == 0.0
        assert db.count.await_args_list[0].kwargs == {"filters": {}}

    @pytest.mark.asyncio
    async def test_email_stats_count_distinct_emails(self) -> None:
        db = Mock()
        db.select = AsyncMock(
            side_effect=[
                [{"tracking_id": f"t-{n}"} for n in range(1, 5)],
                [
                    {"tracking_id": "t-1", "status": "opened"},
                    {"tracking_id": "t-1", "status": "opened"},
                    {"tracking_id": "t-1", "status": "clicked"},
                    {"tracking_id": "t-2", "status": "opened"},
                ],
            ]
        )

        stats = await RecoveryStatsService(db).email_stats("store-1")

        assert (stats.sent, stats.opened, stats.clicked) == (4, 2, 1)
        assert stats.open_rate == 50.0
        assert stats.click_rate == 25.0
        sent_call, engagement_call = db.select.await_args_list
        assert sent_call.args == (EMAIL_EVENTS_TABLE,)
        assert sent_call.kwargs["filters"] == {"status": "eq.sent", "store_id": "eq.store-1"}
        assert engagement_call.kwargs["filters"] == {
            "status": "in.(opened,clicked)",
            "tracking_id": "in.(t-1,t-2,t-3,t-4)",
        }

    @pytest.mark.asyncio
    async def test_email_stats_without_sent_emails(self) -> None:
        db = Mock()
        db.select = AsyncMock(return_value=[])

        stats = await RecoveryStatsService(db).email_stats()

        assert stats.sent == 0
        assert stats.open_rate == 0.0
        db.select.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_summary(self) -> None:
        db = Mock()
        db.count = AsyncMock(side_effect=[4, 1])
        db.select = AsyncMock(return_value=[])

        summary = await RecoveryStatsService(db).summary("store-1")

        assert summary.store_id == "store-1"
        assert summary.carts.conversion_rate == 25.0
        assert summary.emails.sent == 0
