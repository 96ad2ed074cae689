"""
Test historical win rates and revenue forecasting
"""

import asyncio
import pytest
from datetime import datetime, timedelta

from freightpipe.app.core.exceptions import StoreError
from freightpipe.app.models.deals import TransportationMode
from freightpipe.app.models.filters import DealFilters
from freightpipe.app.services.analytics_service import AnalyticsService

MODES = ["ocean", "air", "trucking", "rail"]


class FakeDealStore:
    """Deal store answering counts from a (stage, mode) table."""

    def __init__(self, counts=None, fail_mode=None):
        self.counts = counts or {}
        self.fail_mode = fail_mode
        self.calls = []

    async def count_deals(self, filters: DealFilters) -> int:
        self.calls.append(filters)
        # Yield so that concurrently scheduled counts interleave
        await asyncio.sleep(0)
        if self.fail_mode is not None and filters.transportation_mode == self.fail_mode:
            raise StoreError("connection reset")
        return self.counts.get((filters.stage, filters.transportation_mode), 0)


class TestHistoricalWinRates:
    """Tests for per-mode historical win rates."""

    async def test_every_mode_is_present(self):
        store = FakeDealStore({("closed_won", "ocean"): 8, ("closed_lost", "ocean"): 2,
                               ("closed_won", "air"): 1, ("closed_lost", "air"): 3})
        service = AnalyticsService(store)

        win_rates = await service.get_historical_win_rates_by_mode()

        assert win_rates == {"ocean": 80, "air": 25, "trucking": 0, "rail": 0}

    async def test_all_counts_complete_before_returning(self):
        store = FakeDealStore()
        service = AnalyticsService(store)

        performance = await service.get_historical_performance_by_mode()

        assert list(performance) == MODES
        assert len(store.calls) == 8
        assert {(f.stage, f.transportation_mode) for f in store.calls} == {
            (stage, mode) for stage in ("closed_won", "closed_lost") for mode in MODES
        }

    async def test_counts_use_trailing_window(self):
        store = FakeDealStore()
        service = AnalyticsService(store)
        now = datetime(2024, 6, 30, 12, 0)

        await service.get_historical_win_rates_by_mode(now=now)

        for filters in store.calls:
            assert filters.min_date == now - timedelta(days=90)
            assert filters.max_date == now
            assert filters.sales_rep is None
            assert filters.min_value is None
            assert filters.max_value is None

    async def test_failure_yields_no_partial_table(self):
        store = FakeDealStore({("closed_won", "ocean"): 3}, fail_mode="rail")
        service = AnalyticsService(store)

        with pytest.raises(StoreError):
            await service.get_historical_win_rates_by_mode()

    async def test_window_excludes_old_deals(self, deal_store, deal_factory, seed_deals):
        await seed_deals([
            deal_factory("w1", stage="closed_won", transportation_mode="ocean", days_ago=5),
            deal_factory("w2", stage="closed_won", transportation_mode="ocean", days_ago=30),
            deal_factory("l1", stage="closed_lost", transportation_mode="ocean", days_ago=60),
            deal_factory("l2", stage="closed_lost", transportation_mode="ocean", days_ago=120),
            deal_factory("l3", stage="closed_lost", transportation_mode="air", days_ago=200),
            deal_factory("w3", stage="closed_won", transportation_mode="rail", days_ago=1),
        ])
        service = AnalyticsService(deal_store)

        win_rates = await service.get_historical_win_rates_by_mode()

        assert win_rates == {"ocean": 67, "air": 0, "trucking": 0, "rail": 100}


class TestComputeWinRate:
    """Tests for the filtered win-rate query."""

    @pytest.mark.parametrize(
        "won, lost, expected",
        [(5, 5, 50), (8, 2, 80), (3, 7, 30), (0, 0, 0), (10, 0, 100), (0, 10, 0)],
    )
    async def test_win_rate_from_counts(self, won, lost, expected):
        store = FakeDealStore({("closed_won", None): won, ("closed_lost", None): lost})
        service = AnalyticsService(store)

        result = await service.compute_win_rate()

        assert result["winRate"] == expected
        assert result["totalClosedDeals"] == won + lost
        assert result["closedWonCount"] == won
        assert result["closedLostCount"] == lost
        assert len(store.calls) == 2

    async def test_filters_are_passed_to_both_counts(self):
        store = FakeDealStore({("closed_won", "Air"): 2, ("closed_lost", "Air"): 1})
        service = AnalyticsService(store)

        result = await service.compute_win_rate(
            transportation_mode="Air",
            sales_rep="Jane",
            min_value="5000",
            max_value="25000",
            min_date="2024-01-01",
            max_date="2024-06-30"
        )

        assert result["winRate"] == 67
        assert result["filters"] == {
            "transportation_mode": "Air",
            "sales_rep": "Jane",
            "min_value": "5000",
            "max_value": "25000",
            "min_date": "2024-01-01",
            "max_date": "2024-06-30",
        }
        assert sorted(f.stage for f in store.calls) == ["closed_lost", "closed_won"]
        for filters in store.calls:
            assert filters.transportation_mode == "Air"
            assert filters.sales_rep == "Jane"
            assert filters.min_value == 5000
            assert filters.max_value == 25000
            assert filters.min_date == datetime(2024, 1, 1)

    async def test_empty_strings_are_echoed_and_kept(self):
        store = FakeDealStore()
        service = AnalyticsService(store)

        result = await service.compute_win_rate(transportation_mode="", sales_rep="", min_value="")

        assert result["filters"]["transportation_mode"] == ""
        assert result["filters"]["min_value"] == ""
        for filters in store.calls:
            assert filters.transportation_mode == ""
            assert filters.sales_rep == ""
            assert filters.min_value is None

    async def test_store_error_propagates(self):
        store = FakeDealStore(fail_mode="ocean")
        service = AnalyticsService(store)

        with pytest.raises(StoreError):
            await service.compute_win_rate(transportation_mode="ocean")


class TestForecastRevenue:
    """Tests for the revenue forecaster."""

    async def test_won_deals_only(self, deal_factory):
        store = FakeDealStore({("closed_won", "ocean"): 1, ("closed_lost", "ocean"): 9})
        service = AnalyticsService(store)
        deals = [
            deal_factory("w1", stage="closed_won", value=100),
            deal_factory("w2", stage="closed_won", value=200),
        ]

        assert await service.forecast_revenue(deals) == 300

    async def test_open_deal_blends_with_mode_history(self, deal_factory):
        store = FakeDealStore({("closed_won", "ocean"): 4, ("closed_lost", "ocean"): 1})
        service = AnalyticsService(store)
        deals = [deal_factory("o1", stage="negotiation", value=1000, probability=50)]

        # 1000 * (0.7 * 0.5 + 0.3 * 0.8)
        assert await service.forecast_revenue(deals) == 590

    async def test_mode_without_history_uses_deal_probability(self, deal_factory):
        store = FakeDealStore({("closed_won", "ocean"): 4, ("closed_lost", "ocean"): 1})
        service = AnalyticsService(store)
        deals = [
            deal_factory("o1", stage="proposal", value=1000, probability=50, transportation_mode="air"),
            deal_factory("o2", stage="proposal", value=1000, probability=30, transportation_mode="barge"),
        ]

        assert await service.forecast_revenue(deals) == 800

    async def test_mode_with_only_losses_blends_with_zero(self, deal_factory):
        store = FakeDealStore({("closed_lost", "rail"): 3})
        service = AnalyticsService(store)
        deals = [deal_factory("o1", stage="qualified", value=1000, probability=50, transportation_mode="rail")]

        assert await service.forecast_revenue(deals) == 350

    async def test_lost_deals_contribute_nothing(self, deal_factory):
        store = FakeDealStore()
        service = AnalyticsService(store)
        deals = [
            deal_factory("w1", stage="closed_won", value=500),
            deal_factory("l1", stage="closed_lost", value=100000, probability=90),
            deal_factory("o1", stage="prospect", value=1000, probability=25),
        ]

        assert await service.forecast_revenue(deals) == 750

    async def test_forecast_rounds_half_up(self, deal_factory):
        store = FakeDealStore()
        service = AnalyticsService(store)
        deals = [deal_factory("o1", stage="prospect", value=5, probability=50)]

        assert await service.forecast_revenue(deals) == 3

    async def test_empty_deal_list(self):
        service = AnalyticsService(FakeDealStore())

        assert await service.forecast_revenue([]) == 0

    async def test_store_error_propagates(self, deal_factory):
        service = AnalyticsService(FakeDealStore(fail_mode="air"))

        with pytest.raises(StoreError):
            await service.forecast_revenue([deal_factory("o1")])

    async def test_forecast_against_database(self, deal_store, deal_factory, seed_deals):
        await seed_deals([
            deal_factory(f"w{i}", stage="closed_won", transportation_mode="ocean", days_ago=10 + i)
            for i in range(4)
        ] + [
            deal_factory("l1", stage="closed_lost", transportation_mode="ocean", days_ago=20),
        ])
        service = AnalyticsService(deal_store)
        deals = [
            deal_factory("o1", stage="negotiation", value=1000, probability=50, transportation_mode="ocean"),
            deal_factory("w9", stage="closed_won", value=250),
        ]

        assert await service.forecast_revenue(deals) == 840


class TestDealPartitioning:
    """Tests for the stage helpers and defaults the forecaster relies on."""

    def test_stage_properties(self, deal_factory):
        won = deal_factory("w1", stage="closed_won")
        lost = deal_factory("l1", stage="closed_lost")
        open_deal = deal_factory("o1", stage="negotiation")

        assert won.is_won and won.is_closed
        assert not lost.is_won and lost.is_closed
        assert not open_deal.is_won and not open_deal.is_closed

    def test_default_modes_follow_transportation_mode(self):
        service = AnalyticsService(FakeDealStore())

        assert service.transportation_modes == [mode.value for mode in TransportationMode]
        assert service.transportation_modes == MODES
