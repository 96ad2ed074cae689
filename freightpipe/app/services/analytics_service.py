"""
Freight Pipeline Analytics Service
Win-rate queries, historical performance by mode and revenue forecasting
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Tuple

from prometheus_client import Counter
import structlog

from ..core.config import settings
from ..models.deals import Deal, DealStage, TransportationMode
from ..models.filters import DealFilters
from .deal_store import DealStore
from .win_rate import WinRateResult, round_half_up

logger = structlog.get_logger()

FORECAST_COUNT = Counter(
    'pipeline_forecasts_total',
    'Total revenue forecasts computed'
)


class AnalyticsService:
    """Service for pipeline win rates and revenue forecasts"""

    def __init__(
        self,
        store: DealStore,
        window_days: Optional[int] = None,
        transportation_modes: Optional[Sequence[str]] = None
    ):
        self.store = store
        self.window_days = window_days if window_days is not None else settings.forecast_window_days
        if transportation_modes is None:
            transportation_modes = settings.transportation_modes or [mode.value for mode in TransportationMode]
        self.transportation_modes = list(transportation_modes)

    async def count_closed(self, filters: DealFilters) -> WinRateResult:
        """Count won and lost deals for the same filters concurrently"""
        won_count, lost_count = await asyncio.gather(
            self.store.count_deals(filters.with_stage(DealStage.CLOSED_WON.value)),
            self.store.count_deals(filters.with_stage(DealStage.CLOSED_LOST.value)),
        )
        return WinRateResult(won_count=won_count, lost_count=lost_count)

    async def compute_win_rate(
        self,
        transportation_mode: Optional[str] = None,
        sales_rep: Optional[str] = None,
        min_value: Any = None,
        max_value: Any = None,
        min_date: Any = None,
        max_date: Any = None
    ) -> Dict[str, Any]:
        """Historical win rate for closed deals matching the given filters"""

        raw_filters = {
            "transportation_mode": transportation_mode,
            "sales_rep": sales_rep,
            "min_value": min_value,
            "max_value": max_value,
            "min_date": min_date,
            "max_date": max_date,
        }
        filters = DealFilters(**raw_filters)

        result = await self.count_closed(filters)

        logger.info(
            "Win rate computed",
            win_rate=result.win_rate,
            total_closed=result.total_closed,
            transportation_mode=transportation_mode,
            sales_rep=sales_rep
        )

        return {**result.to_dict(), "filters": raw_filters}

    def forecast_window(self, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """Trailing window used for historical win rates"""
        window_end = now or datetime.utcnow()
        return window_end - timedelta(days=self.window_days), window_end

    async def get_historical_performance_by_mode(
        self,
        now: Optional[datetime] = None
    ) -> Dict[str, WinRateResult]:
        """Won/lost counts per transportation mode over the trailing window.

        Every mode is counted concurrently and the call returns only once all
        of them have resolved. A failing count fails the whole call.
        """
        window_start, window_end = self.forecast_window(now)
        window = DealFilters(min_date=window_start, max_date=window_end)

        results = await asyncio.gather(*[
            self.count_closed(window.with_mode(mode))
            for mode in self.transportation_modes
        ])

        return dict(zip(self.transportation_modes, results))

    async def get_historical_win_rates_by_mode(
        self,
        now: Optional[datetime] = None
    ) -> Dict[str, int]:
        """Win rate percentage per transportation mode, 0 where nothing closed"""
        performance = await self.get_historical_performance_by_mode(now)
        return {mode: result.win_rate for mode, result in performance.items()}

    async def forecast_revenue(
        self,
        deals: Sequence[Deal],
        now: Optional[datetime] = None
    ) -> int:
        """Won revenue plus probability-weighted revenue of open deals"""

        won_deals = [deal for deal in deals if deal.is_won]
        closing_deals = [deal for deal in deals if not deal.is_closed]

        won_revenue = sum((Decimal(str(deal.value)) for deal in won_deals), Decimal(0))

        performance = await self.get_historical_performance_by_mode(now)

        deal_weight = Decimal(str(settings.deal_probability_weight))
        history_weight = Decimal(str(settings.historical_win_rate_weight))

        expected_revenue = Decimal(0)
        blended_count = 0
        for deal in closing_deals:
            deal_probability = Decimal(deal.probability) / 100
            mode_performance = performance.get(deal.transportation_mode)

            if mode_performance is not None and mode_performance.total_closed > 0:
                mode_win_rate = Decimal(mode_performance.win_rate) / 100
                probability = deal_weight * deal_probability + history_weight * mode_win_rate
                blended_count += 1
            else:
                probability = deal_probability

            expected_revenue += Decimal(str(deal.value)) * probability

        forecast = round_half_up(won_revenue + expected_revenue)
        FORECAST_COUNT.inc()

        logger.info(
            "Revenue forecast generated",
            forecast=forecast,
            won_deals=len(won_deals),
            closing_deals=len(closing_deals),
            blended_deals=blended_count,
            window_days=self.window_days
        )

        return forecast
