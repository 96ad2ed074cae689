"""
Freight Pipeline Deal API Endpoints
Deal ingestion, win rates, stage analytics and revenue forecasts
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, status, Query
import structlog

from ..models.filters import DealFilters
from ..models.schemas import (
    DealResponse,
    DealSaveResponse,
    ForecastResponse,
    ModeWinRatesResponse,
    StageAnalyticsResponse,
    WinRateResponse,
)
from ..services.analytics_service import AnalyticsService
from ..services.deal_store import DealStore, get_deal_store
from ..services.stage_analytics import get_stage_analytics

logger = structlog.get_logger()
router = APIRouter(prefix="/deals", tags=["deals"])


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


@router.post("", response_model=DealSaveResponse)
async def create_deal(
    deal: Dict[str, Any] = Body(...),
    store: DealStore = Depends(get_deal_store)
):
    """Validate and save a single deal"""
    try:
        return await store.save_deal(deal)

    except Exception as e:
        logger.error("Deal creation failed", deal_id=deal.get("deal_id"), error=str(e))
        raise _internal_error()


@router.get("/historical-perf", response_model=WinRateResponse)
async def get_historical_performance(
    transportation_mode: Optional[str] = Query(None, description="Exact transportation mode"),
    sales_rep: Optional[str] = Query(None, description="Exact sales rep name"),
    min_value: Optional[str] = Query(None, description="Minimum deal value"),
    max_value: Optional[str] = Query(None, description="Maximum deal value"),
    min_date: Optional[str] = Query(None, description="Earliest created date (ISO-8601)"),
    max_date: Optional[str] = Query(None, description="Latest created date (ISO-8601)"),
    store: DealStore = Depends(get_deal_store)
):
    """Win rate of closed deals matching the given filters"""
    try:
        analytics_service = AnalyticsService(store)

        return await analytics_service.compute_win_rate(
            transportation_mode=transportation_mode,
            sales_rep=sales_rep,
            min_value=min_value,
            max_value=max_value,
            min_date=min_date,
            max_date=max_date
        )

    except Exception as e:
        logger.error("Error in GET /deals/historical-perf", error=str(e))
        raise _internal_error()


@router.get("/historical-perf/by-mode", response_model=ModeWinRatesResponse)
async def get_historical_performance_by_mode(
    store: DealStore = Depends(get_deal_store)
):
    """Win rate per transportation mode over the trailing forecast window"""
    try:
        analytics_service = AnalyticsService(store)

        window_start, window_end = analytics_service.forecast_window()
        win_rates = await analytics_service.get_historical_win_rates_by_mode(now=window_end)

        return {
            "window_start": window_start,
            "window_end": window_end,
            "win_rates": win_rates
        }

    except Exception as e:
        logger.error("Historical win rates by mode failed", error=str(e))
        raise _internal_error()


@router.get("/analytics/stages", response_model=StageAnalyticsResponse)
async def get_stage_breakdown(
    sales_rep: Optional[str] = Query(None, description="Exact sales rep name"),
    min_date: Optional[str] = Query(None, description="Earliest created date (ISO-8601)"),
    max_date: Optional[str] = Query(None, description="Latest created date (ISO-8601)"),
    store: DealStore = Depends(get_deal_store)
):
    """Deals grouped by stage with counts and percentages"""
    try:
        deals = await store.list_deals(
            DealFilters(sales_rep=sales_rep, min_date=min_date, max_date=max_date)
        )
        analytics = get_stage_analytics(deals)

        return {
            "totalDeals": analytics["total_deals"],
            "stageAnalytics": {
                stage: {
                    "deals": [DealResponse.model_validate(deal) for deal in breakdown["deals"]],
                    "count": breakdown["count"],
                    "percentage": breakdown["percentage"]
                }
                for stage, breakdown in analytics["stage_analytics"].items()
            }
        }

    except Exception as e:
        logger.error("Stage analytics failed", error=str(e))
        raise _internal_error()


@router.get("/analytics/forecast", response_model=ForecastResponse)
async def get_revenue_forecast(
    sales_rep: Optional[str] = Query(None, description="Exact sales rep name"),
    min_date: Optional[str] = Query(None, description="Earliest created date (ISO-8601)"),
    max_date: Optional[str] = Query(None, description="Latest created date (ISO-8601)"),
    store: DealStore = Depends(get_deal_store)
):
    """Revenue forecast for the selected deals"""
    try:
        deals = await store.list_deals(
            DealFilters(sales_rep=sales_rep, min_date=min_date, max_date=max_date)
        )
        analytics_service = AnalyticsService(store)

        forecast = await analytics_service.forecast_revenue(deals)

        return {"forecast": forecast, "dealCount": len(deals)}

    except Exception as e:
        logger.error("Revenue forecast failed", error=str(e))
        raise _internal_error()
