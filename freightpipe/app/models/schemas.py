"""
Freight Pipeline API Request/Response Models
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DealCreate(BaseModel):
    """Request model for ingesting a deal"""
    deal_id: str = Field(..., min_length=1, max_length=100)
    stage: str = Field(..., min_length=1, max_length=50)
    value: float = Field(..., ge=0, allow_inf_nan=False)
    probability: int = Field(..., ge=0, le=100)
    transportation_mode: str = Field(..., max_length=50)
    sales_rep: str = Field(..., max_length=200)
    created_date: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "deal_id": "DL-2024-0042",
                "stage": "negotiation",
                "value": 48000,
                "probability": 60,
                "transportation_mode": "ocean",
                "sales_rep": "Jane Smith",
                "created_date": "2024-05-14T09:30:00Z"
            }
        }


class DealResponse(BaseModel):
    """Response model for deal data"""
    deal_id: str
    stage: str
    value: float
    probability: int
    transportation_mode: str
    sales_rep: str
    created_date: datetime

    class Config:
        from_attributes = True


class DealSaveResponse(BaseModel):
    """Outcome of a deal ingestion attempt"""
    success: bool
    deal_id: Optional[str]
    error: Optional[Any] = None


class WinRateResponse(BaseModel):
    """Historical win rate for a filtered set of closed deals"""
    winRate: int
    totalClosedDeals: int
    closedWonCount: int
    closedLostCount: int
    filters: Dict[str, Any]


class ModeWinRatesResponse(BaseModel):
    """Historical win rate per transportation mode"""
    window_start: datetime
    window_end: datetime
    win_rates: Dict[str, int]


class StageBreakdown(BaseModel):
    """Deals in one stage"""
    deals: List[DealResponse]
    count: int
    percentage: int


class StageAnalyticsResponse(BaseModel):
    """Stage analytics for a list of deals"""
    totalDeals: int
    stageAnalytics: Dict[str, StageBreakdown]


class ForecastResponse(BaseModel):
    """Revenue forecast for a list of deals"""
    forecast: int
    dealCount: int
