"""
Freight Pipeline Stage Analytics
"""

from decimal import Decimal
from typing import Any, Dict, List, Sequence

from ..models.deals import Deal
from .win_rate import round_half_up


def group_deals_by_stage(deals: Sequence[Deal]) -> Dict[str, List[Deal]]:
    """Group deals by stage, keeping first-seen stage order and input order"""
    deals_by_stage: Dict[str, List[Deal]] = {}
    for deal in deals:
        deals_by_stage.setdefault(deal.stage, []).append(deal)
    return deals_by_stage


def get_stage_analytics(deals: Sequence[Deal]) -> Dict[str, Any]:
    """Count and share of deals in each stage.

    Percentages are taken against the full input, open and closed stages
    alike, so they may not sum to exactly 100 after rounding.
    """
    total_deals = len(deals)
    stage_analytics = {}

    for stage, stage_deals in group_deals_by_stage(deals).items():
        count = len(stage_deals)
        stage_analytics[stage] = {
            "deals": stage_deals,
            "count": count,
            "percentage": round_half_up(Decimal(100 * count) / Decimal(total_deals)) if total_deals > 0 else 0,
        }

    return {"total_deals": total_deals, "stage_analytics": stage_analytics}
