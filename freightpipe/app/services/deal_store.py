"""
Freight Pipeline Deal Store
Persistence boundary for deal counts, listings and ingestion
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from ..core.database import AsyncSessionLocal
from ..core.exceptions import StoreError
from ..models.deals import Deal
from ..models.filters import DealFilters
from ..models.schemas import DealCreate

logger = structlog.get_logger()


def _to_naive_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class DealStore:
    """Store handle for deal queries.

    Every query runs in its own short-lived session taken from
    ``session_factory``, so independent counts can be awaited concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def count_deals(self, filters: DealFilters) -> int:
        """Count deals matching every present predicate in ``filters``"""

        if filters.stage is None:
            raise ValueError("A stage is required to count deals")

        query = (
            select(func.count())
            .select_from(Deal)
            .where(*self._build_conditions(filters))
        )

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                count = result.scalar_one()
        except SQLAlchemyError as e:
            logger.error("Deal count failed", stage=filters.stage, error=str(e))
            raise StoreError(f"Failed to count deals: {e}") from e

        logger.debug(
            "Deals counted",
            stage=filters.stage,
            transportation_mode=filters.transportation_mode,
            count=count
        )
        return count

    async def list_deals(self, filters: Optional[DealFilters] = None) -> List[Deal]:
        """List deals matching ``filters``, oldest first"""

        query = select(Deal).order_by(Deal.created_date, Deal.deal_id)
        if filters is not None:
            query = query.where(*self._build_conditions(filters))

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                deals = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Deal listing failed", error=str(e))
            raise StoreError(f"Failed to list deals: {e}") from e

        return deals

    async def save_deal(self, deal_data: Any) -> Dict[str, Any]:
        """Validate and persist a single deal, rejecting duplicate deal_ids"""

        raw_deal_id = deal_data.get("deal_id") if isinstance(deal_data, dict) else None
        if not isinstance(raw_deal_id, str):
            raw_deal_id = None

        try:
            payload = DealCreate.model_validate(deal_data)
        except ValidationError as e:
            logger.info("Deal rejected by validation", deal_id=raw_deal_id)
            return {
                "success": False,
                "error": json.loads(e.json(include_url=False)),
                "deal_id": raw_deal_id
            }

        deal = Deal(
            deal_id=payload.deal_id,
            stage=payload.stage,
            value=payload.value,
            probability=payload.probability,
            transportation_mode=payload.transportation_mode,
            sales_rep=payload.sales_rep,
            created_date=_to_naive_utc(payload.created_date)
        )

        try:
            async with self.session_factory() as session:
                existing = await session.get(Deal, payload.deal_id)
                if existing is not None:
                    return {
                        "success": False,
                        "error": "Duplicate deal_id",
                        "deal_id": payload.deal_id
                    }

                session.add(deal)
                await session.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same deal_id
            return {
                "success": False,
                "error": "Duplicate deal_id",
                "deal_id": payload.deal_id
            }
        except SQLAlchemyError as e:
            logger.error("Deal save failed", deal_id=payload.deal_id, error=str(e))
            return {
                "success": False,
                "error": "Internal server error",
                "deal_id": payload.deal_id
            }

        logger.info(
            "Deal saved",
            deal_id=payload.deal_id,
            stage=payload.stage,
            transportation_mode=payload.transportation_mode
        )
        return {"success": True, "deal_id": payload.deal_id, "error": None}

    @staticmethod
    def _build_conditions(filters: DealFilters) -> list:
        """Translate present filter fields into AND-ed column predicates"""

        conditions = []

        if filters.stage is not None:
            conditions.append(Deal.stage == filters.stage)

        # Empty strings are real constraints, only None is skipped
        if filters.transportation_mode is not None:
            conditions.append(Deal.transportation_mode == filters.transportation_mode)

        if filters.sales_rep is not None:
            conditions.append(Deal.sales_rep == filters.sales_rep)

        if filters.min_value is not None:
            conditions.append(Deal.value >= filters.min_value)

        if filters.max_value is not None:
            conditions.append(Deal.value <= filters.max_value)

        if filters.min_date is not None:
            conditions.append(Deal.created_date >= filters.min_date)

        if filters.max_date is not None:
            conditions.append(Deal.created_date <= filters.max_date)

        return conditions


def get_deal_store() -> DealStore:
    """Dependency to get the deal store"""
    return DealStore(AsyncSessionLocal)
