"""
Freight Pipeline Deal Filters
"""

import math
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
import structlog

logger = structlog.get_logger()


def _coerce_number(field: str, value: Any) -> Optional[float]:
    """Parse a numeric filter, dropping values that are not finite numbers"""
    if value is None:
        return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan

    if isinstance(value, bool) or not math.isfinite(number):
        # Known quirk: a malformed number filter is ignored instead of rejected
        logger.warning("Ignoring non-numeric value filter", field=field, raw_value=value)
        return None

    return number


def _coerce_bound(field: str, value: Any, end_of_day: bool) -> Optional[datetime]:
    """Parse an inclusive date bound into a naive UTC datetime"""
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.max if end_of_day else time.min)
    else:
        text = str(value).strip()
        try:
            if len(text) == 10:
                parsed = datetime.combine(
                    date.fromisoformat(text),
                    time.max if end_of_day else time.min
                )
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Ignoring unparseable date filter", field=field, raw_value=value)
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)

    return parsed


class DealFilters(BaseModel):
    """Immutable set of optional deal predicates.

    ``None`` means "no constraint". Any other value, including an empty
    string, is a literal constraint. ``stage`` must be set before the
    filters are handed to a count query.
    """
    stage: Optional[str] = None
    transportation_mode: Optional[str] = None
    sales_rep: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_date: Optional[datetime] = None
    max_date: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("min_value", "max_value", mode="before")
    @classmethod
    def _parse_value_bound(cls, value, info):
        return _coerce_number(info.field_name, value)

    @field_validator("min_date", mode="before")
    @classmethod
    def _parse_min_date(cls, value):
        return _coerce_bound("min_date", value, end_of_day=False)

    @field_validator("max_date", mode="before")
    @classmethod
    def _parse_max_date(cls, value):
        return _coerce_bound("max_date", value, end_of_day=True)

    def with_stage(self, stage: str) -> "DealFilters":
        """Return a copy narrowed to a single stage"""
        return self.model_copy(update={"stage": stage})

    def with_mode(self, transportation_mode: str) -> "DealFilters":
        """Return a copy narrowed to a single transportation mode"""
        return self.model_copy(update={"transportation_mode": transportation_mode})
