"""
Freight Pipeline Deal Models
"""

from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, Integer, CheckConstraint
from enum import Enum

from ..core.database import Base


class DealStage(str, Enum):
    """Deal stage enumeration"""
    PROSPECT = "prospect"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


CLOSED_STAGES = (DealStage.CLOSED_WON.value, DealStage.CLOSED_LOST.value)


class TransportationMode(str, Enum):
    """Shipping modality of a deal"""
    OCEAN = "ocean"
    AIR = "air"
    TRUCKING = "trucking"
    RAIL = "rail"


class Deal(Base):
    """Deal model for freight sales opportunities"""
    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint("probability >= 0 AND probability <= 100", name="ck_deals_probability_range"),
        CheckConstraint("value >= 0", name="ck_deals_value_non_negative"),
    )

    deal_id = Column(String(100), primary_key=True)
    stage = Column(String(50), nullable=False, default=DealStage.PROSPECT.value, index=True)
    value = Column(Numeric(14, 2), nullable=False, default=0)
    probability = Column(Integer, nullable=False, default=10)
    transportation_mode = Column(String(50), nullable=False, index=True)
    sales_rep = Column(String(200), nullable=False)
    # Naive UTC
    created_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    @property
    def is_won(self) -> bool:
        """Check if deal is won"""
        return self.stage == DealStage.CLOSED_WON.value

    @property
    def is_closed(self) -> bool:
        """Check if deal is closed (won or lost)"""
        return self.stage in CLOSED_STAGES

    def __repr__(self):
        return f"<Deal(deal_id='{self.deal_id}', stage='{self.stage}', value={self.value})>"
