"""
Freight Pipeline Models
"""

from .deals import Deal, DealStage, TransportationMode, CLOSED_STAGES
from .filters import DealFilters

__all__ = [
    "Deal",
    "DealStage",
    "TransportationMode",
    "CLOSED_STAGES",
    "DealFilters",
]
