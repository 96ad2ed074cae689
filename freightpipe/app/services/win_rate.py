"""
Freight Pipeline Win-Rate Calculation
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union


def round_half_up(value: Union[int, float, Decimal]) -> int:
    """Round to the nearest integer, halves away from zero"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_win_rate(won_count: int, lost_count: int) -> int:
    """Percentage of closed deals that were won, 0 when nothing has closed"""
    total_closed = won_count + lost_count
    if total_closed <= 0:
        return 0
    return round_half_up(Decimal(100 * won_count) / Decimal(total_closed))


@dataclass(frozen=True)
class WinRateResult:
    """Won/lost counts and the derived win rate"""
    won_count: int
    lost_count: int

    @property
    def total_closed(self) -> int:
        return self.won_count + self.lost_count

    @property
    def win_rate(self) -> int:
        return calculate_win_rate(self.won_count, self.lost_count)

    def to_dict(self) -> dict:
        return {
            "winRate": self.win_rate,
            "totalClosedDeals": self.total_closed,
            "closedWonCount": self.won_count,
            "closedLostCount": self.lost_count,
        }
