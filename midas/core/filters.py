"""Order-book filters."""

from dataclasses import dataclass
from typing import List

from .types import Order


@dataclass(frozen=True)
class LowAmountFilter:
    """Drops dust orders whose amount does not exceed ``low_amount``."""
    low_amount: float

    def filter(self, orders: List[Order]) -> List[Order]:
        return [order for order in orders if order.amount > self.low_amount]
