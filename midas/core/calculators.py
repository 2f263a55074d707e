"""Price, profit and amount calculators used by the Reseller and LimitMaster."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .errors import ConfigurationError
from .types import Balance, Order


class PriceCalculator:
    """Offsets a market price by a fixed profit margin."""

    def __init__(self, profit: float):
        if not 0.0 <= profit < 1.0:
            raise ConfigurationError(f"Profit margin must be in [0, 1), got {profit}")
        self.profit = profit

    def low(self, price: float) -> float:
        """Bid price placed below the reference market price."""
        return price * (1.0 - self.profit)

    def high(self, price: float) -> float:
        """Ask price placed above the reference market price."""
        return price * (1.0 + self.profit)


class ProfitCalculator:
    """Margin of a sell leg over a buy leg."""

    def calculate(self, direct_order: Order, reversed_order: Order) -> Optional[float]:
        return self.evaluate(direct_order.price, reversed_order.price)

    def evaluate(self, sell_price: float, buy_price: float) -> Optional[float]:
        """Return 1 - buy/sell, or None when selling below the buy price."""
        if sell_price >= buy_price:
            return 1.0 - buy_price / sell_price
        return None


class AmountKind(Enum):
    """Which constraint bounded a single-leg amount."""
    PRICE_BASED = "price_based"
    BALANCE_BASED = "balance_based"


@dataclass(frozen=True)
class Amount:
    value: float
    kind: AmountKind

    @classmethod
    def price_based(cls, value: float) -> "Amount":
        return cls(value, AmountKind.PRICE_BASED)

    @classmethod
    def balance_based(cls, value: float) -> "Amount":
        return cls(value, AmountKind.BALANCE_BASED)


class AmountCalculator:
    """Turns order sizes and balances into a safely tradable quantity.

    ``fee`` is the fraction withheld from a balance before it is spent and
    ``min_amount_threshold`` is the smallest quantity worth trading.
    """

    def __init__(self, min_amount_threshold: float, fee: float):
        if not 0.0 <= fee < 1.0:
            raise ConfigurationError(f"Fee must be in [0, 1), got {fee}")
        if min_amount_threshold < 0.0:
            raise ConfigurationError(
                f"Minimum amount threshold must be non-negative, got {min_amount_threshold}")
        self.min_amount_threshold = min_amount_threshold
        self.fee = fee

    def calculate(self, direct_order: Order, direct_balance: float,
                  reversed_order: Order, reversed_balance: float) -> Optional[Tuple[float, float]]:
        """Allocate both legs of a two-sided trade at equal notional value.

        Returns ``(direct_amount, reversed_amount)`` or None when either leg
        does not exceed the minimum threshold.
        """
        balance_cap = min(direct_balance, reversed_balance)
        size_cap = min(direct_order.amount, reversed_order.amount)
        if balance_cap <= size_cap:
            max_amount = balance_cap * (1.0 - self.fee)
        else:
            max_amount = size_cap

        if direct_order.price > reversed_order.price:
            result = (reversed_order.price * max_amount / direct_order.price, max_amount)
        else:
            result = (max_amount, direct_order.price * max_amount / reversed_order.price)

        if result[0] > self.min_amount_threshold and result[1] > self.min_amount_threshold:
            return result
        return None

    def evaluate(self, order_amount: float, balance: Balance) -> Optional[Amount]:
        """Size one leg against a single venue balance."""
        balance_with_fee = balance.with_fee()
        if order_amount < balance_with_fee:
            if order_amount >= self.min_amount_threshold:
                return Amount.price_based(order_amount)
            return None
        if balance_with_fee >= self.min_amount_threshold:
            return Amount.balance_based(balance_with_fee)
        return None
