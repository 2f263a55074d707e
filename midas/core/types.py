"""
Shared types and data structures for the trading controller.
This file breaks circular imports between modules.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, List, TypeVar, Union

# Amounts at or below this are treated as fully consumed.
AMOUNT_EPSILON = 1e-9


class Side(Enum):
    """Direction of a trading pair."""
    BUY = "buy"
    SELL = "sell"

    def reversed(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class Target(Enum):
    """Order type: immediate execution or resting order."""
    MARKET = "market"
    LIMIT = "limit"


@dataclass(frozen=True)
class CoinPair:
    """Base/quote coin identifiers, e.g. TON/USDT."""
    base: str
    quote: str

    @property
    def symbol(self) -> str:
        return f"{self.base}/{self.quote}"

    @classmethod
    def from_symbol(cls, symbol: str) -> "CoinPair":
        base, _, quote = symbol.partition("/")
        if not base or not quote:
            raise ValueError(f"Invalid coin pair symbol: {symbol!r}")
        return cls(base=base, quote=quote)

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class TradingPair:
    """Coin pair together with a side and a target."""
    coins: CoinPair
    side: Side
    target: Target

    def reversed_side(self) -> "TradingPair":
        """Same coins and target, opposite side."""
        return replace(self, side=self.side.reversed())

    def coin_to_spend(self) -> str:
        """Coin whose balance funds an order on this pair."""
        if self.side is Side.BUY:
            return self.coins.quote
        return self.coins.base

    def __str__(self) -> str:
        return f"{self.target.value} {self.side.value} {self.coins.symbol}"


@dataclass(frozen=True)
class Order:
    """A proposed or quoted order without venue identity."""
    trading_pair: TradingPair
    price: float
    amount: float


@dataclass(frozen=True)
class OrderWithId:
    """An order resting on a venue under a venue-assigned id."""
    id: str
    trading_pair: TradingPair
    price: float
    amount: float

    def to_order(self) -> Order:
        return Order(self.trading_pair, self.price, self.amount)


@dataclass(frozen=True)
class MarketTrade:
    """An immediately filled trade."""
    id: str
    trading_pair: TradingPair
    price: float
    amount: float


@dataclass(frozen=True)
class LimitTrade:
    """A resting order, or the filled portion of one."""
    order: OrderWithId

    @property
    def id(self) -> str:
        return self.order.id

    @property
    def trading_pair(self) -> TradingPair:
        return self.order.trading_pair

    @property
    def price(self) -> float:
        return self.order.price

    @property
    def amount(self) -> float:
        return self.order.amount


Trade = Union[MarketTrade, LimitTrade]


@dataclass(frozen=True)
class Balance:
    """Free balance of a coin plus the fee rate applied when spending it."""
    amount: float
    fee: float = 0.0

    def with_fee(self) -> float:
        return self.amount * (1.0 - self.fee)

    def charged(self, fee: float) -> "Balance":
        return replace(self, fee=fee)


TOrder = TypeVar("TOrder", Order, OrderWithId)


@dataclass
class OrderEntity(Generic[TOrder]):
    """Associates an order with the venue holding it."""
    venue_id: str
    order: TOrder


@dataclass
class OrdersStorage(Generic[TOrder]):
    """Buy-side and sell-side order collections for one coin pair."""
    coins: CoinPair
    buy_stock: List[OrderEntity[TOrder]] = field(default_factory=list)
    sell_stock: List[OrderEntity[TOrder]] = field(default_factory=list)

    def stock(self, side: Side) -> List[OrderEntity[TOrder]]:
        return self.buy_stock if side is Side.BUY else self.sell_stock

    def clear(self) -> None:
        self.buy_stock.clear()
        self.sell_stock.clear()

    def __len__(self) -> int:
        return len(self.buy_stock) + len(self.sell_stock)
