"""Venue capability contracts consumed by the trading controller."""

from abc import ABC, abstractmethod
from typing import List

from ..core.types import Balance, Order, OrderWithId, Trade, TradingPair


class Sniffer(ABC):
    """Market-data capability."""

    @abstractmethod
    async def all_the_best_orders(self, trading_pair: TradingPair, depth: int) -> List[Order]:
        """Best ``depth`` orders a trade on ``trading_pair`` can execute against, best first."""
        pass

    @abstractmethod
    async def get_my_orders(self, trading_pair: TradingPair) -> List[OrderWithId]:
        """Resting orders this account holds on ``trading_pair``."""
        pass

    @abstractmethod
    async def the_best_order(self, trading_pair: TradingPair) -> Order:
        """Single best order for ``trading_pair``."""
        pass


class Trader(ABC):
    """Execution capability."""

    @abstractmethod
    async def create_order(self, order: Order) -> Trade:
        """Place an order.

        Returns a MarketTrade when it filled immediately and a LimitTrade
        wrapping the resting order otherwise.
        """
        pass

    @abstractmethod
    async def delete_order(self, order_id: str) -> None:
        """Cancel a resting order."""
        pass


class Accountant(ABC):
    """Balance capability."""

    @abstractmethod
    async def ask(self, coin: str) -> Balance:
        """Free balance of ``coin``."""
        pass


class Venue:
    """A named trading venue and its three capabilities."""

    def __init__(self, name: str, sniffer: Sniffer, trader: Trader, accountant: Accountant):
        self.name = name
        self.sniffer = sniffer
        self.trader = trader
        self.accountant = accountant

    async def close(self) -> None:
        """Release any connections held by the capabilities."""
        for capability in {id(c): c for c in (self.sniffer, self.trader, self.accountant)}.values():
            close = getattr(capability, "close", None)
            if close is not None:
                await close()

    def __repr__(self) -> str:
        return f"Venue(name={self.name!r})"
