"""In-memory paper venue with a consumable order book and balances."""

import itertools
from typing import Dict, List, Optional, Tuple

from loguru import logger

from ..core.errors import OrderRejectedError, VenueError
from ..core.types import (
    AMOUNT_EPSILON, Balance, CoinPair, LimitTrade, MarketTrade, Order, OrderWithId,
    Side, Target, Trade, TradingPair,
)
from .base import Accountant, Sniffer, Trader, Venue

Level = Tuple[float, float]  # (price, amount)


class PaperExchange(Sniffer, Trader, Accountant):
    """Simulated venue implementing all three capabilities.

    ``bids`` are resting buyers a sell executes against; ``asks`` are resting
    sellers a buy executes against. Market orders consume those levels; limit
    orders rest until :meth:`fill_order` or :meth:`delete_order`.
    """

    def __init__(self, name: str, coins: CoinPair,
                 bids: Optional[List[Level]] = None,
                 asks: Optional[List[Level]] = None,
                 balances: Optional[Dict[str, float]] = None,
                 fee: float = 0.0):
        self.name = name
        self.coins = coins
        self.bids: List[List[float]] = [[p, a] for p, a in bids or []]
        self.asks: List[List[float]] = [[p, a] for p, a in asks or []]
        self.balances: Dict[str, float] = dict(balances or {})
        self.fee = fee
        self.resting: Dict[str, OrderWithId] = {}
        self.created_orders: List[Order] = []
        self.deleted_orders: List[str] = []
        self._ids = itertools.count(1)

    def _levels(self, side: Side) -> List[List[float]]:
        """Levels an order on ``side`` executes against, best first."""
        if side is Side.SELL:
            self.bids.sort(key=lambda level: level[0], reverse=True)
            return self.bids
        self.asks.sort(key=lambda level: level[0])
        return self.asks

    def _check_pair(self, trading_pair: TradingPair) -> None:
        if trading_pair.coins != self.coins:
            raise VenueError(f"{self.name} does not trade {trading_pair.coins}", self.name)

    def _next_id(self) -> str:
        return f"{self.name}-{next(self._ids)}"

    def _credit(self, coin: str, amount: float) -> None:
        self.balances[coin] = self.balances.get(coin, 0.0) + amount

    def _debit(self, coin: str, amount: float) -> None:
        available = self.balances.get(coin, 0.0)
        if available + AMOUNT_EPSILON < amount:
            raise OrderRejectedError(
                f"Insufficient {coin} on {self.name}: need {amount}, have {available}", self.name)
        self.balances[coin] = available - amount

    # Sniffer

    async def all_the_best_orders(self, trading_pair: TradingPair, depth: int) -> List[Order]:
        self._check_pair(trading_pair)
        return [Order(trading_pair, price, amount)
                for price, amount in self._levels(trading_pair.side)[:depth]
                if amount > AMOUNT_EPSILON]

    async def get_my_orders(self, trading_pair: TradingPair) -> List[OrderWithId]:
        self._check_pair(trading_pair)
        return [order for order in self.resting.values()
                if order.trading_pair.side is trading_pair.side]

    async def the_best_order(self, trading_pair: TradingPair) -> Order:
        orders = await self.all_the_best_orders(trading_pair, 1)
        if not orders:
            raise VenueError(f"No orders for {trading_pair} on {self.name}", self.name)
        return orders[0]

    # Trader

    async def create_order(self, order: Order) -> Trade:
        self._check_pair(order.trading_pair)
        self.created_orders.append(order)
        if order.trading_pair.target is Target.LIMIT:
            return self._rest(order)
        return self._execute(order)

    def _rest(self, order: Order) -> LimitTrade:
        pair = order.trading_pair
        if pair.side is Side.BUY:
            self._debit(pair.coins.quote, order.amount * order.price)
        else:
            self._debit(pair.coins.base, order.amount)
        resting = OrderWithId(self._next_id(), pair, order.price, order.amount)
        self.resting[resting.id] = resting
        logger.debug(f"{self.name}: resting {pair} {order.amount}@{order.price} as {resting.id}")
        return LimitTrade(resting)

    def _execute(self, order: Order) -> MarketTrade:
        pair = order.trading_pair
        remaining = order.amount
        fills: List[Tuple[List[float], float]] = []
        for level in self._levels(pair.side):
            if remaining <= AMOUNT_EPSILON:
                break
            price, available = level
            if pair.side is Side.SELL and price < order.price:
                break
            if pair.side is Side.BUY and price > order.price:
                break
            taken = min(available, remaining)
            fills.append((level, taken))
            remaining -= taken

        filled = sum(taken for _, taken in fills)
        notional = sum(level[0] * taken for level, taken in fills)
        if filled <= AMOUNT_EPSILON:
            raise OrderRejectedError(f"No liquidity for {pair} at {order.price} on {self.name}", self.name)

        # Balances first so a rejected order leaves the book untouched
        if pair.side is Side.SELL:
            self._debit(pair.coins.base, filled)
            self._credit(pair.coins.quote, notional * (1.0 - self.fee))
        else:
            self._debit(pair.coins.quote, notional)
            self._credit(pair.coins.base, filled * (1.0 - self.fee))

        for level, taken in fills:
            level[1] -= taken
        if pair.side is Side.SELL:
            self.bids = [level for level in self.bids if level[1] > AMOUNT_EPSILON]
        else:
            self.asks = [level for level in self.asks if level[1] > AMOUNT_EPSILON]
        trade = MarketTrade(self._next_id(), pair, notional / filled, filled)
        logger.debug(f"{self.name}: executed {pair} {filled}@{trade.price}")
        return trade

    async def delete_order(self, order_id: str) -> None:
        order = self.resting.pop(order_id, None)
        if order is None:
            raise VenueError(f"Unknown order {order_id} on {self.name}", self.name)
        pair = order.trading_pair
        if pair.side is Side.BUY:
            self._credit(pair.coins.quote, order.amount * order.price)
        else:
            self._credit(pair.coins.base, order.amount)
        self.deleted_orders.append(order_id)

    def fill_order(self, order_id: str, amount: float) -> float:
        """Simulate a counterparty filling part of a resting order.

        Returns the amount actually filled.
        """
        order = self.resting[order_id]
        filled = min(amount, order.amount)
        pair = order.trading_pair
        if pair.side is Side.BUY:
            self._credit(pair.coins.base, filled * (1.0 - self.fee))
        else:
            self._credit(pair.coins.quote, filled * order.price * (1.0 - self.fee))
        remaining = order.amount - filled
        if remaining <= AMOUNT_EPSILON:
            del self.resting[order_id]
        else:
            self.resting[order_id] = OrderWithId(order.id, pair, order.price, remaining)
        return filled

    # Accountant

    async def ask(self, coin: str) -> Balance:
        return Balance(amount=self.balances.get(coin, 0.0))


def paper_venue(exchange: PaperExchange) -> Venue:
    """Wrap a paper exchange as a venue."""
    return Venue(exchange.name, exchange, exchange, exchange)
