"""Inventory-tracking arbitrage matcher.

Executed trades become inventory held per coin pair and price level. Each
iteration scans the venues for a counter-order that releases some of that
inventory at a profit and the venue's balance can fund.
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from loguru import logger

from .calculators import AmountCalculator, ProfitCalculator
from .errors import UnexpectedOrderOutcomeError, UnsupportedTradeError
from .filters import LowAmountFilter
from .policy import FailurePolicies
from .types import (
    AMOUNT_EPSILON, Balance, CoinPair, LimitTrade, MarketTrade, Order, Side, Target, Trade,
    TradingPair,
)
from .utils import SKIPPED, call_with_policy, format_percentage, to_base_amount

if TYPE_CHECKING:
    from ..venues.base import Venue
    from ..venues.manager import VenueManager


@dataclass
class Entry:
    """Inventory held at one price level."""
    price: float
    amount: float

    def incremented(self, amount: float) -> None:
        self.amount += amount

    def decremented(self, amount: float) -> None:
        self.amount -= amount


Storage = Dict[CoinPair, List[Entry]]


def accept_new_item(storage: Storage, coins: CoinPair, price: float, amount: float) -> None:
    """Aggregate ``amount`` into the entry at ``price`` or append a new one."""
    entries = storage.setdefault(coins, [])
    for entry in entries:
        if entry.price == price:
            entry.incremented(amount)
            return
    entries.append(Entry(price, amount))


class Reseller:
    """Converts held inventory into completed counter-trades."""

    def __init__(self, venues: "VenueManager",
                 amount_calculator: AmountCalculator,
                 low_amount_filter: LowAmountFilter,
                 min_profit: float,
                 buy_storage: Optional[Storage] = None,
                 sell_storage: Optional[Storage] = None,
                 accept_limit_fills: bool = False,
                 depth: int = 5,
                 policies: Optional[FailurePolicies] = None,
                 timeout: Optional[float] = None):
        self.venues = venues
        self.amount_calculator = amount_calculator
        self.low_amount_filter = low_amount_filter
        self.profit_calculator = ProfitCalculator()
        self.min_profit = min_profit
        self.buy_storage: Storage = buy_storage if buy_storage is not None else {}
        self.sell_storage: Storage = sell_storage if sell_storage is not None else {}
        self.accept_limit_fills = accept_limit_fills
        self.depth = depth
        self.policies = policies or FailurePolicies()
        self.timeout = timeout
        self._lock = asyncio.Lock()

    def storage(self, side: Side) -> Storage:
        return self.buy_storage if side is Side.BUY else self.sell_storage

    def total_amount(self, coins: CoinPair, side: Side) -> float:
        """Amount held for ``coins`` on ``side`` across all price levels."""
        return sum(entry.amount for entry in self.storage(side).get(coins, []))

    def accept_trade(self, trade: Trade) -> None:
        """Add an executed trade to the inventory of its side."""
        if isinstance(trade, LimitTrade) and not self.accept_limit_fills:
            raise UnsupportedTradeError(f"Limit fills are not accepted: {trade.id}")
        pair = trade.trading_pair
        accept_new_item(self.storage(pair.side), pair.coins, trade.price, trade.amount)
        logger.debug(f"Accepted {pair} {trade.amount}@{trade.price} into inventory")

    async def iterate(self) -> Optional[Trade]:
        """Execute at most one profitable counter-trade.

        Venues are tried in order, buy inventory before sell inventory.
        Returns None when nothing is worth trading this cycle.
        """
        result = await self.resell()
        return result[1] if result else None

    async def resell(self) -> Optional[Tuple[str, Trade]]:
        """Same as :meth:`iterate` but also names the venue that executed."""
        async with self._lock:
            for venue_id, venue in self.venues:
                trade = await self.iterate_market(venue_id, venue, Side.BUY)
                if trade is None:
                    trade = await self.iterate_market(venue_id, venue, Side.SELL)
                if trade is not None:
                    return venue_id, trade
            logger.debug("No good orders to trade")
            return None

    async def iterate_market(self, venue_id: str, venue: "Venue", inventory_side: Side) -> Optional[Trade]:
        """Try to release ``inventory_side`` inventory on one venue."""
        storage = self.storage(inventory_side)
        for coins in list(storage.keys()):
            entries = storage.get(coins)
            if not entries:
                continue
            trading_pair = TradingPair(coins, inventory_side, Target.MARKET).reversed_side()

            balance = await call_with_policy(
                venue.accountant.ask(trading_pair.coin_to_spend()),
                venue_id, "balance query", self.policies.reseller_balance, self.timeout)
            if balance is SKIPPED:
                continue
            orders = await call_with_policy(
                venue.sniffer.all_the_best_orders(trading_pair, self.depth),
                venue_id, "best orders query", self.policies.reseller_market_data, self.timeout)
            if orders is SKIPPED:
                continue
            orders = self.low_amount_filter.filter(orders)
            if not orders:
                logger.debug(f"No orders above dust for {trading_pair} on {venue_id}")
                continue
            best_order = orders[0]

            entry = self._first_profitable_entry(entries, inventory_side, best_order.price)
            if entry is None:
                continue

            spendable = to_base_amount(trading_pair, best_order.price, balance.amount)
            amount = self.amount_calculator.evaluate(
                min(best_order.amount, entry.amount),
                Balance(spendable).charged(self.amount_calculator.fee))
            if amount is None:
                logger.debug(f"No viable amount for {trading_pair} on {venue_id}")
                continue

            order = Order(trading_pair, best_order.price, amount.value)
            trade = await call_with_policy(
                venue.trader.create_order(order),
                venue_id, "order placement", self.policies.reseller_execution, self.timeout)
            if trade is SKIPPED:
                continue
            if not isinstance(trade, MarketTrade):
                raise UnexpectedOrderOutcomeError(
                    f"{venue_id} answered a market order on {trading_pair} with {trade!r}")
            if trade.amount <= AMOUNT_EPSILON:
                logger.warning(f"Market order {trade.id} on {venue_id} executed nothing")
                continue

            entry.decremented(trade.amount)
            if entry.amount <= AMOUNT_EPSILON:
                entries.remove(entry)
                if not entries:
                    del storage[coins]
            logger.info(
                f"Resold {trade.amount} {coins.base} at {trade.price} against entry at "
                f"{entry.price} on {venue_id}")
            self.accept_trade(trade)
            return trade
        return None

    def _first_profitable_entry(self, entries: List[Entry], inventory_side: Side,
                                price: float) -> Optional[Entry]:
        for entry in entries:
            if inventory_side is Side.BUY:
                profit = self.profit_calculator.evaluate(price, entry.price)
            else:
                profit = self.profit_calculator.evaluate(entry.price, price)
            if profit is not None and profit >= self.min_profit:
                logger.debug(f"Entry at {entry.price} clears {format_percentage(profit)} against {price}")
                return entry
        return None
