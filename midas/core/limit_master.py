"""Limit Master

Keeps one resting limit order per venue per side quoted near the live market
price and detects fills against the previously placed quote set.

There are two stages:

* check: diff the venues' current resting orders against the last known
  state; every disappeared or shrunk order yields a limit-fill trade.
* update: cancel everything, snapshot the best market orders of every venue,
  then re-quote each side on every venue with a margin-adjusted price and a
  balance-bounded amount.
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from loguru import logger

from .calculators import AmountCalculator, PriceCalculator
from .cancellation import OrderCanceller
from .errors import CancellationError, UnexpectedOrderOutcomeError
from .policy import FailurePolicies, FailurePolicy
from .types import (
    AMOUNT_EPSILON, Balance, CoinPair, LimitTrade, Order, OrderEntity, OrdersStorage,
    OrderWithId, Side, Target, Trade, TradingPair,
)
from .utils import SKIPPED, call_with_policy, to_base_amount

if TYPE_CHECKING:
    from ..venues.base import Venue
    from ..venues.manager import VenueManager


@dataclass
class Update:
    """Orders placed by one update cycle, per quoted side."""
    buy: List[OrderEntity[OrderWithId]] = field(default_factory=list)
    sell: List[OrderEntity[OrderWithId]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.buy) + len(self.sell)


class LimitMaster:
    """Manages this account's resting limit orders on one coin pair."""

    def __init__(self, coins: CoinPair, venues: "VenueManager",
                 price_calculator: PriceCalculator,
                 amount_calculator: AmountCalculator,
                 depth: int = 15,
                 canceller: Optional[OrderCanceller] = None,
                 policies: Optional[FailurePolicies] = None,
                 timeout: Optional[float] = None):
        self.coins = coins
        self.venues = venues
        self.price_calculator = price_calculator
        self.amount_calculator = amount_calculator
        self.depth = depth
        self.canceller = canceller or OrderCanceller(timeout)
        self.policies = policies or FailurePolicies()
        self.timeout = timeout
        self.my_orders_last_state: OrdersStorage[OrderWithId] = OrdersStorage(coins)
        # Fill detection and cancel-and-replace never interleave
        self._lock = asyncio.Lock()

    async def check_current_orders(self) -> List[Trade]:
        """Return the fills since the last check and shrink tracked orders to match."""
        return [LimitTrade(fill.order) for fill in await self.check_current_fills()]

    async def check_current_fills(self) -> List[OrderEntity[OrderWithId]]:
        """Same as :meth:`check_current_orders` but keeps the venue of each fill."""
        async with self._lock:
            current, unavailable = await self._accumulate(
                Target.LIMIT,
                lambda venue, pair: venue.sniffer.get_my_orders(pair),
                "own orders query", self.policies.limit_fill_check)
            resting: Dict[Tuple[str, str], OrderWithId] = {
                (entity.venue_id, entity.order.id): entity.order
                for entity in current.buy_stock + current.sell_stock
            }

            fills: List[OrderEntity[OrderWithId]] = []
            for stock in (self.my_orders_last_state.buy_stock, self.my_orders_last_state.sell_stock):
                for last_order in list(stock):
                    if last_order.venue_id in unavailable:
                        continue
                    current_order = resting.get((last_order.venue_id, last_order.order.id))
                    if current_order is None:
                        fills.append(OrderEntity(last_order.venue_id, last_order.order))
                        stock.remove(last_order)
                        logger.info(
                            f"Order {last_order.order.id} on {last_order.venue_id} filled: "
                            f"{last_order.order.amount}@{last_order.order.price}")
                    elif current_order.amount < last_order.order.amount - AMOUNT_EPSILON:
                        performed = last_order.order.amount - current_order.amount
                        fills.append(OrderEntity(
                            last_order.venue_id, replace(last_order.order, amount=performed)))
                        last_order.order = replace(last_order.order, amount=current_order.amount)
                        logger.info(
                            f"Order {last_order.order.id} on {last_order.venue_id} partially filled: "
                            f"{performed}@{last_order.order.price}, {current_order.amount} left")
            return fills

    async def update_orders(self) -> Update:
        """Cancel all resting orders and quote both sides afresh."""
        async with self._lock:
            await self._cancel_all()

            snapshot, _ = await self._accumulate(
                Target.MARKET,
                lambda venue, pair: venue.sniffer.all_the_best_orders(pair, self.depth),
                "best orders query", self.policies.limit_market_data)

            update = Update()
            # Buy quotes reference sell-direction liquidity and vice versa
            update.buy = await self._quote_side(Side.BUY, snapshot.sell_stock)
            update.sell = await self._quote_side(Side.SELL, snapshot.buy_stock)
            logger.info(f"Placed {len(update.buy)} buy and {len(update.sell)} sell quotes for {self.coins}")
            return update

    async def _cancel_all(self) -> None:
        try:
            await self.canceller.cancel_all(self.venues, self.coins)
        except CancellationError as e:
            self._forget(e.cancelled)
            if self.policies.limit_cancellation is FailurePolicy.ABORT:
                raise
            logger.warning(f"Cancellation incomplete on {e.venue}: {e}")
            return
        self.my_orders_last_state.clear()

    def _forget(self, cancelled: List[Tuple[str, str]]) -> None:
        gone = set(cancelled)
        for stock in (self.my_orders_last_state.buy_stock, self.my_orders_last_state.sell_stock):
            stock[:] = [entity for entity in stock if (entity.venue_id, entity.order.id) not in gone]

    async def _quote_side(self, side: Side,
                          reference_stock: List[OrderEntity[Order]]) -> List[OrderEntity[OrderWithId]]:
        candidates = [entity.order for entity in reference_stock
                      if entity.order.amount > self.amount_calculator.min_amount_threshold]
        if not candidates:
            logger.debug(f"No reference order to quote {side.value} {self.coins}")
            return []

        if side is Side.BUY:
            reference = min(candidates, key=lambda order: order.price)
            price = self.price_calculator.low(reference.price)
        else:
            reference = max(candidates, key=lambda order: order.price)
            price = self.price_calculator.high(reference.price)

        trading_pair = TradingPair(self.coins, side, Target.LIMIT)
        placed: List[OrderEntity[OrderWithId]] = []
        for venue_id, venue in self.venues:
            balance = await call_with_policy(
                venue.accountant.ask(trading_pair.coin_to_spend()),
                venue_id, "balance query", self.policies.limit_balance, self.timeout)
            if balance is SKIPPED:
                continue
            spendable = to_base_amount(trading_pair, price, balance.amount)
            amount = self.amount_calculator.evaluate(
                reference.amount, Balance(spendable).charged(self.amount_calculator.fee))
            if amount is None:
                # Stops quoting this side on the remaining venues too
                logger.warning(
                    f"Insufficient {trading_pair.coin_to_spend()} on {venue_id}, "
                    f"stopping {side.value} quotes")
                break

            trade = await call_with_policy(
                venue.trader.create_order(Order(trading_pair, price, amount.value)),
                venue_id, "order placement", self.policies.limit_placement, self.timeout)
            if trade is SKIPPED:
                continue
            if not isinstance(trade, LimitTrade):
                raise UnexpectedOrderOutcomeError(
                    f"{venue_id} answered a limit order on {trading_pair} with {trade!r}")

            entity = OrderEntity(venue_id, trade.order)
            # Tracked under the slot of the stock the quote was priced from
            self.my_orders_last_state.stock(side.reversed()).append(entity)
            placed.append(entity)
            logger.info(f"Quoted {trading_pair} {amount.value}@{price} on {venue_id} as {trade.order.id}")
        return placed

    async def _accumulate(self, target: Target,
                          sniff: Callable[["Venue", TradingPair], Awaitable[list]],
                          what: str, policy: FailurePolicy) -> Tuple[OrdersStorage, Set[str]]:
        """Collect per-venue orders for both sides of the coin pair.

        Returns the storage and the venues whose query was skipped.
        """
        storage: OrdersStorage = OrdersStorage(self.coins)
        unavailable: Set[str] = set()
        venues = self.venues.items()
        for side in (Side.SELL, Side.BUY):
            trading_pair = TradingPair(self.coins, side, target)
            results = await asyncio.gather(*[
                call_with_policy(sniff(venue, trading_pair), venue_id, what, policy, self.timeout)
                for venue_id, venue in venues
            ])
            for (venue_id, _), orders in zip(venues, results):
                if orders is SKIPPED:
                    unavailable.add(venue_id)
                    continue
                storage.stock(side).extend(OrderEntity(venue_id, order) for order in orders)
        return storage, unavailable
