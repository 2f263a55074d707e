"""One-shot order at the venue's best available price."""

from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from loguru import logger

from .types import Trade, TradingPair
from .utils import call_venue

if TYPE_CHECKING:
    from ..venues.base import Venue


class BestPriceTrader:
    """Places a fixed amount at whatever the best order on a venue offers."""

    def __init__(self, trading_pair: TradingPair, amount: float, timeout: Optional[float] = None):
        self.trading_pair = trading_pair
        self.amount = amount
        self.timeout = timeout

    async def iterate(self, venue: "Venue") -> Trade:
        best_order = await call_venue(
            venue.sniffer.the_best_order(self.trading_pair), venue.name, "best order query", self.timeout)
        order = replace(best_order, trading_pair=self.trading_pair, amount=self.amount)
        trade = await call_venue(
            venue.trader.create_order(order), venue.name, "order placement", self.timeout)
        logger.info(f"Placed {self.trading_pair} {trade.amount}@{trade.price} on {venue.name}")
        return trade
