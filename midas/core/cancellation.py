"""Bulk cancellation of this account's resting limit orders."""

from typing import TYPE_CHECKING, List, Optional, Tuple

from loguru import logger

from .errors import CancellationError, VenueError
from .types import CoinPair, Side, Target, TradingPair
from .utils import call_venue

if TYPE_CHECKING:
    from ..venues.manager import VenueManager


class OrderCanceller:
    """Deletes every resting limit order on a coin pair across venues."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def cancel(self, venues: "VenueManager", trading_pair: TradingPair) -> List[Tuple[str, str]]:
        """Cancel resting orders on one trading pair.

        Returns the ``(venue_id, order_id)`` pairs deleted. The first failure
        raises :class:`CancellationError` carrying what was already deleted.
        """
        cancelled: List[Tuple[str, str]] = []
        for venue_id, venue in venues:
            try:
                my_orders = await call_venue(
                    venue.sniffer.get_my_orders(trading_pair), venue_id, "get_my_orders", self.timeout)
                for order in my_orders:
                    await call_venue(
                        venue.trader.delete_order(order.id), venue_id, "delete_order", self.timeout)
                    cancelled.append((venue_id, order.id))
                    logger.info(f"Cancelled {trading_pair} order {order.id} on {venue_id}")
            except VenueError as e:
                raise CancellationError(str(e), venue_id, cancelled) from e
        return cancelled

    async def cancel_all(self, venues: "VenueManager", coins: CoinPair) -> List[Tuple[str, str]]:
        """Cancel resting orders on both sides of ``coins``."""
        sell_pair = TradingPair(coins, Side.SELL, Target.LIMIT)
        cancelled = await self.cancel(venues, sell_pair)
        try:
            cancelled += await self.cancel(venues, sell_pair.reversed_side())
        except CancellationError as e:
            e.cancelled = cancelled + e.cancelled
            raise
        return cancelled
