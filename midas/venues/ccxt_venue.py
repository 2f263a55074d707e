"""ccxt-backed venue implementing the sniffer, trader and accountant contracts."""

from typing import Any, Dict, List, Optional

import ccxt.pro as ccxt
from loguru import logger

from ..core.errors import OrderRejectedError, VenueError
from ..core.types import (
    Balance, LimitTrade, MarketTrade, Order, OrderWithId, Side, Target, Trade, TradingPair,
)
from .base import Accountant, Sniffer, Trader, Venue

# Binance only accepts these order book limits; other venues take them too
BOOK_LIMITS = (5, 10, 20, 50, 100, 500, 1000)


def book_limit(depth: int) -> int:
    """Smallest supported order book limit that covers ``depth`` levels."""
    for limit in BOOK_LIMITS:
        if limit >= depth:
            return limit
    return depth


class CcxtExchange(Sniffer, Trader, Accountant):
    """Adapter from the venue contracts to one ccxt async client."""

    def __init__(self, name: str, exchange_id: str, options: Optional[Dict[str, Any]] = None,
                 sandbox: bool = True, client: Any = None):
        self.name = name
        self.exchange_id = exchange_id
        if client is None:
            exchange_class = getattr(ccxt, exchange_id, None)
            if exchange_class is None:
                raise VenueError(f"Unknown ccxt exchange: {exchange_id}", name)
            client = exchange_class({"enableRateLimit": True, "timeout": 10000, **(options or {})})
            if sandbox:
                client.set_sandbox_mode(True)
        self.client = client
        # delete_order only knows the id, ccxt also needs the symbol
        self._order_symbols: Dict[str, str] = {}

    async def close(self) -> None:
        try:
            await self.client.close()
            logger.info(f"{self.name} disconnected")
        except Exception as e:
            logger.error(f"Error disconnecting from {self.name}: {e}")

    # Sniffer

    async def all_the_best_orders(self, trading_pair: TradingPair, depth: int) -> List[Order]:
        book = await self.client.fetch_order_book(trading_pair.coins.symbol, book_limit(depth))
        # A sell executes against bids, a buy against asks
        levels = book["bids"] if trading_pair.side is Side.SELL else book["asks"]
        return [Order(trading_pair, float(level[0]), float(level[1])) for level in levels[:depth]]

    async def get_my_orders(self, trading_pair: TradingPair) -> List[OrderWithId]:
        symbol = trading_pair.coins.symbol
        open_orders = await self.client.fetch_open_orders(symbol)
        result = []
        for raw in open_orders:
            if raw.get("side") != trading_pair.side.value:
                continue
            order_id = str(raw["id"])
            self._order_symbols[order_id] = symbol
            remaining = raw.get("remaining")
            if remaining is None:
                remaining = float(raw.get("amount") or 0) - float(raw.get("filled") or 0)
            result.append(OrderWithId(order_id, trading_pair, float(raw.get("price") or 0), float(remaining)))
        return result

    async def the_best_order(self, trading_pair: TradingPair) -> Order:
        orders = await self.all_the_best_orders(trading_pair, 1)
        if not orders:
            raise VenueError(f"No orders for {trading_pair} on {self.name}", self.name)
        return orders[0]

    # Trader

    async def create_order(self, order: Order) -> Trade:
        pair = order.trading_pair
        symbol = pair.coins.symbol
        price = order.price if pair.target is Target.LIMIT else None
        result = await self.client.create_order(symbol, pair.target.value, pair.side.value, order.amount, price)
        if not result or not result.get("id"):
            raise OrderRejectedError(f"Invalid response from {self.name}: missing order ID", self.name)

        order_id = str(result["id"])
        logger.info(f"{self.name} order placed: {order_id} {pair} {order.amount}@{order.price}")
        if pair.target is Target.LIMIT:
            self._order_symbols[order_id] = symbol
            return LimitTrade(OrderWithId(order_id, pair, order.price, order.amount))
        filled = result.get("filled")
        filled = order.amount if filled is None else float(filled)
        average = float(result.get("average") or order.price)
        return MarketTrade(order_id, pair, average, filled)

    async def delete_order(self, order_id: str) -> None:
        symbol = self._order_symbols.get(order_id)
        if symbol is None:
            raise VenueError(f"Unknown order {order_id} on {self.name}", self.name)
        await self.client.cancel_order(order_id, symbol)
        del self._order_symbols[order_id]

    # Accountant

    async def ask(self, coin: str) -> Balance:
        balances = await self.client.fetch_balance()
        return Balance(amount=float(balances.get("free", {}).get(coin) or 0.0))


def ccxt_venue(exchange: CcxtExchange) -> Venue:
    """Wrap a ccxt exchange as a venue."""
    return Venue(exchange.name, exchange, exchange, exchange)
