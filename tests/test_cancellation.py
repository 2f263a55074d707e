"""Test bulk cancellation and the one-shot best-price trader."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from midas.core.best_price import BestPriceTrader
from midas.core.cancellation import OrderCanceller
from midas.core.errors import CancellationError, VenueError
from midas.core.types import LimitTrade, MarketTrade, Order, Side, Target, TradingPair
from midas.venues.base import Venue
from midas.venues.manager import VenueManager
from midas.venues.paper import paper_venue


def rest(exchange, coins, side, price, amount):
    order = Order(TradingPair(coins, side, Target.LIMIT), price, amount)
    return asyncio.run(exchange.create_order(order))


class TestOrderCanceller:
    """Test cancelling resting orders across venues."""

    def test_cancel_all(self, coins, make_exchange, make_venues):
        first = make_exchange("a", balances={"TON": 10.0, "USDT": 10.0})
        second = make_exchange("b", balances={"TON": 10.0, "USDT": 10.0})
        buy = rest(first, coins, Side.BUY, 1.0, 2.0)
        sell = rest(second, coins, Side.SELL, 3.0, 2.0)

        cancelled = asyncio.run(OrderCanceller().cancel_all(make_venues(first, second), coins))

        assert cancelled == [("b", sell.id), ("a", buy.id)]
        assert first.resting == {}
        assert second.resting == {}
        assert first.balances["USDT"] == pytest.approx(10.0)

    def test_cancel_one_side(self, coins, make_exchange, make_venues):
        exchange = make_exchange("a", balances={"TON": 10.0, "USDT": 10.0})
        buy = rest(exchange, coins, Side.BUY, 1.0, 2.0)
        rest(exchange, coins, Side.SELL, 3.0, 2.0)

        cancelled = asyncio.run(OrderCanceller().cancel(
            make_venues(exchange), TradingPair(coins, Side.BUY, Target.LIMIT)))

        assert cancelled == [("a", buy.id)]
        assert len(exchange.resting) == 1

    def test_failure_reports_progress(self, coins, make_exchange):
        good = make_exchange("a", balances={"TON": 10.0})
        bad = make_exchange("b", balances={"TON": 10.0})
        sell = rest(good, coins, Side.SELL, 3.0, 2.0)
        rest(bad, coins, Side.SELL, 3.0, 2.0)
        trader = Mock()
        trader.delete_order = AsyncMock(side_effect=RuntimeError("connection reset"))
        venues = VenueManager([paper_venue(good), Venue("b", bad, trader, bad)])

        with pytest.raises(CancellationError) as exc_info:
            asyncio.run(OrderCanceller().cancel_all(venues, coins))

        assert isinstance(exc_info.value, VenueError)
        assert exc_info.value.venue == "b"
        assert exc_info.value.cancelled == [("a", sell.id)]

    def test_failure_on_second_side_merges_progress(self, coins, make_exchange):
        exchange = make_exchange("a", balances={"TON": 10.0, "USDT": 10.0})
        sell = rest(exchange, coins, Side.SELL, 3.0, 2.0)
        rest(exchange, coins, Side.BUY, 1.0, 2.0)
        trader = Mock()
        deleted = []

        async def delete_order(order_id):
            if order_id != sell.id:
                raise RuntimeError("rate limited")
            deleted.append(order_id)

        trader.delete_order = delete_order
        venues = VenueManager([Venue("a", exchange, trader, exchange)])

        with pytest.raises(CancellationError) as exc_info:
            asyncio.run(OrderCanceller().cancel_all(venues, coins))

        assert exc_info.value.cancelled == [("a", sell.id)]
        assert deleted == [sell.id]


class TestBestPriceTrader:
    """Test one-shot orders at the best available price."""

    def test_market_order(self, coins, make_exchange):
        exchange = make_exchange("a", bids=[(2.0, 50.0), (1.9, 50.0)], balances={"TON": 100.0})
        trader = BestPriceTrader(TradingPair(coins, Side.SELL, Target.MARKET), 10.0)

        trade = asyncio.run(trader.iterate(paper_venue(exchange)))

        assert isinstance(trade, MarketTrade)
        assert trade.price == pytest.approx(2.0)
        assert trade.amount == pytest.approx(10.0)

    def test_limit_order(self, coins, make_exchange):
        exchange = make_exchange("a", asks=[(2.1, 50.0)], balances={"USDT": 100.0})
        trader = BestPriceTrader(TradingPair(coins, Side.BUY, Target.LIMIT), 5.0)

        trade = asyncio.run(trader.iterate(paper_venue(exchange)))

        assert isinstance(trade, LimitTrade)
        assert trade.price == pytest.approx(2.1)
        assert trade.trading_pair.target is Target.LIMIT
        assert list(exchange.resting) == [trade.id]

    def test_empty_book(self, coins, make_exchange):
        trader = BestPriceTrader(TradingPair(coins, Side.SELL, Target.MARKET), 10.0)
        with pytest.raises(VenueError):
            asyncio.run(trader.iterate(paper_venue(make_exchange("a"))))
