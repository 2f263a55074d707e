"""Test the trade ledger and reseller snapshots."""

import asyncio
import json

import pytest

from midas.core.calculators import AmountCalculator
from midas.core.filters import LowAmountFilter
from midas.core.reseller import Entry, Reseller
from midas.core.types import LimitTrade, MarketTrade, OrderWithId, Side, Target, TradingPair
from midas.storage.ledger import TradeLedger, TradingResult
from midas.storage.snapshots import ResellerSnapshot
from midas.venues.manager import VenueManager


class TestTradeLedger:
    """Test SQLite trade recording."""

    def test_record_and_summary(self, tmp_path, coins):
        async def scenario():
            ledger = TradeLedger(str(tmp_path / "ledger.sqlite"))
            await ledger.connect()
            try:
                await ledger.record_trade(
                    MarketTrade("m1", TradingPair(coins, Side.BUY, Target.MARKET), 2.0, 10.0), "a", "reseller")
                await ledger.record_trade(
                    LimitTrade(OrderWithId("l1", TradingPair(coins, Side.SELL, Target.LIMIT), 2.5, 4.0)),
                    "b", "limit_fill")
                return await ledger.summary(), await ledger.get_trades()
            finally:
                await ledger.disconnect()

        summary, trades = asyncio.run(scenario())

        assert summary.trades == 2
        assert summary.bought == pytest.approx(10.0)
        assert summary.bought_notional == pytest.approx(20.0)
        assert summary.sold == pytest.approx(4.0)
        assert summary.sold_notional == pytest.approx(10.0)
        assert summary.balance_change == pytest.approx(-10.0)
        assert [trade["trade_id"] for trade in trades] == ["l1", "m1"]
        assert trades[0]["kind"] == "limit"
        assert trades[0]["venue"] == "b"
        assert trades[1]["symbol"] == "TON/USDT"

    def test_persists_across_connections(self, tmp_path, coins):
        db_path = str(tmp_path / "ledger.sqlite")

        async def record():
            ledger = TradeLedger(db_path)
            await ledger.connect()
            await ledger.record_trade(
                MarketTrade("m1", TradingPair(coins, Side.SELL, Target.MARKET), 3.0, 1.0), "a", "reseller")
            await ledger.disconnect()

        async def read():
            ledger = TradeLedger(db_path)
            await ledger.connect()
            summary = await ledger.summary()
            await ledger.clear()
            cleared = await ledger.summary()
            await ledger.disconnect()
            return summary, cleared

        asyncio.run(record())
        summary, cleared = asyncio.run(read())

        assert summary.sold_notional == pytest.approx(3.0)
        assert cleared.trades == 0

    def test_requires_connection(self):
        with pytest.raises(RuntimeError):
            asyncio.run(TradeLedger("unused.sqlite").summary())

    def test_result_format(self):
        result = TradingResult(sold=1.0, bought=2.0, sold_notional=3.0, bought_notional=1.5, trades=2)
        assert "Quote change: 1.5000" in str(result)


class TestResellerSnapshot:
    """Test inventory persistence."""

    def make_reseller(self, **kwargs):
        return Reseller(VenueManager(), AmountCalculator(0.1, 0.01), LowAmountFilter(0.1), 0.01, **kwargs)

    def test_save_and_load(self, tmp_path, coins):
        reseller = self.make_reseller()
        reseller.accept_trade(MarketTrade("m1", TradingPair(coins, Side.BUY, Target.MARKET), 2.0, 10.0))
        reseller.accept_trade(MarketTrade("m2", TradingPair(coins, Side.SELL, Target.MARKET), 2.5, 4.0))
        snapshot = ResellerSnapshot(str(tmp_path / "reseller.json"))

        snapshot.save(reseller)
        buy, sell = snapshot.load()

        assert buy == {coins: [Entry(2.0, 10.0)]}
        assert sell == {coins: [Entry(2.5, 4.0)]}
        restored = self.make_reseller(buy_storage=buy, sell_storage=sell)
        assert restored.total_amount(coins, Side.BUY) == pytest.approx(10.0)

    def test_file_layout(self, tmp_path, coins):
        reseller = self.make_reseller()
        reseller.accept_trade(MarketTrade("m1", TradingPair(coins, Side.BUY, Target.MARKET), 2.0, 10.0))
        path = tmp_path / "reseller.json"

        ResellerSnapshot(str(path)).save(reseller)

        assert json.loads(path.read_text()) == [{"TON/USDT": [{"price": 2.0, "amount": 10.0}]}, {}]
        assert not (tmp_path / "reseller.json.tmp").exists()

    def test_missing_or_empty_file(self, tmp_path):
        assert ResellerSnapshot(str(tmp_path / "missing.json")).load() == ({}, {})
        empty = tmp_path / "empty.json"
        empty.write_text("")
        assert ResellerSnapshot(str(empty)).load() == ({}, {})
