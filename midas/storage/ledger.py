"""Append-only trade ledger backed by SQLite."""

import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from ..core.types import LimitTrade, Side, Trade


@dataclass
class TradingResult:
    """Aggregate of every recorded trade."""
    sold: float = 0.0
    bought: float = 0.0
    sold_notional: float = 0.0
    bought_notional: float = 0.0
    trades: int = 0

    @property
    def balance_change(self) -> float:
        """Quote coin gained by selling minus quote coin spent buying."""
        return self.sold_notional - self.bought_notional

    def __str__(self) -> str:
        return (f"Trades: {self.trades} | Sold: {self.sold} ({self.sold_notional:.4f}) | "
                f"Bought: {self.bought} ({self.bought_notional:.4f}) | "
                f"Quote change: {self.balance_change:.4f}")


class TradeLedger:
    """SQLite trade ledger."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.connection: Optional[sqlite3.Connection] = None

    async def connect(self):
        """Connect to database."""
        try:
            self.connection = sqlite3.connect(self.db_path)
            await self._create_tables()
            logger.info(f"Connected to trade ledger: {self.db_path}")
        except Exception as e:
            logger.error(f"Failed to connect to trade ledger: {e}")
            raise

    async def disconnect(self):
        """Disconnect from database."""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from trade ledger")

    def _require_connection(self) -> sqlite3.Connection:
        if not self.connection:
            raise RuntimeError("Trade ledger is not connected")
        return self.connection

    async def _create_tables(self):
        """Create the trades table if it doesn't exist."""
        connection = self._require_connection()
        connection.execute("""
            CREATE TABLE IF NOT EXISTS trades (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                trade_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                venue TEXT NOT NULL,
                source TEXT NOT NULL,
                symbol TEXT NOT NULL,
                side TEXT NOT NULL,
                target TEXT NOT NULL,
                price REAL NOT NULL,
                amount REAL NOT NULL,
                ts INTEGER NOT NULL
            )
        """)
        connection.commit()

    async def record_trade(self, trade: Trade, venue: str, source: str) -> int:
        """Append a trade; returns its row id."""
        connection = self._require_connection()
        pair = trade.trading_pair
        try:
            cursor = connection.execute("""
                INSERT INTO trades (trade_id, kind, venue, source, symbol, side, target, price, amount, ts)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                trade.id,
                "limit" if isinstance(trade, LimitTrade) else "market",
                venue,
                source,
                pair.coins.symbol,
                pair.side.value,
                pair.target.value,
                trade.price,
                trade.amount,
                int(time.time() * 1000),
            ))
            connection.commit()
            return cursor.lastrowid
        except Exception as e:
            logger.error(f"Failed to record trade {trade.id}: {e}")
            raise

    async def get_trades(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent trades first."""
        connection = self._require_connection()
        cursor = connection.execute("""
            SELECT trade_id, kind, venue, source, symbol, side, target, price, amount, ts
            FROM trades
            ORDER BY id DESC
            LIMIT ?
        """, (limit,))
        columns = ["trade_id", "kind", "venue", "source", "symbol", "side", "target", "price", "amount", "ts"]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    async def summary(self) -> TradingResult:
        connection = self._require_connection()
        cursor = connection.execute("""
            SELECT side, COUNT(*), SUM(amount), SUM(amount * price)
            FROM trades
            GROUP BY side
        """)
        result = TradingResult()
        for side, count, amount, notional in cursor.fetchall():
            result.trades += count
            if side == Side.SELL.value:
                result.sold, result.sold_notional = amount or 0.0, notional or 0.0
            else:
                result.bought, result.bought_notional = amount or 0.0, notional or 0.0
        return result

    async def clear(self) -> None:
        connection = self._require_connection()
        connection.execute("DELETE FROM trades")
        connection.commit()
