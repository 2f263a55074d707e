"""Scheduling loop that drives the LimitMaster and the Reseller."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from loguru import logger

from .errors import MidasError
from .limit_master import LimitMaster, Update
from .reseller import Reseller
from .types import LimitTrade, Trade
from .utils import format_duration

if TYPE_CHECKING:
    from ..storage.ledger import TradeLedger
    from ..storage.snapshots import ResellerSnapshot


@dataclass
class CycleResult:
    """What one controller cycle did."""
    fills: List[Tuple[str, Trade]] = field(default_factory=list)
    update: Optional[Update] = None
    resold: List[Tuple[str, Trade]] = field(default_factory=list)
    duration_s: float = 0.0


class TradingController:
    """Runs check → requote → resell cycles until stopped.

    Hard failures end the cycle; the loop logs them and retries after
    ``retry_delay_s``. No other retry happens inside a cycle.
    """

    def __init__(self, limit_master: Optional[LimitMaster] = None,
                 reseller: Optional[Reseller] = None,
                 ledger: Optional["TradeLedger"] = None,
                 snapshot: Optional["ResellerSnapshot"] = None,
                 interval_s: float = 10.0,
                 retry_delay_s: float = 30.0,
                 max_trades_per_cycle: int = 10):
        self.limit_master = limit_master
        self.reseller = reseller
        self.ledger = ledger
        self.snapshot = snapshot
        self.interval_s = interval_s
        self.retry_delay_s = retry_delay_s
        self.max_trades_per_cycle = max_trades_per_cycle
        self.running = False
        self.cycles = 0
        self.failed_cycles = 0
        self._stop_event: Optional[asyncio.Event] = None

    async def run_cycle(self) -> CycleResult:
        start_time = time.time()
        result = CycleResult()

        if self.limit_master is not None:
            for fill in await self.limit_master.check_current_fills():
                trade = LimitTrade(fill.order)
                result.fills.append((fill.venue_id, trade))
                # Inventory first: tracked state no longer holds these fills
                if self.reseller is not None and self.reseller.accept_limit_fills:
                    self.reseller.accept_trade(trade)
                await self._record(trade, fill.venue_id, "limit_fill")
            result.update = await self.limit_master.update_orders()

        if self.reseller is not None:
            while len(result.resold) < self.max_trades_per_cycle:
                resold = await self.reseller.resell()
                if resold is None:
                    break
                result.resold.append(resold)
                await self._record(resold[1], resold[0], "reseller")
            if self.snapshot is not None:
                self.snapshot.save(self.reseller)

        self.cycles += 1
        result.duration_s = time.time() - start_time
        logger.info(
            f"Cycle {self.cycles} done in {format_duration(result.duration_s)}: "
            f"{len(result.fills)} fills, {len(result.update or [])} quotes, {len(result.resold)} resold")
        return result

    async def _record(self, trade: Trade, venue: str, source: str) -> None:
        if self.ledger is not None:
            await self.ledger.record_trade(trade, venue, source)

    async def run(self) -> None:
        """Run cycles until :meth:`stop` is called."""
        self.running = True
        self._stop_event = asyncio.Event()
        logger.info("Trading controller started")
        while self.running:
            try:
                await self.run_cycle()
                delay = self.interval_s
            except MidasError as e:
                self.failed_cycles += 1
                logger.error(f"Cycle failed: {e}")
                delay = self.retry_delay_s
            except Exception as e:
                self.failed_cycles += 1
                logger.exception(f"Unexpected error in cycle: {e}")
                delay = self.retry_delay_s
            try:
                await asyncio.wait_for(self._stop_event.wait(), delay)
            except asyncio.TimeoutError:
                pass
        logger.info(f"Trading controller stopped after {self.cycles} cycles ({self.failed_cycles} failed)")

    def stop(self) -> None:
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()
