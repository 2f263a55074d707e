"""Main entry point for the midas trading controller."""

import asyncio
import signal
import sys
from typing import Optional

import click
from loguru import logger

# uvloop is not available on Windows
try:
    import uvloop
    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False

from .config import Config, LoggingConfig, VenueConfig, VenueKind, get_config
from .core.best_price import BestPriceTrader
from .core.calculators import AmountCalculator, PriceCalculator
from .core.controller import TradingController
from .core.errors import ConfigurationError, MidasError
from .core.filters import LowAmountFilter
from .core.limit_master import LimitMaster
from .core.reseller import Reseller
from .core.types import Side, Target, TradingPair
from .storage.ledger import TradeLedger
from .storage.snapshots import ResellerSnapshot
from .venues.base import Venue
from .venues.ccxt_venue import CcxtExchange, ccxt_venue
from .venues.manager import VenueManager
from .venues.paper import PaperExchange, paper_venue

CONSOLE_FORMAT = ("<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
                  "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(config: LoggingConfig) -> None:
    """Route loguru output to stderr and, when configured, a log file."""
    logger.remove()
    logger.add(sys.stderr, level=config.level, format=CONSOLE_FORMAT)
    if config.file:
        logger.add(config.file, level=config.file_level, format=FILE_FORMAT, rotation="10 MB")


def build_venue(venue_config: VenueConfig, config: Config) -> Venue:
    """Create a venue from its configuration."""
    if venue_config.kind is VenueKind.PAPER:
        exchange = PaperExchange(
            venue_config.name,
            config.pair.coins(),
            bids=[(level[0], level[1]) for level in venue_config.bids],
            asks=[(level[0], level[1]) for level in venue_config.asks],
            balances=venue_config.balances,
            fee=config.calculators.fee,
        )
        return paper_venue(exchange)
    exchange = CcxtExchange(
        venue_config.name,
        venue_config.exchange_id or venue_config.name,
        options=venue_config.options,
        sandbox=venue_config.sandbox,
    )
    return ccxt_venue(exchange)


def build_venues(config: Config) -> VenueManager:
    venues = VenueManager()
    for venue_config in config.venues:
        venues.insert(build_venue(venue_config, config))
    return venues


class MidasBot:
    """Wires venues, calculators, storage and the controller from config."""

    def __init__(self, config: Config):
        self.config = config
        timeout = config.scheduler.venue_timeout_s
        calculators = config.calculators

        self.venues = build_venues(config)
        if not len(self.venues):
            raise ConfigurationError("No venues configured")

        self.amount_calculator = AmountCalculator(calculators.min_amount, calculators.fee)
        self.ledger = TradeLedger(config.storage.db_path)

        self.limit_master: Optional[LimitMaster] = None
        if config.limit_master.enabled:
            self.limit_master = LimitMaster(
                config.pair.coins(),
                self.venues,
                PriceCalculator(calculators.profit_margin),
                self.amount_calculator,
                depth=config.limit_master.depth,
                policies=config.failure_policy,
                timeout=timeout,
            )

        self.reseller: Optional[Reseller] = None
        self.snapshot: Optional[ResellerSnapshot] = None
        if config.reseller.enabled:
            buy_storage, sell_storage = {}, {}
            if config.reseller.snapshot_path:
                self.snapshot = ResellerSnapshot(config.reseller.snapshot_path)
                buy_storage, sell_storage = self.snapshot.load()
            self.reseller = Reseller(
                self.venues,
                self.amount_calculator,
                LowAmountFilter(calculators.dust_amount),
                config.reseller.min_profit,
                buy_storage=buy_storage,
                sell_storage=sell_storage,
                accept_limit_fills=config.reseller.accept_limit_fills,
                depth=config.reseller.depth,
                policies=config.failure_policy,
                timeout=timeout,
            )

        self.controller = TradingController(
            limit_master=self.limit_master,
            reseller=self.reseller,
            ledger=self.ledger,
            snapshot=self.snapshot,
            interval_s=config.scheduler.interval_s,
            retry_delay_s=config.scheduler.retry_delay_s,
            max_trades_per_cycle=config.reseller.max_trades_per_cycle,
        )

        logger.info("Midas controller initialized")
        logger.info(f"Pair: {config.pair.coins()}")
        logger.info(f"Venues: {[venue_id for venue_id, _ in self.venues]}")
        logger.info(f"LimitMaster: {'on' if self.limit_master else 'off'}, "
                    f"Reseller: {'on' if self.reseller else 'off'}")

    async def start(self):
        """Run the controller until stopped."""
        await self.ledger.connect()
        loop = asyncio.get_running_loop()
        if sys.platform != "win32":
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(signum, self._signal_handler, signum)
        try:
            await self.controller.run()
        finally:
            await self.stop()

    async def stop(self):
        """Release venues and storage."""
        logger.info("Stopping midas controller")
        self.controller.stop()
        try:
            await self.venues.close()
            await self.ledger.disconnect()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")

    def _signal_handler(self, signum):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.controller.stop()


@click.group()
def cli():
    """Midas trading controller CLI."""
    pass


@cli.command()
@click.option('--config', type=click.Path(exists=True), default='config.yaml',
              help='Path to config file')
def run(config):
    """Run the trading controller."""
    settings = get_config(config)
    setup_logging(settings.logging)

    # Use uvloop on Linux for better performance
    if sys.platform != "win32" and UVLOOP_AVAILABLE:
        uvloop.install()

    try:
        bot = MidasBot(settings)
        asyncio.run(bot.start())
    except KeyboardInterrupt:
        logger.info("Controller stopped by user")
    except MidasError as e:
        logger.error(f"Controller failed: {e}")
        sys.exit(1)


@cli.command()
@click.option('--config', type=click.Path(exists=True), default='config.yaml',
              help='Path to config file')
@click.option('--limit', default=10, type=int, help='Number of recent trades to list (default: 10)')
def report(config, limit):
    """Print the trade ledger summary."""
    async def generate_report():
        # Setup logging
        logger.remove()
        logger.add(sys.stderr, level="WARNING")

        settings = get_config(config)
        ledger = TradeLedger(settings.storage.db_path)
        try:
            await ledger.connect()
            print(await ledger.summary())
            for trade in await ledger.get_trades(limit):
                print(f"{trade['venue']:<12} {trade['source']:<12} {trade['symbol']} {trade['side']:<4} "
                      f"{trade['target']:<6} {trade['amount']}@{trade['price']}")
        finally:
            await ledger.disconnect()

    asyncio.run(generate_report())


@cli.command(name='best-price')
@click.option('--config', type=click.Path(exists=True), default='config.yaml',
              help='Path to config file')
@click.option('--venue', 'venue_name', required=True, help='Venue name from the config')
@click.option('--side', type=click.Choice(['buy', 'sell']), required=True, help='Order side')
@click.option('--amount', type=float, required=True, help='Amount in base coin')
@click.option('--target', type=click.Choice(['market', 'limit']), default='market',
              help='Order type (default: market)')
def best_price(config, venue_name, side, amount, target):
    """Place one order at the venue's best price."""
    settings = get_config(config)
    setup_logging(settings.logging)
    venue_config = settings.get_venue(venue_name)
    if venue_config is None:
        logger.error(f"Unknown venue: {venue_name}")
        sys.exit(1)

    async def place():
        venue = build_venue(venue_config, settings)
        trader = BestPriceTrader(
            TradingPair(settings.pair.coins(), Side(side), Target(target)),
            amount,
            timeout=settings.scheduler.venue_timeout_s,
        )
        try:
            trade = await trader.iterate(venue)
            print(f"{trade.id}: {trade.trading_pair} {trade.amount}@{trade.price}")
        finally:
            await venue.close()

    try:
        asyncio.run(place())
    except MidasError as e:
        logger.error(f"Order failed: {e}")
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
