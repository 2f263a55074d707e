"""Core trading logic: calculators, the Reseller and the LimitMaster."""

from .types import (
    Side, Target, CoinPair, TradingPair, Order, OrderWithId, MarketTrade, LimitTrade, Trade,
    Balance, OrderEntity, OrdersStorage,
)
from .errors import (
    MidasError, ConfigurationError, VenueError, VenueTimeoutError, OrderRejectedError,
    CancellationError, UnexpectedOrderOutcomeError, UnsupportedTradeError,
)
from .policy import FailurePolicy, FailurePolicies
from .calculators import PriceCalculator, ProfitCalculator, AmountCalculator, Amount, AmountKind
from .filters import LowAmountFilter
from .cancellation import OrderCanceller
from .reseller import Reseller, Entry
from .limit_master import LimitMaster, Update
from .best_price import BestPriceTrader
from .controller import TradingController, CycleResult

__all__ = [
    'Side',
    'Target',
    'CoinPair',
    'TradingPair',
    'Order',
    'OrderWithId',
    'MarketTrade',
    'LimitTrade',
    'Trade',
    'Balance',
    'OrderEntity',
    'OrdersStorage',
    'MidasError',
    'ConfigurationError',
    'VenueError',
    'VenueTimeoutError',
    'OrderRejectedError',
    'CancellationError',
    'UnexpectedOrderOutcomeError',
    'UnsupportedTradeError',
    'FailurePolicy',
    'FailurePolicies',
    'PriceCalculator',
    'ProfitCalculator',
    'AmountCalculator',
    'Amount',
    'AmountKind',
    'LowAmountFilter',
    'OrderCanceller',
    'Reseller',
    'Entry',
    'LimitMaster',
    'Update',
    'BestPriceTrader',
    'TradingController',
    'CycleResult'
]
