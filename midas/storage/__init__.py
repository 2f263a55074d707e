"""Trade ledger and inventory snapshots."""

from .ledger import TradeLedger, TradingResult
from .snapshots import ResellerSnapshot

__all__ = [
    'TradeLedger',
    'TradingResult',
    'ResellerSnapshot'
]
