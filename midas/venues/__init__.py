"""Venue contracts, registry and implementations."""

from .base import Accountant, Sniffer, Trader, Venue
from .manager import VenueId, VenueManager
from .paper import PaperExchange, paper_venue
from .ccxt_venue import CcxtExchange, ccxt_venue

__all__ = [
    'Accountant',
    'Sniffer',
    'Trader',
    'Venue',
    'VenueId',
    'VenueManager',
    'PaperExchange',
    'paper_venue',
    'CcxtExchange',
    'ccxt_venue'
]
