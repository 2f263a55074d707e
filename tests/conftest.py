"""Shared fixtures for the midas test suite."""

import pytest

from midas.core.types import CoinPair
from midas.venues.manager import VenueManager
from midas.venues.paper import PaperExchange, paper_venue

TON_USDT = CoinPair("TON", "USDT")


@pytest.fixture
def coins():
    return TON_USDT


@pytest.fixture
def make_exchange():
    """Build a paper exchange trading TON/USDT."""
    def factory(name, bids=None, asks=None, balances=None, fee=0.0):
        return PaperExchange(name, TON_USDT, bids=bids, asks=asks, balances=balances, fee=fee)
    return factory


@pytest.fixture
def make_venues():
    """Register paper exchanges in a venue manager."""
    def factory(*exchanges):
        return VenueManager([paper_venue(exchange) for exchange in exchanges])
    return factory
