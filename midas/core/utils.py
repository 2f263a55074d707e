"""Utility functions for the trading controller."""

import asyncio
from typing import Awaitable, Optional, TypeVar

from loguru import logger

from .errors import VenueError, VenueTimeoutError
from .policy import FailurePolicy
from .types import Side, TradingPair

T = TypeVar("T")


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers, returning default if denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def to_base_amount(trading_pair: TradingPair, price: float, amount: float) -> float:
    """Express a balance of the coin spent on ``trading_pair`` in base-coin units."""
    if trading_pair.side is Side.BUY:
        return safe_divide(amount, price)
    return amount


def format_percentage(value: float) -> str:
    """Format percentage value."""
    return f"{value:.2%}"


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


async def call_venue(call: Awaitable[T], venue: str, what: str,
                     timeout: Optional[float] = None) -> T:
    """Await a venue call, bounding it by ``timeout`` seconds.

    Any failure surfaces as :class:`VenueError` tagged with the venue.
    """
    try:
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError as e:
        raise VenueTimeoutError(f"{what} on {venue} timed out after {timeout}s", venue) from e
    except VenueError as e:
        if e.venue is None:
            e.venue = venue
        raise
    except Exception as e:
        raise VenueError(f"{what} on {venue} failed: {e}", venue) from e


# Returned by call_with_policy when a failed call was skipped
SKIPPED = object()


async def call_with_policy(call: Awaitable[T], venue: str, what: str,
                           policy: FailurePolicy, timeout: Optional[float] = None):
    """Like :func:`call_venue` but honours a failure policy.

    Under ``skip`` a failure is logged and :data:`SKIPPED` is returned;
    under ``abort`` the :class:`VenueError` propagates.
    """
    try:
        return await call_venue(call, venue, what, timeout)
    except VenueError as e:
        if policy is FailurePolicy.ABORT:
            raise
        logger.warning(f"Skipping {what} on {venue}: {e}")
        return SKIPPED
