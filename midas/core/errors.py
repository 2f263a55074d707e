"""Exception hierarchy for the trading controller."""

from typing import List, Optional, Tuple


class MidasError(Exception):
    """Base class for all controller errors."""


class ConfigurationError(MidasError, ValueError):
    """Invalid fee, margin or threshold supplied at construction time."""


class VenueError(MidasError):
    """A venue call failed."""

    def __init__(self, message: str, venue: Optional[str] = None):
        super().__init__(message)
        self.venue = venue


class VenueTimeoutError(VenueError):
    """A venue call did not answer within the configured timeout."""


class OrderRejectedError(VenueError):
    """The venue refused to accept an order."""


class CancellationError(VenueError):
    """A deletion failed during bulk cancellation."""

    def __init__(self, message: str, venue: Optional[str] = None,
                 cancelled: Optional[List[Tuple[str, str]]] = None):
        super().__init__(message, venue)
        # (venue_id, order_id) pairs deleted before the failure
        self.cancelled = cancelled or []


class UnexpectedOrderOutcomeError(MidasError):
    """The venue reported a different order outcome than the one requested."""


class UnsupportedTradeError(MidasError):
    """The trade kind cannot be accepted by this component."""
