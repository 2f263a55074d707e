"""Venue registry keyed by a stable identity."""

from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from ..core.errors import ConfigurationError
from .base import Venue

VenueId = str


class VenueManager:
    """Maps venue identities to venues and back.

    The identity is the venue name, so it stays valid across restarts and
    never depends on object identity. Iteration follows insertion order.
    """

    def __init__(self, venues: Optional[List[Venue]] = None):
        self._venues: Dict[VenueId, Venue] = {}
        for venue in venues or []:
            self.insert(venue)

    def insert(self, venue: Venue) -> VenueId:
        if venue.name in self._venues:
            raise ConfigurationError(f"Duplicate venue name: {venue.name}")
        self._venues[venue.name] = venue
        logger.debug(f"Registered venue {venue.name}")
        return venue.name

    def remove(self, venue_id: VenueId) -> Optional[Venue]:
        return self._venues.pop(venue_id, None)

    def get(self, venue_id: VenueId) -> Optional[Venue]:
        return self._venues.get(venue_id)

    def identity_of(self, venue: Venue) -> Optional[VenueId]:
        if self._venues.get(venue.name) is venue:
            return venue.name
        return None

    def items(self) -> List[Tuple[VenueId, Venue]]:
        return list(self._venues.items())

    def venues(self) -> List[Venue]:
        return list(self._venues.values())

    def __iter__(self) -> Iterator[Tuple[VenueId, Venue]]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self._venues)

    def __contains__(self, venue_id: object) -> bool:
        return venue_id in self._venues

    async def close(self) -> None:
        for venue in self._venues.values():
            await venue.close()
