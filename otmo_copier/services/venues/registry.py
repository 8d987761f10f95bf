"""Venue table: which adapter serves which venue name."""

import logging
from enum import Enum

from otmo_copier.services.venues.base import VenueAdapter
from otmo_copier.services.venues.dry_run import DryRunAdapter
from otmo_copier.services.venues.live import GmxAdapter, LiveVenueAdapter, OstiumAdapter

logger = logging.getLogger(__name__)


class Venue(str, Enum):
    GMX = "gmx"
    OSTIUM = "ostium"


LIVE_ADAPTERS: dict[Venue, type[LiveVenueAdapter]] = {
    Venue.GMX: GmxAdapter,
    Venue.OSTIUM: OstiumAdapter,
}


def build_adapters(venues: list[str], dry_run: bool) -> dict[str, VenueAdapter]:
    """Build the {venue -> adapter} table once at startup.

    Dry-run and live are separate adapter classes, picked here rather than
    checked inside each call. Names outside the Venue enum are left
    unregistered, so events routed to them fail with ``unknown_venue``.
    """
    adapters: dict[str, VenueAdapter] = {}
    for name in venues:
        try:
            venue = Venue(name.strip().lower())
        except ValueError:
            logger.warning(f"Ignoring unsupported venue '{name}'")
            continue
        if dry_run:
            adapters[venue.value] = DryRunAdapter(venue.value)
        else:
            adapters[venue.value] = LIVE_ADAPTERS[venue]()
        logger.info(f"Registered {'dry-run' if dry_run else 'live'} adapter for {venue.value}")
    return adapters
