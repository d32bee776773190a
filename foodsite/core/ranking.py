"""Distance annotation and radius cut-off for deduplicated sites."""

import logging
from typing import List, Sequence

from foodsite.core.geo import haversine_miles
from foodsite.models import Coordinates, Site

logger = logging.getLogger(__name__)

SEARCH_RADIUS_MILES = 30.0


def annotate(sites: Sequence[Site], center: Coordinates) -> List[Site]:
    """Set ``distance`` (miles from ``center``) on every site in place."""
    for site in sites:
        site.distance = haversine_miles(center, site.coordinates)
    return list(sites)


def rank(sites: Sequence[Site], center: Coordinates, radius_miles: float = SEARCH_RADIUS_MILES) -> List[Site]:
    """Annotate, drop sites outside ``radius_miles`` and sort by ascending distance."""
    annotated = annotate(sites, center)
    within = [site for site in annotated if site.distance <= radius_miles]
    dropped = len(annotated) - len(within)
    if dropped:
        logger.debug("Excluded %d sites beyond %.1f miles", dropped, radius_miles)
    return sorted(within, key=lambda site: site.distance)
