"""Cross-source duplicate removal combining spatial and name similarity."""

import logging
from typing import List, Sequence

from foodsite.core.geo import haversine_miles
from foodsite.models import Site

logger = logging.getLogger(__name__)

DUPLICATE_DISTANCE_MILES = 0.1
DUPLICATE_NAME_SIMILARITY = 0.7


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit insert/delete/substitute costs."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


def name_similarity(a: str, b: str) -> float:
    """``1 - distance / max(len)`` on lower-cased names; 1.0 for two empty names."""
    left = (a or "").lower()
    right = (b or "").lower()
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(left, right) / longest


def is_duplicate(
    candidate: Site,
    accepted: Site,
    *,
    max_distance: float = DUPLICATE_DISTANCE_MILES,
    min_similarity: float = DUPLICATE_NAME_SIMILARITY,
) -> bool:
    if haversine_miles(candidate.coordinates, accepted.coordinates) >= max_distance:
        return False
    return name_similarity(candidate.name, accepted.name) > min_similarity


def dedupe_sites(
    sites: Sequence[Site],
    *,
    max_distance: float = DUPLICATE_DISTANCE_MILES,
    min_similarity: float = DUPLICATE_NAME_SIMILARITY,
) -> List[Site]:
    """Keep the first-seen record of every group of near-identical sites.

    A candidate is dropped only when it is both closer than ``max_distance``
    miles to an accepted site and its name similarity exceeds
    ``min_similarity``.
    """
    accepted: List[Site] = []
    for candidate in sites:
        duplicate_of = next(
            (
                kept
                for kept in accepted
                if is_duplicate(candidate, kept, max_distance=max_distance, min_similarity=min_similarity)
            ),
            None,
        )
        if duplicate_of is not None:
            logger.debug("Dropping %s (%s) as duplicate of %s (%s)", candidate.id, candidate.source, duplicate_of.id, duplicate_of.source)
            continue
        accepted.append(candidate)

    # ids are only unique per source; make them unique per result set
    seen_ids = set()
    for site in accepted:
        if site.id in seen_ids:
            suffix = 2
            while f"{site.id}#{suffix}" in seen_ids:
                suffix += 1
            site.id = f"{site.id}#{suffix}"
        seen_ids.add(site.id)

    logger.info("Deduplicated %d candidates into %d sites", len(sites), len(accepted))
    return accepted
