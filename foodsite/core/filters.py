"""Pure filter and sort operations over an already-fetched result set."""

from datetime import datetime
from typing import Callable, List, Optional, Sequence, Union

from foodsite.core.hours import is_open_now
from foodsite.models import Site, SiteFilters, SiteType, SortKey


def filter_sites(sites: Sequence[Site], filters: Optional[SiteFilters], now: Optional[datetime] = None) -> List[Site]:
    """Keep the sites satisfying every populated predicate in ``filters``."""
    if filters is None:
        return list(sites)
    now = now or datetime.now()

    predicates: List[Callable[[Site], bool]] = []
    if filters.types:
        allowed = {SiteType(t) for t in filters.types}
        predicates.append(lambda site: site.type in allowed)
    if filters.open_now:
        predicates.append(lambda site: is_open_now(site.hours, now))
    if filters.has_phone:
        predicates.append(lambda site: bool(site.phone))
    if filters.has_website:
        predicates.append(lambda site: bool(site.website))
    if filters.accepts_any_of:
        keywords = [kw.lower() for kw in filters.accepts_any_of if kw and kw.strip()]
        if keywords:
            predicates.append(
                lambda site: any(kw in item.lower() for item in site.accepted_items for kw in keywords)
            )
    if filters.max_distance is not None:
        limit = float(filters.max_distance)
        predicates.append(lambda site: site.distance <= limit)

    return [site for site in sites if all(check(site) for check in predicates)]


def sort_sites(sites: Sequence[Site], key: Union[SortKey, str, None] = SortKey.DISTANCE, now: Optional[datetime] = None) -> List[Site]:
    """Stable sort by the requested key; ``openStatus`` puts open sites first, nearest first."""
    sort_key = SortKey(key) if key else SortKey.DISTANCE
    if sort_key is SortKey.NAME:
        return sorted(sites, key=lambda site: site.name.lower())
    if sort_key is SortKey.TYPE:
        return sorted(sites, key=lambda site: site.type.value)
    if sort_key is SortKey.OPEN_STATUS:
        now = now or datetime.now()
        return sorted(sites, key=lambda site: (not is_open_now(site.hours, now), site.distance))
    return sorted(sites, key=lambda site: site.distance)


def apply(
    sites: Sequence[Site],
    filters: Optional[SiteFilters] = None,
    sort_key: Union[SortKey, str, None] = SortKey.DISTANCE,
    now: Optional[datetime] = None,
) -> List[Site]:
    """Filter then sort, evaluating open status against a single instant."""
    now = now or datetime.now()
    return sort_sites(filter_sites(sites, filters, now), sort_key, now)
