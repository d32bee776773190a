"""CLI job to search for nearby food assistance sites."""

import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence

from foodsite.core.config import ConfigError, get_settings
from foodsite.core.engine import SearchOrchestrator, build_engine
from foodsite.core.errors import GeocodingFailure, InvalidInput, SearchCancelled, SearchFailure
from foodsite.models import SearchMode, Site, SiteFilters, SiteType, SortKey

logger = logging.getLogger(__name__)


def run_search_job(
    engine: SearchOrchestrator,
    *,
    query: str,
    mode: SearchMode,
    filters: Optional[SiteFilters] = None,
    sort_key: SortKey = SortKey.DISTANCE,
    refresh: bool = False,
) -> List[Site]:
    sites = engine.search(query, mode, force_refresh=refresh)
    logger.info("Search returned %d sites before filtering", len(sites))
    return engine.apply(sites, filters, sort_key)


def _mode_and_query(args: argparse.Namespace):
    if args.zip:
        return SearchMode.ZIP, args.zip
    if args.city:
        return SearchMode.CITY, args.city
    return SearchMode.COORDINATES, args.coords


def build_filters(args: argparse.Namespace) -> SiteFilters:
    return SiteFilters(
        types=[SiteType(t) for t in args.types] if args.types else None,
        open_now=args.open_now,
        has_phone=args.has_phone,
        has_website=args.has_website,
        accepts_any_of=args.accepts or None,
        max_distance=args.max_distance,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find food banks and pantries near a location")
    location = parser.add_mutually_exclusive_group()
    location.add_argument("--zip", dest="zip", help="5-digit ZIP code")
    location.add_argument("--city", dest="city", help="City name")
    location.add_argument("--coords", dest="coords", help="Coordinates as 'lat,lng'")
    parser.add_argument(
        "--type",
        dest="types",
        action="append",
        choices=[t.value for t in SiteType],
        help="Only include this site type (repeatable)",
    )
    parser.add_argument("--open-now", dest="open_now", action="store_true", help="Only sites open right now")
    parser.add_argument("--has-phone", dest="has_phone", action="store_true", help="Only sites with a phone number")
    parser.add_argument("--has-website", dest="has_website", action="store_true", help="Only sites with a website")
    parser.add_argument("--accepts", dest="accepts", action="append", help="Accepted item keyword (repeatable)")
    parser.add_argument("--max-distance", dest="max_distance", type=float, help="Maximum distance in miles")
    parser.add_argument(
        "--sort",
        dest="sort_key",
        default=SortKey.DISTANCE.value,
        choices=[k.value for k in SortKey],
        help="Result ordering",
    )
    parser.add_argument("--refresh", dest="refresh", action="store_true", help="Bypass cached results")
    parser.add_argument("--clear-cache", dest="clear_cache", action="store_true", help="Clear cached searches")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.zip or args.city or args.coords or args.clear_cache):
        parser.error("one of --zip, --city, --coords or --clear-cache is required")

    try:
        engine = build_engine(get_settings())
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    if args.clear_cache:
        engine.clear_cache()
        if not (args.zip or args.city or args.coords):
            return 0

    mode, query = _mode_and_query(args)
    try:
        sites = run_search_job(
            engine,
            query=query,
            mode=mode,
            filters=build_filters(args),
            sort_key=SortKey(args.sort_key),
            refresh=args.refresh,
        )
    except InvalidInput as exc:
        logger.error("Invalid input: %s", exc)
        return 2
    except (GeocodingFailure, SearchFailure, SearchCancelled) as exc:
        logger.error("Search failed: %s", exc)
        return 1

    json.dump([site.to_dict() for site in sites], sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
