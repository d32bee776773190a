"""HTTP entrypoint exposing the site search engine."""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional

from flask import Flask, jsonify, request

from foodsite.core.config import get_settings
from foodsite.core.engine import SearchOrchestrator, build_engine
from foodsite.core.errors import GeocodingFailure, InvalidInput, SearchCancelled, SearchFailure
from foodsite.models import SearchMode, SiteFilters, SiteType, SortKey

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & engine ----------
app = Flask(__name__)
_engine: Optional[SearchOrchestrator] = None


def get_engine() -> SearchOrchestrator:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; does not touch the sources."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "search_radius_miles": settings.search_radius_miles,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/search")
def search_sites() -> Any:
    """
    Search for sites around a ZIP code, city or coordinate pair.
    Required query params: mode (zip|city|coordinates), q
    Optional: type (repeatable), open_now, has_phone, has_website,
    accepts (repeatable), max_distance, sort, refresh
    """
    args = request.args
    raw_mode = args.get("mode", "")
    query = args.get("q", "")
    if not query:
        return jsonify({"error": "q is required"}), 400
    try:
        mode = SearchMode(raw_mode)
    except ValueError:
        return jsonify({"error": "mode must be one of zip, city, coordinates"}), 400

    try:
        filters = _parse_filters(args)
        sort_key = SortKey(args.get("sort", SortKey.DISTANCE.value))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    engine = get_engine()
    try:
        sites = engine.search(query, mode, force_refresh=_flag(args.get("refresh")))
    except InvalidInput as exc:
        return jsonify({"error": str(exc)}), 400
    except GeocodingFailure as exc:
        return jsonify({"error": str(exc)}), 404
    except (SearchFailure, SearchCancelled) as exc:
        return jsonify({"error": str(exc)}), 502

    results = engine.apply(sites, filters, sort_key)
    return jsonify({"data": [site.to_dict() for site in results]}), 200


@app.delete("/cache")
def clear_cache() -> Any:
    get_engine().clear_cache()
    return jsonify({"data": {"status": "cleared"}}), 200


# ---------- Internals ----------


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


def _parse_filters(args) -> SiteFilters:
    raw_types: List[str] = args.getlist("type")
    types = []
    for raw in raw_types:
        try:
            types.append(SiteType(raw))
        except ValueError:
            raise ValueError(f"unknown site type: {raw}") from None

    max_distance = None
    if args.get("max_distance") is not None:
        try:
            max_distance = float(args["max_distance"])
        except ValueError:
            raise ValueError("max_distance must be numeric") from None
        if max_distance < 0:
            raise ValueError("max_distance must not be negative")

    return SiteFilters(
        types=types or None,
        open_now=_flag(args.get("open_now")),
        has_phone=_flag(args.get("has_phone")),
        has_website=_flag(args.get("has_website")),
        accepts_any_of=args.getlist("accepts") or None,
        max_distance=max_distance,
    )


def main() -> None:
    env_port = os.getenv("PORT")
    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
