import argparse
import json

import pytest

from foodsite.core.config import ConfigError, Settings
from foodsite.core.errors import GeocodingFailure, InvalidInput
from foodsite.jobs import run_search
from foodsite.models import SearchMode, SiteType, SortKey


class DummyEngine:
    def __init__(self, sites=None, error=None):
        self.sites = sites or []
        self.error = error
        self.searches = []
        self.applied = []
        self.cleared = 0

    def search(self, query, mode, force_refresh=False):
        self.searches.append((query, mode, force_refresh))
        if self.error:
            raise self.error
        return list(self.sites)

    def apply(self, sites, filters, sort_key):
        self.applied.append((filters, sort_key))
        return sites

    def clear_cache(self):
        self.cleared += 1


@pytest.fixture
def engine(monkeypatch, make_site):
    dummy = DummyEngine(sites=[make_site(name="Eastside Pantry", id="osm:node/1", distance=0.7)])
    monkeypatch.setattr(run_search, "get_settings", lambda: Settings())
    monkeypatch.setattr(run_search, "build_engine", lambda settings: dummy)
    return dummy


def test_run_search_job_applies_filters(make_site):
    dummy = DummyEngine(sites=[make_site()])

    sites = run_search.run_search_job(dummy, query="10001", mode=SearchMode.ZIP, refresh=True)

    assert len(sites) == 1
    assert dummy.searches == [("10001", SearchMode.ZIP, True)]
    assert dummy.applied == [(None, SortKey.DISTANCE)]


def test_build_parser_and_filters():
    parser = run_search.build_parser()
    args = parser.parse_args(
        ["--city", "Austin", "--type", "food_pantry", "--type", "soup_kitchen", "--open-now",
         "--accepts", "canned", "--max-distance", "5", "--sort", "name"]
    )

    assert isinstance(parser, argparse.ArgumentParser)
    assert args.city == "Austin"
    assert args.sort_key == "name"

    filters = run_search.build_filters(args)
    assert filters.types == [SiteType.FOOD_PANTRY, SiteType.SOUP_KITCHEN]
    assert filters.open_now is True
    assert filters.has_phone is False
    assert filters.accepts_any_of == ["canned"]
    assert filters.max_distance == 5.0


def test_build_parser_rejects_two_locations():
    with pytest.raises(SystemExit):
        run_search.build_parser().parse_args(["--zip", "10001", "--city", "Austin"])


def test_main_prints_json(engine, capsys):
    assert run_search.main(["--coords", "40.7,-74.0", "--sort", "openStatus"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output[0]["id"] == "osm:node/1"
    assert engine.searches == [("40.7,-74.0", SearchMode.COORDINATES, False)]
    assert engine.applied[0][1] is SortKey.OPEN_STATUS


def test_main_exit_codes(engine):
    engine.error = InvalidInput("Please enter a valid 5-digit ZIP code")
    assert run_search.main(["--zip", "123"]) == 2

    engine.error = GeocodingFailure("Unable to determine location from postal code")
    assert run_search.main(["--zip", "00000"]) == 1


def test_main_clear_cache_only(engine):
    assert run_search.main(["--clear-cache"]) == 0
    assert engine.cleared == 1
    assert engine.searches == []


def test_main_config_error(monkeypatch):
    def broken_settings():
        raise ConfigError("CACHE_TTL_HOURS has an invalid value: 'x'")

    monkeypatch.setattr(run_search, "get_settings", broken_settings)

    assert run_search.main(["--zip", "10001"]) == 2


def test_main_requires_location():
    with pytest.raises(SystemExit):
        run_search.main([])
