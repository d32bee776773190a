import pytest

from foodsite.core import dedupe
from foodsite.core.geo import haversine_miles

BASE_LAT = 40.7128
BASE_LNG = -74.0060
# roughly 0.05 and 1.0 miles of latitude
LAT_005_MILES = 0.000723
LAT_1_MILE = 0.01447


def test_edit_distance():
    assert dedupe.edit_distance("kitten", "sitting") == 3
    assert dedupe.edit_distance("", "abc") == 3
    assert dedupe.edit_distance("same", "same") == 0
    assert dedupe.edit_distance("flaw", "lawn") == 2


def test_name_similarity_is_case_insensitive():
    assert dedupe.name_similarity("Grace Food", "grace food") == 1.0
    assert dedupe.name_similarity("Grace Food", "Grace Fund") == pytest.approx(0.8)
    assert dedupe.name_similarity("Mercy Food", "Mercyville") == pytest.approx(0.5)
    assert dedupe.name_similarity("", "") == 1.0


def test_near_and_similar_records_merge(make_site):
    first = make_site(name="Grace Food", lat=BASE_LAT, lng=BASE_LNG, source="openstreetmap")
    second = make_site(name="Grace Fund", lat=BASE_LAT + LAT_005_MILES, lng=BASE_LNG, source="google_places")
    assert haversine_miles(first.coordinates, second.coordinates) == pytest.approx(0.05, abs=0.005)

    result = dedupe.dedupe_sites([first, second])

    assert result == [first]


def test_near_but_dissimilar_records_are_kept(make_site):
    first = make_site(name="Mercy Food", lat=BASE_LAT, lng=BASE_LNG)
    second = make_site(name="Mercyville", lat=BASE_LAT + LAT_005_MILES, lng=BASE_LNG)

    assert dedupe.dedupe_sites([first, second]) == [first, second]


def test_identical_names_far_apart_are_kept(make_site):
    first = make_site(name="Grace Food", lat=BASE_LAT, lng=BASE_LNG)
    second = make_site(name="Grace Food", lat=BASE_LAT + LAT_1_MILE, lng=BASE_LNG)
    assert haversine_miles(first.coordinates, second.coordinates) == pytest.approx(1.0, abs=0.01)

    assert len(dedupe.dedupe_sites([first, second])) == 2


def test_first_seen_order_and_idempotence(make_site):
    sites = [
        make_site(name="Alpha Pantry", lat=BASE_LAT, lng=BASE_LNG),
        make_site(name="Beta Soup Kitchen", lat=BASE_LAT + 0.01, lng=BASE_LNG),
        make_site(name="Alpha Pantry", lat=BASE_LAT + 0.0001, lng=BASE_LNG),
        make_site(name="Gamma Fridge", lat=BASE_LAT + 0.02, lng=BASE_LNG),
        make_site(name="Beta Soup Kitchen", lat=BASE_LAT + 0.0101, lng=BASE_LNG),
    ]

    once = dedupe.dedupe_sites(sites)
    twice = dedupe.dedupe_sites(once)

    assert [site.name for site in once] == ["Alpha Pantry", "Beta Soup Kitchen", "Gamma Fridge"]
    assert [site.id for site in twice] == [site.id for site in once]


def test_custom_thresholds(make_site):
    first = make_site(name="Grace Food", lat=BASE_LAT, lng=BASE_LNG)
    second = make_site(name="Grace Fund", lat=BASE_LAT + LAT_005_MILES, lng=BASE_LNG)

    assert len(dedupe.dedupe_sites([first, second], min_similarity=0.9)) == 2
    assert len(dedupe.dedupe_sites([first, second], max_distance=0.01)) == 2


def test_colliding_ids_are_made_unique(make_site):
    first = make_site(name="North Pantry", id="osm:node/1")
    second = make_site(name="South Kitchen", lat=BASE_LAT + 0.05, id="osm:node/1")

    result = dedupe.dedupe_sites([first, second])

    assert [site.id for site in result] == ["osm:node/1", "osm:node/1#2"]
