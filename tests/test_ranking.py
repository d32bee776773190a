import pytest

from foodsite.core import ranking
from foodsite.models import Coordinates

CENTER = Coordinates(40.7128, -74.0060)


def test_rank_sorts_and_drops_far_sites(make_site):
    near = make_site(name="Near", lat=40.72)
    nearest = make_site(name="Nearest", lat=40.713)
    far = make_site(name="Far", lat=41.5)

    ranked = ranking.rank([near, far, nearest], CENTER, radius_miles=30)

    assert [site.name for site in ranked] == ["Nearest", "Near"]
    assert all(site.distance >= 0 for site in ranked)
    assert far.distance > 30


def test_annotate_overwrites_previous_distance(make_site):
    site = make_site(distance=99.0, lat=CENTER.lat, lng=CENTER.lng)

    ranking.annotate([site], CENTER)

    assert site.distance == pytest.approx(0.0)
