import sys
from pathlib import Path

import pytest

# Ensure the `foodsite` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from foodsite.core.config import Settings  # noqa: E402
from foodsite.models import Coordinates, Site, SiteType  # noqa: E402

CENTER = Coordinates(lat=40.7128, lng=-74.0060)


@pytest.fixture
def settings():
    return Settings(adapter_timeout_seconds=2.0, search_timeout_seconds=5.0)


@pytest.fixture
def make_site():
    counter = {"n": 0}

    def _make(
        name="Community Food Bank",
        lat=CENTER.lat,
        lng=CENTER.lng,
        site_type=SiteType.FOOD_BANK,
        distance=0.0,
        source="openstreetmap",
        **extra,
    ):
        counter["n"] += 1
        return Site(
            id=extra.pop("id", f"test:{counter['n']}"),
            name=name,
            address="1 Main St",
            coordinates=Coordinates(lat=lat, lng=lng),
            type=site_type,
            distance=distance,
            source=source,
            **extra,
        )

    return _make


def osm_node(node_id, name, lat, lng, **tags):
    return {"type": "node", "id": node_id, "lat": lat, "lon": lng, "tags": {"name": name, **tags}}
