import pytest
import requests

from foodsite.vendors import overpass


class DummyResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload or {}
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError("http error")

    def json(self):
        if self.invalid_json:
            raise ValueError("no json")
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse(payload={"elements": []})

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append((url, data, headers, timeout))
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(overpass, "_SESSION", session)
    return session


def _query(**kwargs):
    return overpass.query_near(40.7, -74.0, 48280, base_url="https://overpass.test/api", user_agent="test/1.0", **kwargs)


def test_build_query_covers_tags_and_radius():
    query = overpass.build_query(40.7, -74.0, 48280)

    assert query.startswith("[out:json]")
    assert '"social_facility"="food_bank"' in query
    assert '"shop"="charity"' in query
    assert '"name"~"food bank|food pantry|soup kitchen|community fridge",i' in query
    assert "(around:48280,40.7,-74.0)" in query
    assert query.endswith("out center body;")


def test_query_near_posts_text_body(patch_session):
    patch_session.response = DummyResponse(payload={"elements": [{"type": "node", "id": 1}]})

    elements = _query(timeout=12)

    assert elements == [{"type": "node", "id": 1}]
    url, data, headers, timeout = patch_session.calls[0]
    assert url == "https://overpass.test/api"
    assert b"around:48280" in data
    assert headers["Content-Type"] == "text/plain"
    assert headers["User-Agent"] == "test/1.0"
    assert timeout == 12


def test_query_near_zero_results_is_not_an_error(patch_session):
    patch_session.response = DummyResponse(payload={"elements": []})
    assert _query() == []

    patch_session.response = DummyResponse(payload={"version": 0.6})
    assert _query() == []


def test_query_near_errors(patch_session):
    patch_session.response = DummyResponse(payload={"elements": [], "remark": "runtime error: timeout"})
    with pytest.raises(overpass.OverpassError):
        _query()

    patch_session.response = DummyResponse(invalid_json=True)
    with pytest.raises(overpass.OverpassError):
        _query()

    patch_session.response = DummyResponse(status_code=504)
    with pytest.raises(requests.HTTPError):
        _query()
