"""Tests for the SerpAPI Google Maps helpers."""

from unittest.mock import Mock, patch

import pytest

from foodsite.vendors import serpapi_maps


def test_build_serpapi_params():
    params = serpapi_maps.build_serpapi_params(" food bank ", "key", ll="@40.7,-74.0,11z")

    assert params == {
        "engine": "google_maps",
        "q": "food bank",
        "api_key": "key",
        "type": "search",
        "ll": "@40.7,-74.0,11z",
    }
    with pytest.raises(ValueError):
        serpapi_maps.build_serpapi_params("  ", "key")


def test_build_ll():
    assert serpapi_maps.build_ll(40.7128, -74.006) == "@40.712800,-74.006000,11z"


@patch("foodsite.vendors.serpapi_maps.GoogleSearch")
def test_fetch_returns_payload(mock_search):
    mock_search.return_value = Mock(get_dict=Mock(return_value={"local_results": [{"title": "A"}]}))

    data = serpapi_maps.fetch_from_serpapi("food bank", "key", ll="@1,2,11z")

    assert data["local_results"][0]["title"] == "A"
    assert mock_search.call_args[0][0]["ll"] == "@1,2,11z"


@patch("foodsite.vendors.serpapi_maps.GoogleSearch")
def test_fetch_treats_no_results_as_empty(mock_search):
    mock_search.return_value = Mock(
        get_dict=Mock(return_value={"error": "Google hasn't returned any results for this query."})
    )

    assert serpapi_maps.fetch_from_serpapi("food bank", "key") == {"local_results": []}


@patch("foodsite.vendors.serpapi_maps.time.sleep")
@patch("foodsite.vendors.serpapi_maps.GoogleSearch")
def test_fetch_retries_then_raises(mock_search, mock_sleep):
    mock_search.return_value = Mock(get_dict=Mock(return_value={"error": "Invalid API key."}))

    with pytest.raises(serpapi_maps.SerpApiError):
        serpapi_maps.fetch_from_serpapi("food bank", "key")

    assert mock_search.call_count == serpapi_maps.RETRY_LIMIT + 1
    assert mock_sleep.call_count == serpapi_maps.RETRY_LIMIT


def test_extract_items_shapes():
    assert serpapi_maps.extract_items(None) == []
    assert serpapi_maps.extract_items({"local_results": [{"title": "A"}, "junk"]}) == [{"title": "A"}]
    assert serpapi_maps.extract_items({"local_results": {"places": [{"title": "B"}]}}) == [{"title": "B"}]
    assert serpapi_maps.extract_items({"place_results": {"title": "C"}}) == [{"title": "C"}]
    assert serpapi_maps.extract_items({"search_metadata": {}}) == []
