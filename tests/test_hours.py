from datetime import datetime

import pytest

from foodsite.core.hours import find_time_range, is_open_now, mentions_day

# 2024-05-15 is a Wednesday
WED_10AM = datetime(2024, 5, 15, 10, 0)
WED_6PM = datetime(2024, 5, 15, 18, 0)
SAT_NOON = datetime(2024, 5, 18, 12, 0)


def test_weekday_range_open_and_closed():
    assert is_open_now("Mo-Fr 09:00-17:00", WED_10AM) is True
    assert is_open_now("Mo-Fr 09:00-17:00", WED_6PM) is False
    assert is_open_now("Mo-Fr 09:00-17:00", SAT_NOON) is False


@pytest.mark.parametrize("now", [WED_10AM, WED_6PM, SAT_NOON])
def test_always_open_and_unknown(now):
    assert is_open_now("24/7", now) is True
    assert is_open_now("Always open", now) is True
    assert is_open_now(None, now) is False
    assert is_open_now("", now) is False


def test_closed_and_appointment_text():
    assert is_open_now("Temporarily closed", WED_10AM) is False
    assert is_open_now("By appointment only", WED_10AM) is False


def test_range_boundaries_are_inclusive():
    assert is_open_now("We 10:00-17:00", WED_10AM) is True
    assert is_open_now("We 08:00-10:00", WED_10AM) is True
    assert is_open_now("We 08:00-09:59", WED_10AM) is False


def test_missing_day_or_time():
    assert is_open_now("Sa 09:00-12:00", WED_10AM) is False
    assert is_open_now("We mornings", WED_10AM) is False


def test_wrapping_ranges():
    assert mentions_day("fr-mo", 6) is True
    assert mentions_day("fr-mo", 2) is False
    assert is_open_now("We 18:00-02:00", WED_6PM) is True


def test_meridiem_time_ranges():
    assert find_time_range("wednesday: 9:00 am – 5:00 pm") == (540, 1020)
    assert find_time_range("tu 9-5pm") == (540, 1020)
    assert find_time_range("tu 1-4pm") == (780, 960)
    assert find_time_range("tu 1-12pm") == (60, 720)
    assert find_time_range("tu 8-12pm") == (480, 720)
    assert is_open_now("We 8-12pm", WED_10AM) is True
    assert is_open_now("Wednesday: 9:00 AM – 5:00 PM", WED_10AM) is True
