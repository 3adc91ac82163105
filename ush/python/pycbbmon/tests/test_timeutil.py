from datetime import datetime, timedelta, timezone

import pytest

from pycbbmon.monitor.timeutil import format_cbb_time, parse_cbb_time


def test_parse_valid_timestamp():
    assert parse_cbb_time("20240101020000") == datetime(2024, 1, 1, 2, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("dt", [
    datetime(2024, 1, 1, 2, 0, 0, tzinfo=timezone.utc),
    datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
    datetime(2024, 2, 29, 12, 30, 5, tzinfo=timezone.utc),
])
def test_round_trip(dt):
    assert parse_cbb_time(format_cbb_time(dt)) == dt


def test_format_converts_to_utc():
    est = timezone(timedelta(hours=-5))
    assert format_cbb_time(datetime(2024, 1, 1, 0, 0, 0, tzinfo=est)) == "20240101050000"


def test_format_naive_is_utc():
    assert format_cbb_time(datetime(2024, 1, 1, 2, 0, 0)) == "20240101020000"


@pytest.mark.parametrize("bad", ["", "2024-01-01 02:00:00", "202401010200", "20241301020000", "abcdefghijklmn"])
def test_parse_invalid_timestamp(bad):
    with pytest.raises(ValueError):
        parse_cbb_time(bad)
