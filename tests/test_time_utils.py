from datetime import datetime

from utils.time_utils import optional_date_range, parse_date_boundary, resolve_date_range


def test_parse_date_boundary():
    assert parse_date_boundary("2024-03-05") == datetime(2024, 3, 5)
    assert parse_date_boundary("2024-03-05", end_of_day=True) == datetime(2024, 3, 5, 23, 59, 59, 999000)
    assert parse_date_boundary("") is None
    assert parse_date_boundary("05/03/2024") is None
    assert parse_date_boundary("2024-02-30") is None


def test_resolve_date_range_defaults_to_current_month():
    now = datetime(2024, 10, 17, 12, 0)

    assert resolve_date_range(None, None, now=now) == (datetime(2024, 10, 1), now)


def test_resolve_date_range_explicit():
    start, end = resolve_date_range("2024-01-01", "2024-01-31")

    assert start == datetime(2024, 1, 1)
    assert end == datetime(2024, 1, 31, 23, 59, 59, 999000)


def test_optional_date_range():
    assert optional_date_range(None, None) is None
    assert optional_date_range("2024-01-01", None) == {"$gte": datetime(2024, 1, 1)}
    assert set(optional_date_range("2024-01-01", "2024-01-02")) == {"$gte", "$lte"}
