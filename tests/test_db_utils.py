from datetime import datetime, timezone

from evalink.services.db_utils import parse_datetime, parse_int


def test_naive_datetime_is_kept_as_given():
    assert parse_datetime("2024-06-01T10:00") == datetime(2024, 6, 1, 10, 0)
    assert parse_datetime("2024-06-01") == datetime(2024, 6, 1)


def test_offset_datetime_is_converted_to_local_time():
    expected = datetime(2024, 6, 1, 2, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    assert parse_datetime("2024-06-01T10:00+08:00") == expected
    assert parse_datetime("2024-06-01T02:00:00Z") == expected


def test_unparseable_datetimes():
    assert parse_datetime("next tuesday") is None
    assert parse_datetime("") is None
    assert parse_datetime(20240601) is None


def test_parse_int_defaults():
    assert parse_int("7") == 7
    assert parse_int("x", 3) == 3
    assert parse_int(None) is None
