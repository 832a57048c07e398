from datetime import UTC, datetime, timedelta

import pytest

from sessionly.modules.session import to_timestamp
from sessionly.modules.session.expiration import YEAR

NOW = 1_700_000_000


@pytest.mark.parametrize("value", [None, 0, ""])
def test_no_expiration(value):
    assert to_timestamp(value, NOW) is None


def test_relative_seconds():
    assert to_timestamp(60, NOW) == NOW + 60
    assert to_timestamp(YEAR, NOW) == NOW + YEAR


def test_absolute_timestamp():
    assert to_timestamp(NOW + 3600, NOW) == NOW + 3600


def test_timedelta():
    assert to_timestamp(timedelta(minutes=20), NOW) == NOW + 1200


def test_datetime():
    moment = datetime(2030, 1, 1, tzinfo=UTC)
    assert to_timestamp(moment, NOW) == int(moment.timestamp())


def test_duration_string():
    assert to_timestamp("PT20M", NOW) == NOW + 1200


def test_numeric_string():
    assert to_timestamp("90", NOW) == NOW + 90


def test_datetime_string():
    assert to_timestamp("2030-01-01T00:00:00Z", NOW) == int(datetime(2030, 1, 1, tzinfo=UTC).timestamp())


@pytest.mark.parametrize("value", ["twenty minutes", True, float("nan"), [1]])
def test_invalid(value):
    with pytest.raises(ValueError):
        to_timestamp(value, NOW)
