import datetime

import pytest

from artha_ai.config import POLL_INTERVAL_MARKET_CLOSED, POLL_INTERVAL_MARKET_OPEN
from artha_ai.tools.market_hours import IST, is_indian_market_open, poll_interval, to_ist


def ist(year, month, day, hour, minute, second=0):
    return datetime.datetime(year, month, day, hour, minute, second, tzinfo=IST)


# 2024-01-15 is a Monday, 2024-01-19 a Friday
class TestIsIndianMarketOpen:

    @pytest.mark.parametrize("moment", [
        ist(2024, 1, 15, 9, 15),
        ist(2024, 1, 15, 12, 0),
        ist(2024, 1, 15, 15, 30),
        ist(2024, 1, 15, 15, 30, 59),
        ist(2024, 1, 19, 10, 45),
    ])
    def test_open_inside_weekday_window(self, moment):
        assert is_indian_market_open(moment) is True

    @pytest.mark.parametrize("moment", [
        ist(2024, 1, 15, 9, 14, 59),
        ist(2024, 1, 15, 15, 31),
        ist(2024, 1, 15, 0, 0),
        ist(2024, 1, 15, 23, 59),
    ])
    def test_closed_outside_window(self, moment):
        assert is_indian_market_open(moment) is False

    @pytest.mark.parametrize("moment", [
        ist(2024, 1, 13, 11, 0),  # Saturday
        ist(2024, 1, 14, 11, 0),  # Sunday
    ])
    def test_closed_on_weekends(self, moment):
        assert is_indian_market_open(moment) is False

    def test_converts_other_timezones(self):
        # 03:45 UTC is 09:15 IST
        utc_open = datetime.datetime(2024, 1, 15, 3, 45, tzinfo=datetime.timezone.utc)
        assert is_indian_market_open(utc_open) is True
        new_york = datetime.timezone(datetime.timedelta(hours=-5))
        # Sunday 23:00 in New York is Monday 09:30 IST
        assert is_indian_market_open(datetime.datetime(2024, 1, 14, 23, 0, tzinfo=new_york)) is True

    def test_naive_timestamps_are_utc(self):
        assert to_ist(datetime.datetime(2024, 1, 15, 10, 0)).hour == 15
        assert is_indian_market_open(datetime.datetime(2024, 1, 15, 10, 0)) is True
        assert is_indian_market_open(datetime.datetime(2024, 1, 15, 10, 1)) is False

    def test_defaults_to_now(self):
        assert isinstance(is_indian_market_open(), bool)


class TestPollInterval:

    def test_short_interval_while_open(self):
        assert poll_interval(ist(2024, 1, 15, 11, 0)) == POLL_INTERVAL_MARKET_OPEN == 30

    def test_long_interval_while_closed(self):
        assert poll_interval(ist(2024, 1, 13, 11, 0)) == POLL_INTERVAL_MARKET_CLOSED == 900
