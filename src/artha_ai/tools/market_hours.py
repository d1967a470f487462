import datetime
from artha_ai.config import POLL_INTERVAL_MARKET_OPEN, POLL_INTERVAL_MARKET_CLOSED

# NSE/BSE run on Indian Standard Time, which has no daylight saving
IST = datetime.timezone(datetime.timedelta(hours=5, minutes=30), name="IST")

MARKET_OPEN_MINUTES = 9 * 60 + 15   # 09:15
MARKET_CLOSE_MINUTES = 15 * 60 + 30  # 15:30
WEEKEND = (5, 6)  # Saturday, Sunday


def to_ist(now: datetime.datetime | None = None) -> datetime.datetime:
    """Convert a timestamp to IST. Naive timestamps are treated as UTC."""
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)
    return now.astimezone(IST)


def is_indian_market_open(now: datetime.datetime | None = None) -> bool:
    """
    Check whether the Indian stock market (NSE/BSE) is open.

    Open on weekdays between 09:15 and 15:30 IST, both boundaries inclusive.
    Exchange holidays are not considered.

    Args:
        now: Point in time to check, defaults to the current time

    Returns:
        True if the market is open at that time
    """
    ist_now = to_ist(now)
    if ist_now.weekday() in WEEKEND:
        return False

    minutes = ist_now.hour * 60 + ist_now.minute
    return MARKET_OPEN_MINUTES <= minutes <= MARKET_CLOSE_MINUTES


def poll_interval(now: datetime.datetime | None = None) -> float:
    """Seconds to wait before the next live price poll."""
    if is_indian_market_open(now):
        return POLL_INTERVAL_MARKET_OPEN
    return POLL_INTERVAL_MARKET_CLOSED
