from datetime import datetime
import pytz


def local_now(tz_name):
    """Current wall-clock time in the campus timezone, as a naive datetime."""
    tz = pytz.timezone(tz_name)
    return datetime.now(pytz.utc).astimezone(tz).replace(tzinfo=None)


def localize(naive, tz_name):
    tz = pytz.timezone(tz_name)
    return tz.localize(naive)
