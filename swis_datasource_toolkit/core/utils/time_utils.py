"""
Time helpers for SWIS queries.

SWIS returns DateTime values as ISO-8601 strings that frequently carry a wrong
or irrelevant UTC offset (e.g. `02:00:34.675+3:00`), or no zone at all. All
such values are treated as UTC.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from dateutil import parser as dateparser

from swis_datasource_toolkit.core.settings import DEFAULT_INTERVAL_MS
from swis_datasource_toolkit.exceptions import TimestampParseError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)


def correct_swis_timestamp(raw: str) -> str:
    """Drop everything from a `+` offset marker onwards and make the string explicitly UTC"""
    zone_index = raw.find('+')
    if zone_index != -1:
        return raw[:zone_index] + 'Z'
    if not raw.endswith('Z'):
        return raw + 'Z'
    return raw


def parse_swis_timestamp(raw: str) -> int:
    """
    Strict variant of `normalize_swis_timestamp`.

    Raises:
        TimestampParseError: If the corrected string is not a valid ISO-8601 instant
    """
    corrected = correct_swis_timestamp(raw)
    try:
        dt = dateparser.isoparse(corrected)
    except (ValueError, OverflowError) as e:
        raise TimestampParseError(f"Unparseable SWIS timestamp {raw!r}: {e}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // _ONE_MILLISECOND


def normalize_swis_timestamp(raw: Optional[Union[str, int, float, datetime]]) -> int:
    """
    Convert a SWIS timestamp to epoch milliseconds.

    Missing values (None or empty string) map to 0, as do unparseable ones; sparse
    result sets routinely contain both, so neither is an error for the caller.
    """
    if raw is None or raw == '':
        return 0
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return int(raw)
    if isinstance(raw, datetime):
        dt = raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
        return (dt - EPOCH) // _ONE_MILLISECOND
    try:
        return parse_swis_timestamp(str(raw))
    except TimestampParseError as e:
        logger.warning(f"{e}; using 0")
        return 0


def format_timespan(ms: int) -> str:
    """Render milliseconds as the SWQL timespan literal `days.hours:minutes:seconds.milliseconds`, without padding"""
    ms = int(ms)
    milliseconds = ms % 1000
    seconds = (ms // 1000) % 60
    minutes = (ms // (1000 * 60)) % 60
    hours = (ms // (1000 * 60 * 60)) % 24
    days = ms // (1000 * 60 * 60 * 24)
    return f"{days}.{hours}:{minutes}:{seconds}.{milliseconds}"


def granularity_seconds(interval_ms: Optional[int]) -> int:
    """Bucket size in whole seconds sent as the `granularity` request parameter; never below 1"""
    return max(int((interval_ms or DEFAULT_INTERVAL_MS) // 1000), 1)
