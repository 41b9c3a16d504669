import datetime as dt
import logging

from django.utils.dateparse import parse_date

logger = logging.getLogger(__name__)


def parse_day(value):
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Not a YYYY-MM-DD date: {value!r}")
    return parsed


def filter_by_date_range(records, start=None, end=None):
    """
    Keep rides or segments whose start day lies in ``[start, end]``.

    Bounds are calendar days (dates, datetimes or ``YYYY-MM-DD`` strings);
    either may be None for an open side. The start day is read in the zone the
    record was extracted in, so it agrees with day keys and heatmap buckets.
    """
    start = parse_day(start)
    end = parse_day(end)

    records = list(records)
    kept = []
    for record in records:
        day = record.start_time.date()
        if start and day < start:
            continue
        if end and day > end:
            continue
        kept.append(record)

    logger.debug("kept %d of %d records between %s and %s", len(kept), len(records), start, end)
    return kept
