"""
Turn the raw Nextbike account batch into typed rides and map segments.

Both extractors are filters, not validators: entries that are not rentals,
are missing what a view needs, or cannot be read at all are dropped
silently. The two collections are independent; one raw item may feed
both, either, or neither.
"""
import datetime as dt
import logging

from django.utils import timezone

from .config import DEFAULT_CONFIG
from .distance import estimate_distance_km
from .models import RawAccountItem, RentalRide, RideSegment

logger = logging.getLogger(__name__)


# -----------------------
# Utilities
# -----------------------
def account_items(payload):
    """Item list from a full list.json response, a bare list, or nothing."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        account = payload.get("account") or {}
        return account.get("items") or []
    return []


def _parse_items(items):
    for payload in items or []:
        item = payload if isinstance(payload, RawAccountItem) else RawAccountItem.from_payload(payload)
        if item is not None:
            yield item


def _to_datetime(seconds, tz):
    # 0 is the feed's placeholder for "not recorded", same as missing
    if not seconds:
        return None
    try:
        return dt.datetime.fromtimestamp(seconds, tz=tz)
    except (OverflowError, OSError, ValueError):
        # out of range for the platform clock; treat as absent
        return None


def _reported_km(item):
    # feed distance first, then the feed's own estimate; zero means "not reported"
    for meters in (item.distance, item.distance_estimated):
        if meters is not None and meters > 0:
            return meters / 1000
    return None


def _resolve_distance_km(item, config):
    km = _reported_km(item)
    if km is not None:
        return km
    coords = item.coordinates
    if coords is not None:
        return estimate_distance_km(*coords, adjustment_factor=config.distance_adjustment_factor)
    return 0.0


# -----------------------
# Extractors
# -----------------------
def extract_rental_rides(items, config=None):
    """
    Completed rentals with their timing and distance.

    Rentals without both timestamps, or shorter than ``config.min_ride_minutes``
    (cancellations, docking glitches), are skipped.
    """
    config = config or DEFAULT_CONFIG
    tz = config.tzinfo

    rides = []
    seen = 0
    for item in _parse_items(items):
        seen += 1
        if not item.is_rental:
            continue
        start = _to_datetime(item.start_time, tz)
        end = _to_datetime(item.end_time, tz)
        if start is None or end is None:
            continue

        duration_minutes = (item.end_time - item.start_time) / 60
        if duration_minutes < config.min_ride_minutes:
            continue

        rides.append(RentalRide(
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
            distance_km=_resolve_distance_km(item, config),
            day_key=start.date().isoformat(),
            bike_id=item.bike,
        ))

    logger.debug("extracted %d rides from %d readable items", len(rides), seen)
    return rides


def extract_ride_segments(items, config=None, now=None):
    """
    Start/end geometry of every rental that carries all four coordinates.

    Missing timestamps fall back to ``now`` (one instant per call, defaulting
    to the current time) instead of dropping the segment, since segments are
    drawn on a map rather than used for time series.
    """
    config = config or DEFAULT_CONFIG
    tz = config.tzinfo
    now = (now or timezone.now()).astimezone(tz)

    segments = []
    seen = 0
    for item in _parse_items(items):
        seen += 1
        if not item.is_rental:
            continue
        coords = item.coordinates
        if coords is None:
            continue

        start_lat, start_lng, end_lat, end_lng = coords
        segments.append(RideSegment(
            id=item.id,
            start_lat=start_lat,
            start_lng=start_lng,
            end_lat=end_lat,
            end_lng=end_lng,
            start_time=_to_datetime(item.start_time, tz) or now,
            end_time=_to_datetime(item.end_time, tz) or now,
            distance_km=_resolve_distance_km(item, config),
        ))

    logger.debug("extracted %d segments from %d readable items", len(segments), seen)
    return segments
