"""
Explicit configuration for extraction and estimation.

Nothing in the pipeline reads module-level knobs: callers build an
``AnalyticsConfig`` (usually via ``from_settings``) and pass it in.
"""
from dataclasses import dataclass, field
import datetime as dt
import logging
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.core.exceptions import ImproperlyConfigured

from .models import DistanceBucket

logger = logging.getLogger(__name__)

DEFAULT_DISTANCE_ADJUSTMENT_FACTOR = 1.2
DEFAULT_MIN_RIDE_MINUTES = 1.0
DEFAULT_TIME_ZONE = "UTC"

DEFAULT_DISTANCE_BUCKETS = (
    DistanceBucket("< 1 km", 0, 1),
    DistanceBucket("1–2 km", 1, 2),
    DistanceBucket("2–3 km", 2, 3),
    DistanceBucket("3–5 km", 3, 5),
    DistanceBucket("5–10 km", 5, 10),
    DistanceBucket("10–20 km", 10, 20),
    DistanceBucket("≥ 20 km", 20, None),
)


@dataclass(frozen=True)
class AnalyticsConfig:
    # uplift for haversine fallbacks; bike routes are rarely straight lines
    distance_adjustment_factor: float = DEFAULT_DISTANCE_ADJUSTMENT_FACTOR
    min_ride_minutes: float = DEFAULT_MIN_RIDE_MINUTES
    time_zone: str = DEFAULT_TIME_ZONE
    distance_buckets: Tuple[DistanceBucket, ...] = field(default=DEFAULT_DISTANCE_BUCKETS)

    @property
    def tzinfo(self) -> dt.tzinfo:
        return ZoneInfo(self.time_zone)

    @classmethod
    def from_settings(cls) -> "AnalyticsConfig":
        from django.conf import settings

        opts = getattr(settings, "RIDE_ANALYTICS", {}) or {}

        factor = float(opts.get("DISTANCE_ADJUSTMENT_FACTOR", DEFAULT_DISTANCE_ADJUSTMENT_FACTOR))
        if factor <= 0:
            raise ImproperlyConfigured(
                f"RIDE_ANALYTICS['DISTANCE_ADJUSTMENT_FACTOR'] must be positive, got {factor}"
            )

        time_zone = opts.get("TIME_ZONE", DEFAULT_TIME_ZONE)
        try:
            ZoneInfo(time_zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ImproperlyConfigured(f"Unknown RIDE_ANALYTICS['TIME_ZONE']: {time_zone!r}")

        buckets = opts.get("DISTANCE_BUCKETS")
        if buckets:
            buckets = tuple(DistanceBucket(label, lo, hi) for label, lo, hi in buckets)
        else:
            buckets = DEFAULT_DISTANCE_BUCKETS

        logger.debug("ride analytics config: factor=%s zone=%s buckets=%d", factor, time_zone, len(buckets))
        return cls(
            distance_adjustment_factor=factor,
            min_ride_minutes=float(opts.get("MIN_RIDE_MINUTES", DEFAULT_MIN_RIDE_MINUTES)),
            time_zone=time_zone,
            distance_buckets=buckets,
        )


DEFAULT_CONFIG = AnalyticsConfig()
