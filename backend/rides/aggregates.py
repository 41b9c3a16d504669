"""
Derived views over extracted rides and segments.

Every function is pure: same collection in, same value out, no shared state,
so any subset may be computed, in any order, on every date-range change.
"""
from collections import Counter
from dataclasses import asdict
import logging

import pandas as pd

from .config import DEFAULT_DISTANCE_BUCKETS
from .models import (
    DistanceHistogramBin,
    EndpointCount,
    FavoriteBikeResult,
    HourlyHeatmap,
    HourlyHeatmapCell,
    MonthlyStats,
    SummaryStats,
)

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

RIDE_COLUMNS = ["day_key", "month_key", "weekday", "hour", "distance_km", "duration_minutes", "bike_id"]


# -----------------------
# Utilities
# -----------------------
def _rides_frame(rides):
    return pd.DataFrame(
        [
            (r.day_key, r.month_key, r.weekday, r.hour, r.distance_km, r.duration_minutes, r.bike_id)
            for r in rides
        ],
        columns=RIDE_COLUMNS,
    )


def _bike_sort_key(bike_id):
    # numeric ids compare as numbers, anything else after them as text
    if bike_id.isdigit():
        return (0, int(bike_id), bike_id)
    return (1, 0, bike_id)


def compute_daily_totals(rides):
    """Distance, duration and trip count per ride day, indexed by ``day_key``."""
    frame = _rides_frame(rides)
    return frame.groupby("day_key", sort=True).agg(
        distance_km=("distance_km", "sum"),
        duration_minutes=("duration_minutes", "sum"),
        trips=("distance_km", "size"),
    )


# -----------------------
# Summary / monthly
# -----------------------
def compute_summary_stats(rides):
    """
    Totals plus per-ride-day averages.

    A ride day is a day with at least one ride, so the averages describe the
    days the user actually rode rather than the whole calendar span.
    """
    rides = list(rides)
    if not rides:
        return SummaryStats()

    per_day = compute_daily_totals(rides)
    ride_days = per_day[per_day["trips"] > 0]
    ride_day_count = len(ride_days) or 1

    return SummaryStats(
        total_rides=len(rides),
        total_distance_km=float(sum(r.distance_km for r in rides)),
        total_duration_minutes=float(sum(r.duration_minutes for r in rides)),
        avg_distance_per_ride_day_km=float(ride_days["distance_km"].sum()) / ride_day_count,
        avg_trips_per_ride_day=len(rides) / ride_day_count,
        avg_duration_per_ride_day_minutes=float(ride_days["duration_minutes"].sum()) / ride_day_count,
    )


def compute_monthly_stats(rides):
    """One ``MonthlyStats`` per month with rides, ascending by ``YYYY-MM``. Empty months are absent."""
    rides = list(rides)
    if not rides:
        return []

    positions = _rides_frame(rides).groupby("month_key").indices
    out = []
    for month_key in sorted(positions):
        month_rides = [rides[i] for i in positions[month_key]]
        out.append(MonthlyStats(month_key=month_key, **asdict(compute_summary_stats(month_rides))))
    return out


# -----------------------
# Heatmap
# -----------------------
def compute_hourly_heatmap(rides):
    """
    Summed distance per (weekday, hour) of ride start, only for non-empty buckets.

    ``max_distance_km`` is the largest cell, for colour scaling.
    """
    rides = list(rides)
    if not rides:
        return HourlyHeatmap()

    sums = _rides_frame(rides).groupby(["weekday", "hour"], sort=True)["distance_km"].sum()
    cells = [
        HourlyHeatmapCell(weekday=int(weekday), hour=int(hour), distance_km=float(km))
        for (weekday, hour), km in sums.items()
    ]
    max_distance_km = max([0.0] + [c.distance_km for c in cells])
    return HourlyHeatmap(cells=cells, max_distance_km=max_distance_km)


def heatmap_matrix(cells):
    """Dense 7x24 grid (Sun..Sat rows, hour columns) from sparse cells, rounded to 2 decimals."""
    matrix = [[0.0 for _ in range(24)] for _ in range(7)]
    for cell in cells:
        if 0 <= cell.weekday < 7 and 0 <= cell.hour < 24:
            matrix[cell.weekday][cell.hour] += cell.distance_km
    return [[round(v, 2) for v in row] for row in matrix]


# -----------------------
# Histogram
# -----------------------
def compute_distance_histogram(rides, buckets=None):
    """
    Ride counts per distance bucket, in ladder order, empty buckets omitted.

    A ride lands in the first bucket that contains it; rides no bucket
    contains (e.g. negative distances) are not counted.
    """
    buckets = tuple(buckets) if buckets is not None else DEFAULT_DISTANCE_BUCKETS

    counts = [0] * len(buckets)
    unmatched = 0
    for ride in rides:
        for i, bucket in enumerate(buckets):
            if bucket.contains(ride.distance_km):
                counts[i] += 1
                break
        else:
            unmatched += 1

    if unmatched:
        logger.debug("%d rides fell outside every distance bucket", unmatched)

    return [
        DistanceHistogramBin(bucket_label=bucket.label, count=count)
        for bucket, count in zip(buckets, counts)
        if count > 0
    ]


# -----------------------
# Bikes
# -----------------------
def compute_bike_ranking(rides, limit=None):
    """
    Bikes by number of rides, most ridden first.

    Ties go to the lowest identifier (numerically for all-digit ids), so the
    order never depends on input order.
    """
    counts = Counter(r.bike_id for r in rides if r.bike_id)
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], _bike_sort_key(kv[0])))
    if limit is not None:
        ranked = ranked[:limit]
    return [FavoriteBikeResult(bike_id=bike_id, ride_count=count) for bike_id, count in ranked]


def compute_favorite_bike(rides):
    ranking = compute_bike_ranking(rides, limit=1)
    return ranking[0] if ranking else None


# -----------------------
# Segments
# -----------------------
def compute_segment_bounds(segments):
    """``((min_lat, min_lng), (max_lat, max_lng))`` over all endpoints, or None."""
    segments = list(segments)
    if not segments:
        return None

    lats = [s.start_lat for s in segments] + [s.end_lat for s in segments]
    lngs = [s.start_lng for s in segments] + [s.end_lng for s in segments]
    return (min(lats), min(lngs)), (max(lats), max(lngs))


def _endpoint_counts(frame, lat_col, lng_col):
    grouped = (
        frame.groupby([lat_col, lng_col])
        .size()
        .reset_index(name="count")
        .sort_values(["count", lat_col, lng_col], ascending=[False, True, True])
    )
    return [
        EndpointCount(lat=float(row[lat_col]), lng=float(row[lng_col]), count=int(row["count"]))
        for _, row in grouped.iterrows()
    ]


def compute_endpoint_counts(segments):
    """
    Rides per start and per end location.

    Locations are clustered on coordinates rounded to 6 decimals (~10 cm),
    so repeated trips from the same station collapse into one point.
    """
    segments = list(segments)
    if not segments:
        return {"start": [], "end": []}

    frame = pd.DataFrame(
        [
            (round(s.start_lat, 6), round(s.start_lng, 6), round(s.end_lat, 6), round(s.end_lng, 6))
            for s in segments
        ],
        columns=["start_lat", "start_lng", "end_lat", "end_lng"],
    )
    return {
        "start": _endpoint_counts(frame, "start_lat", "start_lng"),
        "end": _endpoint_counts(frame, "end_lat", "end_lng"),
    }
