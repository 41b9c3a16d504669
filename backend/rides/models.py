"""
Plain value records for the ride analytics pipeline.

Nothing here is persisted: every record lives for one analysis pass and is
rebuilt from the upstream batch on the next fetch.
"""
from dataclasses import dataclass, field
import datetime as dt
from typing import List, Optional, Tuple, Union


# -----------------------
# Raw upstream input
# -----------------------
@dataclass(frozen=True)
class RawAccountItem:
    # every field may be missing in the feed
    id: Optional[Union[int, str]] = None
    node: Optional[str] = None
    start_time: Optional[float] = None      # unix seconds
    end_time: Optional[float] = None
    start_place_lat: Optional[float] = None
    start_place_lng: Optional[float] = None
    end_place_lat: Optional[float] = None
    end_place_lng: Optional[float] = None
    distance: Optional[float] = None        # reported, meters
    distance_estimated: Optional[float] = None  # meters
    bike: Optional[str] = None

    @classmethod
    def from_payload(cls, payload) -> Optional["RawAccountItem"]:
        """
        Validate one upstream entry, returning None only for non-mapping payloads.

        A field that fails validation reads as absent; the rest of the entry still counts.
        """
        from .serializers import RawAccountItemSerializer

        if not isinstance(payload, dict):
            return None
        serializer = RawAccountItemSerializer(data=payload)
        if not serializer.is_valid():
            readable = {k: v for k, v in payload.items() if k not in serializer.errors}
            serializer = RawAccountItemSerializer(data=readable)
            serializer.is_valid(raise_exception=True)
        return cls(**serializer.validated_data)

    @property
    def is_rental(self) -> bool:
        return self.node == "rental"

    @property
    def coordinates(self) -> Optional[Tuple[float, float, float, float]]:
        coords = (self.start_place_lat, self.start_place_lng, self.end_place_lat, self.end_place_lng)
        if any(c is None for c in coords):
            return None
        return coords


# -----------------------
# Derived records
# -----------------------
@dataclass(frozen=True)
class RentalRide:
    start_time: dt.datetime     # aware, in the analysis time zone
    end_time: dt.datetime
    duration_minutes: float
    distance_km: float
    day_key: str                # YYYY-MM-DD
    bike_id: Optional[str] = None

    @property
    def month_key(self) -> str:
        return self.start_time.strftime("%Y-%m")

    @property
    def weekday(self) -> int:
        # 0=Sunday .. 6=Saturday
        return self.start_time.isoweekday() % 7

    @property
    def hour(self) -> int:
        return self.start_time.hour


@dataclass(frozen=True)
class RideSegment:
    id: Optional[Union[int, str]]
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    start_time: dt.datetime
    end_time: dt.datetime
    distance_km: float


# -----------------------
# Aggregates
# -----------------------
@dataclass(frozen=True)
class SummaryStats:
    total_rides: int = 0
    total_distance_km: float = 0.0
    total_duration_minutes: float = 0.0
    avg_distance_per_ride_day_km: float = 0.0
    avg_trips_per_ride_day: float = 0.0
    avg_duration_per_ride_day_minutes: float = 0.0


@dataclass(frozen=True)
class MonthlyStats(SummaryStats):
    month_key: str = ""


@dataclass(frozen=True)
class HourlyHeatmapCell:
    weekday: int    # 0=Sunday .. 6=Saturday
    hour: int       # 0..23
    distance_km: float


@dataclass(frozen=True)
class HourlyHeatmap:
    cells: List[HourlyHeatmapCell] = field(default_factory=list)
    max_distance_km: float = 0.0


@dataclass(frozen=True)
class DistanceBucket:
    label: str
    min_km: float
    max_km: Optional[float] = None  # None = open-ended

    def contains(self, distance_km: float) -> bool:
        if distance_km < self.min_km:
            return False
        return self.max_km is None or distance_km < self.max_km


@dataclass(frozen=True)
class DistanceHistogramBin:
    bucket_label: str
    count: int


@dataclass(frozen=True)
class FavoriteBikeResult:
    bike_id: str
    ride_count: int


@dataclass(frozen=True)
class EndpointCount:
    lat: float
    lng: float
    count: int
