import gzip
import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from rides.aggregates import (
    compute_distance_histogram,
    compute_endpoint_counts,
    compute_favorite_bike,
    compute_hourly_heatmap,
    compute_monthly_stats,
    compute_segment_bounds,
    compute_summary_stats,
)
from rides.config import AnalyticsConfig
from rides.extract import account_items, extract_rental_rides, extract_ride_segments
from rides.filters import filter_by_date_range, parse_day
from rides.serializers import (
    DistanceHistogramBinSerializer,
    EndpointCountSerializer,
    FavoriteBikeSerializer,
    HourlyHeatmapSerializer,
    MonthlyStatsSerializer,
    RideSegmentSerializer,
    SummaryStatsSerializer,
)

VIEWS = ("summary", "monthly", "heatmap", "histogram", "favorite_bike", "segments")


def _read_batch(path):
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8") as f:
            return json.load(f)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _segments_view(segments):
    endpoints = compute_endpoint_counts(segments)
    return {
        "items": RideSegmentSerializer(segments, many=True).data,
        "bounds": compute_segment_bounds(segments),
        "start_points": EndpointCountSerializer(endpoints["start"], many=True).data,
        "end_points": EndpointCountSerializer(endpoints["end"], many=True).data,
    }


class Command(BaseCommand):
    help = "Derive ride statistics from a downloaded Nextbike list.json batch and print them as JSON."

    def add_arguments(self, parser):
        parser.add_argument("--path", required=True, help="Path to list.json (or .json.gz, or a bare item array)")
        parser.add_argument("--start", help="First day to include, YYYY-MM-DD")
        parser.add_argument("--end", help="Last day to include, YYYY-MM-DD")
        parser.add_argument("--views", default=",".join(VIEWS), help=f"Comma list of views: {', '.join(VIEWS)}")
        parser.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with this indent")

    def handle(self, *args, **opts):
        batch_path = Path(opts["path"])
        if not batch_path.exists():
            raise CommandError(f"File {batch_path} does not exist")

        views = [v.strip() for v in opts["views"].split(",") if v.strip()]
        unknown = [v for v in views if v not in VIEWS]
        if unknown:
            raise CommandError(f"Unknown views: {unknown}. Choose from {list(VIEWS)}")

        try:
            payload = _read_batch(batch_path)
        except (UnicodeDecodeError, json.JSONDecodeError, OSError) as e:
            raise CommandError(f"Could not read {batch_path.name}: {e}")

        config = AnalyticsConfig.from_settings()
        items = account_items(payload)
        rides = extract_rental_rides(items, config)
        segments = extract_ride_segments(items, config)

        try:
            start = parse_day(opts["start"])
            end = parse_day(opts["end"])
        except (TypeError, ValueError) as e:
            raise CommandError(f"Invalid date range: {e}")
        if start and end and start > end:
            raise CommandError(f"--start {start} is after --end {end}")

        rides = filter_by_date_range(rides, start, end)
        segments = filter_by_date_range(segments, start, end)

        out = {}
        if "summary" in views:
            out["summary"] = SummaryStatsSerializer(compute_summary_stats(rides)).data
        if "monthly" in views:
            out["monthly"] = MonthlyStatsSerializer(compute_monthly_stats(rides), many=True).data
        if "heatmap" in views:
            out["heatmap"] = HourlyHeatmapSerializer(compute_hourly_heatmap(rides)).data
        if "histogram" in views:
            out["histogram"] = DistanceHistogramBinSerializer(
                compute_distance_histogram(rides, config.distance_buckets), many=True
            ).data
        if "favorite_bike" in views:
            favorite = compute_favorite_bike(rides)
            out["favorite_bike"] = FavoriteBikeSerializer(favorite).data if favorite else None
        if "segments" in views:
            out["segments"] = _segments_view(segments)

        self.stdout.write(json.dumps(out, indent=opts["indent"], ensure_ascii=False))
        # summary line on stderr so stdout stays a single JSON document
        self.stderr.write(
            f"Analysed {len(rides)} rides and {len(segments)} segments from {batch_path.name}.",
            style_func=self.style.SUCCESS,
        )
