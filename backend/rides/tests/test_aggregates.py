from django.test import SimpleTestCase

from rides.aggregates import (
    compute_bike_ranking,
    compute_daily_totals,
    compute_distance_histogram,
    compute_endpoint_counts,
    compute_favorite_bike,
    compute_hourly_heatmap,
    compute_monthly_stats,
    compute_segment_bounds,
    compute_summary_stats,
    heatmap_matrix,
)
from rides.extract import extract_rental_rides
from rides.models import DistanceBucket, HourlyHeatmapCell, SummaryStats

from .factories import rental, ride, segment


def sample_rides():
    return [
        ride("2024-01-05T08:15:00", minutes=12, km=2.5, bike_id="101"),
        ride("2024-01-05T17:40:00", minutes=20, km=4.0, bike_id="101"),
        ride("2024-01-20T09:00:00", minutes=8, km=0.6, bike_id="202"),
        ride("2024-03-02T11:30:00", minutes=45, km=12.3),
        ride("2024-03-02T11:05:00", minutes=30, km=7.1, bike_id="202"),
    ]


class SummaryStatsTests(SimpleTestCase):
    def test_empty_is_all_zero(self):
        self.assertEqual(compute_summary_stats([]), SummaryStats())

    def test_single_ride_end_to_end(self):
        stats = compute_summary_stats(extract_rental_rides([rental()]))
        self.assertEqual(stats.total_rides, 1)
        self.assertEqual(stats.total_distance_km, 2.0)
        self.assertEqual(stats.total_duration_minutes, 10.0)
        self.assertEqual(stats.avg_trips_per_ride_day, 1.0)
        self.assertEqual(stats.avg_distance_per_ride_day_km, 2.0)

    def test_ride_day_averages(self):
        stats = compute_summary_stats(sample_rides())
        # 3 ride days: 2024-01-05, 2024-01-20, 2024-03-02
        self.assertEqual(stats.total_rides, 5)
        self.assertAlmostEqual(stats.avg_trips_per_ride_day, 5 / 3)
        self.assertAlmostEqual(stats.avg_distance_per_ride_day_km, 26.5 / 3)
        self.assertAlmostEqual(stats.avg_duration_per_ride_day_minutes, 115 / 3)

    def test_total_distance_is_sum_of_ride_distances(self):
        rides = sample_rides()
        self.assertEqual(compute_summary_stats(rides).total_distance_km, sum(r.distance_km for r in rides))

    def test_idempotent(self):
        rides = sample_rides()
        self.assertEqual(compute_summary_stats(rides), compute_summary_stats(rides))


class DailyTotalsTests(SimpleTestCase):
    def test_grouped_by_day(self):
        daily = compute_daily_totals(sample_rides())
        self.assertEqual(list(daily.index), ["2024-01-05", "2024-01-20", "2024-03-02"])
        self.assertEqual(list(daily["trips"]), [2, 1, 2])
        self.assertAlmostEqual(daily.loc["2024-01-05", "distance_km"], 6.5)
        self.assertAlmostEqual(daily.loc["2024-03-02", "duration_minutes"], 75)


class MonthlyStatsTests(SimpleTestCase):
    def test_empty(self):
        self.assertEqual(compute_monthly_stats([]), [])

    def test_sparse_and_sorted(self):
        rides = list(reversed(sample_rides()))
        months = compute_monthly_stats(rides)
        # February has no rides and is absent
        self.assertEqual([m.month_key for m in months], ["2024-01", "2024-03"])
        self.assertEqual([m.total_rides for m in months], [3, 2])

    def test_each_month_is_its_own_summary(self):
        january = compute_monthly_stats(sample_rides())[0]
        self.assertAlmostEqual(january.total_distance_km, 7.1)
        self.assertAlmostEqual(january.avg_trips_per_ride_day, 1.5)

    def test_partitions_all_rides(self):
        rides = sample_rides()
        months = compute_monthly_stats(rides)
        self.assertEqual(sum(m.total_rides for m in months), compute_summary_stats(rides).total_rides)


class HourlyHeatmapTests(SimpleTestCase):
    def test_empty(self):
        heatmap = compute_hourly_heatmap([])
        self.assertEqual(heatmap.cells, [])
        self.assertEqual(heatmap.max_distance_km, 0.0)

    def test_same_weekday_and_hour_share_a_cell(self):
        heatmap = compute_hourly_heatmap(sample_rides())
        # 2024-03-02 is a Saturday; 11:30 and 11:05 land together
        saturday_11 = [c for c in heatmap.cells if (c.weekday, c.hour) == (6, 11)]
        self.assertEqual(len(saturday_11), 1)
        self.assertAlmostEqual(saturday_11[0].distance_km, 19.4)
        self.assertAlmostEqual(heatmap.max_distance_km, 19.4)

    def test_only_non_empty_cells(self):
        heatmap = compute_hourly_heatmap(sample_rides())
        # Fri 08, Fri 17, Sat 09, Sat 11
        self.assertEqual([(c.weekday, c.hour) for c in heatmap.cells], [(5, 8), (5, 17), (6, 9), (6, 11)])

    def test_matrix_fills_grid(self):
        matrix = heatmap_matrix([
            HourlyHeatmapCell(weekday=0, hour=23, distance_km=1.234),
            HourlyHeatmapCell(weekday=7, hour=1, distance_km=5.0),
        ])
        self.assertEqual(len(matrix), 7)
        self.assertTrue(all(len(row) == 24 for row in matrix))
        self.assertEqual(matrix[0][23], 1.23)
        self.assertEqual(sum(sum(row) for row in matrix), 1.23)


class DistanceHistogramTests(SimpleTestCase):
    def test_default_ladder(self):
        rides = [ride("2024-01-01T10:00:00", km=km) for km in (0.5, 1.0, 2.5, 2.9, 25.0)]
        bins = compute_distance_histogram(rides)
        self.assertEqual(
            [(b.bucket_label, b.count) for b in bins],
            [("< 1 km", 1), ("1–2 km", 1), ("2–3 km", 2), ("≥ 20 km", 1)],
        )

    def test_counts_conserved_for_non_negative_distances(self):
        rides = sample_rides()
        self.assertEqual(sum(b.count for b in compute_distance_histogram(rides)), len(rides))

    def test_unmatched_ride_dropped(self):
        rides = [ride("2024-01-01T10:00:00", km=-1.0), ride("2024-01-01T11:00:00", km=3.0)]
        bins = compute_distance_histogram(rides)
        self.assertEqual([(b.bucket_label, b.count) for b in bins], [("3–5 km", 1)])

    def test_unmatched_rides_logged(self):
        with self.assertLogs("rides.aggregates", level="DEBUG") as logs:
            compute_distance_histogram([ride("2024-01-01T10:00:00", km=-1.0)])
        self.assertIn("1 rides fell outside every distance bucket", logs.output[0])

    def test_custom_buckets_keep_ladder_order(self):
        buckets = [DistanceBucket("short", 0, 5), DistanceBucket("long", 5)]
        bins = compute_distance_histogram(sample_rides(), buckets)
        self.assertEqual([(b.bucket_label, b.count) for b in bins], [("short", 3), ("long", 2)])

    def test_empty(self):
        self.assertEqual(compute_distance_histogram([]), [])


class FavoriteBikeTests(SimpleTestCase):
    def test_most_ridden_bike(self):
        rides = sample_rides() + [ride("2024-04-01T10:00:00", bike_id="202")]
        favorite = compute_favorite_bike(rides)
        self.assertEqual((favorite.bike_id, favorite.ride_count), ("202", 3))

    def test_tie_goes_to_lowest_id(self):
        favorite = compute_favorite_bike(sample_rides())
        self.assertEqual((favorite.bike_id, favorite.ride_count), ("101", 2))

    def test_numeric_ids_compare_numerically(self):
        rides = [ride("2024-01-01T10:00:00", bike_id="10"), ride("2024-01-01T11:00:00", bike_id="9")]
        self.assertEqual(compute_favorite_bike(rides).bike_id, "9")
        self.assertEqual(compute_favorite_bike(list(reversed(rides))).bike_id, "9")

    def test_none_without_bike_ids(self):
        self.assertIsNone(compute_favorite_bike([ride("2024-01-01T10:00:00")]))
        self.assertIsNone(compute_favorite_bike([]))

    def test_ranking(self):
        ranking = compute_bike_ranking(sample_rides())
        self.assertEqual([(b.bike_id, b.ride_count) for b in ranking], [("101", 2), ("202", 2)])
        self.assertEqual(len(compute_bike_ranking(sample_rides(), limit=1)), 1)


class SegmentViewsTests(SimpleTestCase):
    def test_bounds(self):
        segments = [
            segment("2024-01-01T10:00:00", (52.50, 13.40), (52.55, 13.30)),
            segment("2024-01-02T10:00:00", (52.45, 13.45), (52.52, 13.41)),
        ]
        self.assertEqual(compute_segment_bounds(segments), ((52.45, 13.30), (52.55, 13.45)))
        self.assertIsNone(compute_segment_bounds([]))

    def test_endpoint_counts(self):
        segments = [
            segment("2024-01-01T10:00:00", (52.5, 13.4), (52.6, 13.5), id=1),
            segment("2024-01-02T10:00:00", (52.5, 13.4), (52.7, 13.6), id=2),
            segment("2024-01-03T10:00:00", (52.1, 13.1), (52.6, 13.5), id=3),
        ]
        counts = compute_endpoint_counts(segments)
        self.assertEqual([(p.lat, p.lng, p.count) for p in counts["start"]], [(52.5, 13.4, 2), (52.1, 13.1, 1)])
        self.assertEqual([(p.lat, p.lng, p.count) for p in counts["end"]], [(52.6, 13.5, 2), (52.7, 13.6, 1)])

    def test_endpoint_counts_empty(self):
        self.assertEqual(compute_endpoint_counts([]), {"start": [], "end": []})
