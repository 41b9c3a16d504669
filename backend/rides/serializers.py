from rest_framework import serializers

from django.utils.translation import gettext_lazy as _

from .aggregates import WEEKDAY_LABELS, heatmap_matrix


# -----------------------
# Upstream input
# -----------------------
class IdentifierField(serializers.Field):
    """Integer or string identifier, passed through unchanged."""
    default_error_messages = {
        "invalid": _("An integer or string identifier is required."),
    }

    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, str)):
            self.fail("invalid")
        return data

    def to_representation(self, value):
        return value


class RawAccountItemSerializer(serializers.Serializer):
    """One entry of ``account.items`` from the Nextbike list endpoint. Every field is optional."""
    id = IdentifierField(required=False, allow_null=True)
    # exact match on "rental", so no trimming
    node = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    start_time = serializers.FloatField(required=False, allow_null=True)
    end_time = serializers.FloatField(required=False, allow_null=True)
    start_place_lat = serializers.FloatField(required=False, allow_null=True)
    start_place_lng = serializers.FloatField(required=False, allow_null=True)
    end_place_lat = serializers.FloatField(required=False, allow_null=True)
    end_place_lng = serializers.FloatField(required=False, allow_null=True)
    distance = serializers.FloatField(required=False, allow_null=True)
    distance_estimated = serializers.FloatField(required=False, allow_null=True)
    bike = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_bike(self, value):
        return value or None


# -----------------------
# Derived views
# -----------------------
class SummaryStatsSerializer(serializers.Serializer):
    total_rides = serializers.IntegerField()
    total_distance_km = serializers.FloatField()
    total_duration_minutes = serializers.FloatField()
    avg_distance_per_ride_day_km = serializers.FloatField()
    avg_trips_per_ride_day = serializers.FloatField()
    avg_duration_per_ride_day_minutes = serializers.FloatField()


class MonthlyStatsSerializer(SummaryStatsSerializer):
    month_key = serializers.CharField()


class HourlyHeatmapCellSerializer(serializers.Serializer):
    weekday = serializers.IntegerField()
    hour = serializers.IntegerField()
    distance_km = serializers.FloatField()


class HourlyHeatmapSerializer(serializers.Serializer):
    cells = HourlyHeatmapCellSerializer(many=True)
    max_distance_km = serializers.FloatField()
    matrix = serializers.SerializerMethodField()
    weekdays = serializers.SerializerMethodField()

    def get_matrix(self, obj):
        return heatmap_matrix(obj.cells)

    def get_weekdays(self, obj):
        return list(WEEKDAY_LABELS)


class DistanceHistogramBinSerializer(serializers.Serializer):
    bucket_label = serializers.CharField()
    count = serializers.IntegerField()


class FavoriteBikeSerializer(serializers.Serializer):
    bike_id = serializers.CharField()
    ride_count = serializers.IntegerField()


class RideSegmentSerializer(serializers.Serializer):
    id = IdentifierField(allow_null=True)
    start_lat = serializers.FloatField()
    start_lng = serializers.FloatField()
    end_lat = serializers.FloatField()
    end_lng = serializers.FloatField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    distance_km = serializers.FloatField()


class EndpointCountSerializer(serializers.Serializer):
    lat = serializers.FloatField()
    lng = serializers.FloatField()
    count = serializers.IntegerField()
