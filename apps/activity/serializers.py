from rest_framework import serializers

from apps.activity.models import ActivityType
from apps.activity.services import DEFAULT_FEED_LIMIT


class ActivityFeedQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the activity feed.

    Out-of-range limits are clamped by the service rather than rejected.
    """

    limit = serializers.IntegerField(required=False, default=DEFAULT_FEED_LIMIT)


class ActivityItemSerializer(serializers.Serializer):
    """One rendered feed entry."""

    id = serializers.IntegerField()
    type = serializers.ChoiceField(choices=ActivityType.choices)
    group_id = serializers.IntegerField()
    group_name = serializers.CharField()
    title = serializers.CharField()
    detail = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True, coerce_to_string=False)
    currency = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    date_label = serializers.CharField()
