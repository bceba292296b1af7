from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'data', 'read', 'created_at']
        read_only_fields = fields


class UnreadCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()


class AcceptedInvitationSerializer(serializers.Serializer):
    """Membership created (or found) by accepting an invitation."""

    group_id = serializers.IntegerField(source='group.id')
    group_name = serializers.CharField(source='group.name')
    member_id = serializers.IntegerField(source='id')


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
