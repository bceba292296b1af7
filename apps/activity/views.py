from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import ActivityFeedQuerySerializer, ActivityItemSerializer
from .services import get_activity_feed


@extend_schema(
    parameters=[ActivityFeedQuerySerializer],
    responses={200: ActivityItemSerializer(many=True)},
    description="Latest activity across every group the user belongs to, newest first.",
    tags=['activity'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activity_feed(request):
    """Activity feed - thin HTTP handler."""
    query = ActivityFeedQuerySerializer(data=request.query_params)
    limit = query.validated_data['limit'] if query.is_valid() else None

    items = get_activity_feed(user=request.user, limit=limit)
    return Response(ActivityItemSerializer(items, many=True).data)
