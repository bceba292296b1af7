from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.groups.services import GroupNotFoundError

from .serializers import (
    AcceptedInvitationSerializer,
    ErrorResponseSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from .services import (
    get_notifications,
    get_unread_count,
    mark_read,
    accept_invitation,
    decline_invitation,
    NotificationNotFoundError,
    InvalidNotificationTypeError,
)


@extend_schema(
    responses={200: NotificationSerializer(many=True)},
    description="The signed-in user's notifications, newest first.",
    tags=['notifications'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    notifications = get_notifications(user=request.user)
    return Response(NotificationSerializer(notifications, many=True).data)


@extend_schema(responses={200: UnreadCountSerializer}, tags=['notifications'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    return Response({'count': get_unread_count(user=request.user)})


@extend_schema(
    request=None,
    responses={200: NotificationSerializer, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def notification_read(request, notification_id):
    try:
        notification = mark_read(notification_id=notification_id, user=request.user)
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(NotificationSerializer(notification).data)


@extend_schema(
    request=None,
    responses={
        200: AcceptedInvitationSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Accept a group invitation and join the group.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def invitation_accept(request, notification_id):
    try:
        member = accept_invitation(notification_id=notification_id, user=request.user)
    except (NotificationNotFoundError, GroupNotFoundError) as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except InvalidNotificationTypeError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(AcceptedInvitationSerializer(member).data)


@extend_schema(
    request=None,
    responses={204: None, 404: ErrorResponseSerializer},
    description="Decline a group invitation.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def invitation_decline(request, notification_id):
    try:
        decline_invitation(notification_id=notification_id, user=request.user)
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(status=status.HTTP_204_NO_CONTENT)
