import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema

from apps.currency.exceptions import ExchangeRateUnavailableError
from apps.currency.services import MissingExchangeRateError
from apps.groups.services import get_group_for_member, GroupNotFoundError, NotMemberError
from .balances import get_group_balances
from .permissions import IsGroupMemberForBalances
from .serializers import MemberBalanceSerializer, ErrorSerializer

logger = logging.getLogger(__name__)


@extend_schema(
    responses={
        200: MemberBalanceSerializer(many=True),
        403: ErrorSerializer,
        404: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="Net balance of every member, per currency and in the group's base currency.",
    tags=['balances'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsGroupMemberForBalances])
def group_balances(request, group_id):
    """Group balances - thin HTTP handler."""
    try:
        group = get_group_for_member(group_id=group_id, user=request.user)
    except GroupNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except NotMemberError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    try:
        balances = get_group_balances(group=group)
    except MissingExchangeRateError as e:
        logger.error("Cannot compute balances for group %s: %s", group.id, e)
        raise ExchangeRateUnavailableError()

    return Response(MemberBalanceSerializer(balances, many=True).data)
