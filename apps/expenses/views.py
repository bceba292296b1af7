from django.db.models import Prefetch
from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Expense, ExpenseShare
from .permissions import IsGroupMemberForExpenses
from .serializers import (
    ExpenseSerializer,
    ExpenseCreateSerializer,
    ExpenseUpdateSerializer,
    GroupFilterSerializer,
    SettlementSerializer,
    SettlementCreateSerializer,
)

from apps.currency.exceptions import ExchangeRateUnavailableError
from apps.currency.services import MissingExchangeRateError
from apps.expenses.services import (
    create_expense,
    update_expense,
    delete_expense,
    record_settlement,
    get_group_settlements,
    export_group_expenses_csv,
    # Exceptions
    ExpenseNotFoundError,
    InvalidSplitError,
    InvalidMemberError,
    FutureDateError,
    InvalidSettlementError,
)
from apps.groups.services import (
    get_group_for_member,
    GroupNotFoundError,
    NotMemberError,
    GroupArchivedError,
)


INVALID_INPUT_ERRORS = (InvalidSplitError, InvalidMemberError, FutureDateError, InvalidSettlementError)

group_parameter = OpenApiParameter('group', OpenApiTypes.INT, required=True, description='Group ID')


def _member_group(group_id, user):
    """Return ``(group, None)`` or ``(None, error response)``."""
    try:
        return get_group_for_member(group_id=group_id, user=user), None
    except GroupNotFoundError as e:
        return None, Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except NotMemberError as e:
        return None, Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)


class ExpensePagination(PageNumberPagination):
    """Custom pagination for expenses."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ExpenseViewSet(viewsets.ModelViewSet):
    """
    ViewSet for expenses and settlements.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Expenses of the user's groups (``?group=<id>`` to narrow)
    create: Record an expense with an even or custom split
    retrieve: Get an expense with its shares
    partial_update: Edit an expense
    destroy: Delete an expense
    """

    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, IsGroupMemberForExpenses]
    pagination_class = ExpensePagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        """Return only expenses of groups where user is a member."""
        queryset = (
            Expense.objects
            .filter(group__members__user=self.request.user)
            .select_related('group', 'paid_by__user')
            .prefetch_related(
                Prefetch('shares', queryset=ExpenseShare.objects.select_related('member__user'))
            )
            .order_by('-created_at', '-id')
        )

        if self.action == 'list' and 'group' in self.request.query_params:
            filter_serializer = GroupFilterSerializer(data=self.request.query_params)
            filter_serializer.is_valid(raise_exception=True)
            queryset = queryset.filter(group_id=filter_serializer.validated_data['group'])

        return queryset

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return ExpenseCreateSerializer
        elif self.action == 'partial_update':
            return ExpenseUpdateSerializer
        return ExpenseSerializer

    def _expense_response(self, expense, status_code=status.HTTP_200_OK):
        expense = self.get_queryset().get(pk=expense.pk)
        return Response(ExpenseSerializer(expense).data, status=status_code)

    @extend_schema(request=ExpenseCreateSerializer, responses={201: ExpenseSerializer})
    def create(self, request, *args, **kwargs):
        """Record an expense."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = dict(serializer.validated_data)
        group, error = _member_group(data.pop('group'), request.user)
        if error:
            return error

        try:
            expense = create_expense(group=group, actor=request.user, **data)
        except GroupArchivedError:
            return Response(
                {'error': 'Cannot add expenses to archived groups. Please unarchive the group first.'},
                status=status.HTTP_403_FORBIDDEN
            )
        except INVALID_INPUT_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except MissingExchangeRateError:
            raise ExchangeRateUnavailableError()

        return self._expense_response(expense, status.HTTP_201_CREATED)

    @extend_schema(request=ExpenseUpdateSerializer, responses={200: ExpenseSerializer})
    def partial_update(self, request, *args, **kwargs):
        """Edit an expense; shares are rebuilt when members change."""
        expense = self.get_object()
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            expense = update_expense(expense_id=expense.id, user=request.user, **serializer.validated_data)
        except GroupArchivedError:
            return Response(
                {'error': 'Cannot edit expenses in archived groups. Please unarchive the group first.'},
                status=status.HTTP_403_FORBIDDEN
            )
        except INVALID_INPUT_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except MissingExchangeRateError:
            raise ExchangeRateUnavailableError()

        return self._expense_response(expense)

    def destroy(self, request, *args, **kwargs):
        """Delete an expense."""
        expense = self.get_object()

        try:
            delete_expense(expense_id=expense.id, user=request.user)
        except ExpenseNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except GroupArchivedError:
            return Response(
                {'error': 'Cannot delete expenses in archived groups. Please unarchive the group first.'},
                status=status.HTTP_403_FORBIDDEN
            )

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        parameters=[group_parameter],
        responses={(200, 'text/csv'): OpenApiTypes.STR},
    )
    @action(detail=False, methods=['get'])
    def export(self, request):
        """
        Download the group's expenses as CSV.

        GET /api/expenses/export/?group={id}
        """
        filter_serializer = GroupFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        group, error = _member_group(filter_serializer.validated_data['group'], request.user)
        if error:
            return error

        filename, content = export_group_expenses_csv(group=group)

        response = HttpResponse(content, content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    @extend_schema(
        methods=['GET'],
        parameters=[group_parameter],
        responses={200: SettlementSerializer(many=True)},
    )
    @extend_schema(
        methods=['POST'],
        request=SettlementCreateSerializer,
        responses={201: SettlementSerializer},
    )
    @action(detail=False, methods=['get', 'post'])
    def settlements(self, request):
        """
        List a group's settlements, or record one.

        GET  /api/expenses/settlements/?group={id}
        POST /api/expenses/settlements/
        """
        if request.method == 'GET':
            filter_serializer = GroupFilterSerializer(data=request.query_params)
            filter_serializer.is_valid(raise_exception=True)

            group, error = _member_group(filter_serializer.validated_data['group'], request.user)
            if error:
                return error

            settlements = get_group_settlements(group=group)
            return Response(SettlementSerializer(settlements, many=True).data)

        serializer = SettlementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        group, error = _member_group(data['group'], request.user)
        if error:
            return error

        try:
            settlement = record_settlement(
                group=group,
                actor=request.user,
                from_member_id=data['from_member'],
                to_member_id=data['to_member'],
                amount=data['amount'],
                currency=data.get('currency'),
            )
        except GroupArchivedError:
            return Response(
                {'error': 'Cannot settle debts in archived groups. Please unarchive the group first.'},
                status=status.HTTP_403_FORBIDDEN
            )
        except INVALID_INPUT_ERRORS as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except MissingExchangeRateError:
            raise ExchangeRateUnavailableError()

        return Response(SettlementSerializer(settlement).data, status=status.HTTP_201_CREATED)
