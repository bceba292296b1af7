from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from .models import Expense, ExpenseShare, Settlement
from apps.groups.serializers import CurrencyCodeField


# =============================================================================
# Input Serializers
# =============================================================================

class GroupFilterSerializer(serializers.Serializer):
    """
    Validate the ``group`` query parameter for listing and export.

    Query Parameters:
        group (int): Group ID
    """

    group = serializers.IntegerField(min_value=1)


class CustomShareSerializer(serializers.Serializer):
    member_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


class AttachmentSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=500)
    name = serializers.CharField(max_length=200)
    type = serializers.CharField(max_length=100)


class ExpenseInputSerializer(serializers.Serializer):
    """Fields shared by expense create and update input."""

    description = serializers.CharField(max_length=200)
    note = serializers.CharField(required=False, allow_blank=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    currency = CurrencyCodeField(required=False)
    paid_by = serializers.IntegerField(required=False, min_value=1)
    shared_with = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        allow_empty=False,
    )
    custom_shares = CustomShareSerializer(many=True, required=False, allow_empty=False)
    created_at = serializers.DateTimeField(required=False)
    receipt_items = serializers.ListField(child=serializers.DictField(), required=False)
    attachments = AttachmentSerializer(many=True, required=False)

    def validate_created_at(self, value):
        if value > timezone.now():
            raise serializers.ValidationError('Expense date cannot be in the future')
        return value


class ExpenseCreateSerializer(ExpenseInputSerializer):
    """
    Validate input for recording an expense.

    Either ``shared_with`` (even split) or ``custom_shares`` is required.
    """

    group = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        if not attrs.get('shared_with') and not attrs.get('custom_shares'):
            raise serializers.ValidationError({
                'shared_with': 'Share the expense with at least one member'
            })
        return attrs


class ExpenseUpdateSerializer(ExpenseInputSerializer):
    """Validate input for partial expense updates (used with ``partial=True``)."""
    pass


class SettlementCreateSerializer(serializers.Serializer):
    group = serializers.IntegerField(min_value=1)
    from_member = serializers.IntegerField(min_value=1)
    to_member = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    currency = CurrencyCodeField(required=False)

    def validate(self, attrs):
        if attrs['from_member'] == attrs['to_member']:
            raise serializers.ValidationError({
                'to_member': 'A member cannot settle with themselves'
            })
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class ExpenseShareSerializer(serializers.ModelSerializer):
    """Serializer for expense shares."""

    member_name = serializers.CharField(source='member.display_name', read_only=True)

    class Meta:
        model = ExpenseShare
        fields = ['id', 'member', 'member_name', 'amount']
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Main serializer for expenses."""

    paid_by_name = serializers.CharField(source='paid_by.display_name', read_only=True)
    shares = ExpenseShareSerializer(many=True, read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'group',
            'description',
            'note',
            'amount',
            'currency',
            'exchange_rate',
            'paid_by',
            'paid_by_name',
            'shares',
            'receipt_items',
            'attachments',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class SettlementSerializer(serializers.ModelSerializer):
    """Serializer for settlements."""

    from_member_name = serializers.CharField(source='from_member.display_name', read_only=True)
    to_member_name = serializers.CharField(source='to_member.display_name', read_only=True)

    class Meta:
        model = Settlement
        fields = [
            'id',
            'group',
            'from_member',
            'from_member_name',
            'to_member',
            'to_member_name',
            'amount',
            'currency',
            'exchange_rate',
            'created_at',
        ]
        read_only_fields = fields
