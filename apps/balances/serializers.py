from rest_framework import serializers


class CurrencyAmountSerializer(serializers.Serializer):
    currency = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, coerce_to_string=False)


class MemberBalanceSerializer(serializers.Serializer):
    """MemberBalance with the camelCase keys clients expect."""

    memberId = serializers.IntegerField(source='member_id')
    memberName = serializers.CharField(source='member_name')
    balance = serializers.DecimalField(max_digits=14, decimal_places=2, coerce_to_string=False)
    balanceByCurrency = CurrencyAmountSerializer(source='balance_by_currency', many=True)
    balanceInBaseCurrency = serializers.DecimalField(
        source='balance_in_base_currency',
        max_digits=14,
        decimal_places=2,
        coerce_to_string=False,
    )
    isGuest = serializers.BooleanField(source='is_guest')


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
