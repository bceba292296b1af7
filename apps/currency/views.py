from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, inline_serializer

from .services import ANCHOR_CURRENCY, SUPPORTED_CURRENCIES, get_exchange_rates


@extend_schema(
    responses={
        200: inline_serializer(
            name='SupportedCurrenciesResponse',
            fields={'currencies': serializers.ListField(child=serializers.CharField())},
        ),
    },
    description="List the ISO 4217 currency codes groups and expenses may use.",
    tags=['currencies'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def supported_currencies(request):
    """List supported currencies."""
    return Response({'currencies': SUPPORTED_CURRENCIES})


@extend_schema(
    responses={
        200: inline_serializer(
            name='ExchangeRatesResponse',
            fields={
                'base': serializers.CharField(),
                'rates': serializers.DictField(child=serializers.FloatField()),
            },
        ),
    },
    description="Current exchange rates as units per 1 EUR.",
    tags=['currencies'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_rates(request):
    """Current rate table - thin HTTP handler."""
    rates = get_exchange_rates()

    return Response({
        'base': ANCHOR_CURRENCY,
        'rates': {code: float(rate) for code, rate in sorted(rates.items())},
    })
