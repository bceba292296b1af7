"""
HTTP-facing exceptions for currency conversion.

Raised by views that need a rate the provider cannot supply.
"""
from rest_framework.exceptions import APIException


class ExchangeRateUnavailableError(APIException):
    """A conversion needed a currency missing from the rate table."""
    status_code = 503
    default_detail = 'Exchange rate unavailable. Please try again later.'
    default_code = 'exchange_rate_unavailable'
