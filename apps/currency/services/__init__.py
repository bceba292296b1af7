"""Services for currency conversion and exchange rates."""

from .exceptions import (
    CurrencyServiceError,
    MissingExchangeRateError,
    RateFeedError,
)
from .exchange_rates import (
    ANCHOR_CURRENCY,
    CENT,
    DEFAULT_CURRENCY,
    FALLBACK_RATES,
    SUPPORTED_CURRENCIES,
    ExchangeRateProvider,
    RateCache,
    convert,
    get_exchange_rate_provider,
    get_exchange_rates,
    missing_currencies,
    normalize_currency,
    parse_ecb_rates,
    rate_between,
    round_money,
)

__all__ = [
    # Exceptions
    'CurrencyServiceError',
    'MissingExchangeRateError',
    'RateFeedError',
    # Constants
    'ANCHOR_CURRENCY',
    'CENT',
    'DEFAULT_CURRENCY',
    'FALLBACK_RATES',
    'SUPPORTED_CURRENCIES',
    # Provider
    'ExchangeRateProvider',
    'RateCache',
    'get_exchange_rate_provider',
    'get_exchange_rates',
    # Conversion helpers
    'convert',
    'missing_currencies',
    'normalize_currency',
    'parse_ecb_rates',
    'rate_between',
    'round_money',
]
