"""
Exchange Rate Provider
======================

Supplies a currency -> rate table anchored at EUR (``EUR == 1``) and the
conversion helpers built on top of it.

The table comes from the ECB daily reference feed and is cached for a fixed
refresh interval (24 hours by default). When the feed cannot be fetched or
parsed the provider keeps serving the previous table, even if it is stale,
and falls back to a small static table when nothing was ever fetched.

Classes:
    RateCache: Holds the last fetched table and when it was fetched.
    ExchangeRateProvider: Fetches, parses and caches the rate table.

Example:
    Converting an expense into the group's base currency::

        from apps.currency.services import get_exchange_rates, convert

        rates = get_exchange_rates()
        amount_eur = convert(Decimal('100.00'), 'USD', 'EUR', rates)

Note:
    The process-wide provider returned by ``get_exchange_rate_provider()``
    is shared between requests without a lock. Concurrent refreshes may both
    hit the feed; the last one to finish wins, which is harmless given the
    24 hour staleness budget.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Mapping, Optional
from xml.etree import ElementTree

import httpx
from django.conf import settings
from django.utils import timezone

from .exceptions import MissingExchangeRateError, RateFeedError

logger = logging.getLogger(__name__)


ANCHOR_CURRENCY = 'EUR'
DEFAULT_CURRENCY = 'EUR'

ECB_DAILY_RATES_URL = 'https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml'
DEFAULT_REFRESH_INTERVAL = timedelta(hours=24)
DEFAULT_TIMEOUT = 10.0

CENT = Decimal('0.01')

FALLBACK_RATES: Dict[str, Decimal] = {
    'EUR': Decimal('1'),
    'USD': Decimal('1.1'),
    'GBP': Decimal('0.85'),
    'JPY': Decimal('130'),
}

SUPPORTED_CURRENCIES = [
    'EUR', 'USD', 'GBP', 'JPY', 'CHF', 'CAD', 'AUD', 'NZD', 'SEK', 'NOK',
    'DKK', 'PLN', 'CZK', 'HUF', 'RON', 'BGN', 'HRK', 'RUB', 'TRY', 'BRL',
    'CNY', 'INR', 'IDR', 'KRW', 'MXN', 'MYR', 'PHP', 'SGD', 'THB', 'ZAR',
]

Rates = Mapping[str, Decimal]


def normalize_currency(code: Optional[str], default: str = DEFAULT_CURRENCY) -> str:
    """
    Return a canonical ISO 4217 code, or ``default`` when none is given.

    This is the only place where a missing currency is defaulted.

    Example:
        >>> normalize_currency(' usd ')
        'USD'
        >>> normalize_currency(None, default='GBP')
        'GBP'
    """
    if code is None:
        return default
    code = str(code).strip().upper()
    return code or default


def round_money(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    return _as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _rate_for(currency: str, rates: Rates) -> Decimal:
    if currency == ANCHOR_CURRENCY:
        return Decimal('1')
    try:
        return _as_decimal(rates[currency])
    except KeyError:
        raise MissingExchangeRateError(currency)


def convert(amount, from_currency: str, to_currency: str, rates: Rates):
    """
    Convert ``amount`` between two currencies through the EUR anchor.

    Same-currency conversions return ``amount`` untouched. Everything else is
    rounded to 2 decimal places (half away from zero).

    Args:
        amount: Amount in ``from_currency`` (Decimal, int, float or str).
        from_currency: ISO code of the amount.
        to_currency: ISO code to convert into.
        rates: Table of units per 1 EUR.

    Returns:
        Decimal amount in ``to_currency``.

    Raises:
        MissingExchangeRateError: If a non-anchor currency is not in ``rates``.

    Example:
        >>> convert(Decimal('100'), 'USD', 'EUR', {'EUR': 1, 'USD': Decimal('1.25')})
        Decimal('80.00')
    """
    if from_currency == to_currency:
        return amount

    amount = _as_decimal(amount)

    if from_currency == ANCHOR_CURRENCY:
        amount_in_anchor = amount
    else:
        amount_in_anchor = amount / _rate_for(from_currency, rates)

    if to_currency == ANCHOR_CURRENCY:
        converted = amount_in_anchor
    else:
        converted = amount_in_anchor * _rate_for(to_currency, rates)

    return round_money(converted)


def rate_between(from_currency: str, to_currency: str, rates: Rates) -> Decimal:
    """
    Return the unrounded factor that turns ``from_currency`` into ``to_currency``.

    Persisted next to expenses and settlements so historical conversions do
    not move when the live table changes.

    Raises:
        MissingExchangeRateError: If a non-anchor currency is not in ``rates``.
    """
    if from_currency == to_currency:
        return Decimal('1')
    return _rate_for(to_currency, rates) / _rate_for(from_currency, rates)


def missing_currencies(currencies: Iterable[str], rates: Rates) -> List[str]:
    """Return the codes in ``currencies`` that ``rates`` cannot convert, sorted."""
    return sorted({
        code for code in currencies
        if code != ANCHOR_CURRENCY and code not in rates
    })


def parse_ecb_rates(xml_text: str) -> Dict[str, Decimal]:
    """
    Parse the ECB daily reference feed into a rate table.

    The feed nests ``<Cube currency='USD' rate='1.0823'/>`` elements under a
    dated ``<Cube>``; namespaces are ignored.

    Raises:
        RateFeedError: If the document is malformed, holds no rates, or holds
            a rate that is not a positive finite number.
    """
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as e:
        raise RateFeedError(f"Malformed rate feed: {e}")

    rates: Dict[str, Decimal] = {ANCHOR_CURRENCY: Decimal('1')}
    for element in root.iter():
        currency = element.get('currency')
        rate = element.get('rate')
        if not currency or not rate:
            continue
        try:
            value = Decimal(rate)
        except InvalidOperation:
            raise RateFeedError(f"Invalid rate {rate!r} for {currency}")
        if not value.is_finite() or value <= 0:
            raise RateFeedError(f"Invalid rate {rate!r} for {currency}")
        rates[currency.upper()] = value

    if len(rates) == 1:
        raise RateFeedError("Rate feed contained no currencies")

    return rates


@dataclass
class RateCache:
    """Last fetched rate table and the moment it was fetched."""

    rates: Optional[Dict[str, Decimal]] = None
    fetched_at: Optional[datetime] = None

    def is_fresh(self, now: datetime, max_age: timedelta) -> bool:
        if self.rates is None or self.fetched_at is None:
            return False
        return now - self.fetched_at < max_age

    def store(self, rates: Mapping[str, Decimal], now: datetime) -> None:
        self.rates = dict(rates)
        self.fetched_at = now


@dataclass
class ExchangeRateProvider:
    """
    Fetches and caches the daily rate table.

    Each instance owns its cache and clock, so tests can build isolated
    providers and move time forward explicitly.

    Attributes:
        source_url: URL of the ECB daily XML feed.
        timeout: Seconds before an HTTP request is abandoned.
        refresh_interval: Maximum age of the cached table.
        cache: The ``RateCache`` holding the last good table.
        clock: Callable returning the current aware datetime.
    """

    source_url: str = ECB_DAILY_RATES_URL
    timeout: float = DEFAULT_TIMEOUT
    refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL
    cache: RateCache = field(default_factory=RateCache)
    clock: Callable[[], datetime] = timezone.now

    def get_rates(self) -> Dict[str, Decimal]:
        """
        Return the current rate table.

        Serves the cache while it is younger than ``refresh_interval``;
        otherwise fetches a new table. Fetch failures are logged and answered
        with the stale cache, or with ``FALLBACK_RATES`` when there is none.
        """
        now = self.clock()

        if self.cache.is_fresh(now, self.refresh_interval):
            return dict(self.cache.rates)

        try:
            rates = self._fetch()
        except (httpx.HTTPError, httpx.InvalidURL, RateFeedError) as e:
            if self.cache.rates is not None:
                logger.warning("Exchange rate refresh failed, serving stale rates: %s", e)
                return dict(self.cache.rates)
            logger.warning("Exchange rate refresh failed, serving fallback rates: %s", e)
            return dict(FALLBACK_RATES)

        self.cache.store(rates, now)
        logger.info("Refreshed exchange rates for %d currencies", len(rates))
        return dict(rates)

    def _fetch(self) -> Dict[str, Decimal]:
        response = httpx.get(self.source_url, timeout=self.timeout)
        response.raise_for_status()
        return parse_ecb_rates(response.text)


@lru_cache(maxsize=None)
def get_exchange_rate_provider() -> ExchangeRateProvider:
    """Return the process-wide provider configured from ``settings.EXCHANGE_RATES``."""
    options = getattr(settings, 'EXCHANGE_RATES', {})
    return ExchangeRateProvider(
        source_url=options.get('SOURCE_URL', ECB_DAILY_RATES_URL),
        timeout=float(options.get('TIMEOUT', DEFAULT_TIMEOUT)),
        refresh_interval=timedelta(hours=options.get('REFRESH_HOURS', 24)),
    )


def get_exchange_rates() -> Dict[str, Decimal]:
    """Shortcut for ``get_exchange_rate_provider().get_rates()``."""
    return get_exchange_rate_provider().get_rates()
