import pytest
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import httpx

from apps.currency.services import exchange_rates
from apps.currency.services import (
    FALLBACK_RATES,
    ExchangeRateProvider,
    MissingExchangeRateError,
    RateCache,
    RateFeedError,
    convert,
    missing_currencies,
    normalize_currency,
    parse_ecb_rates,
    rate_between,
)


ECB_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<gesmes:Envelope xmlns:gesmes="http://www.gesmes.org/xml/2002-08-01"
                 xmlns="http://www.ecb.int/vocabulary/2002-08-01/eurofxref">
  <gesmes:subject>Reference rates</gesmes:subject>
  <Cube>
    <Cube time='2024-03-01'>
      <Cube currency='USD' rate='1.0823'/>
      <Cube currency='JPY' rate='162.39'/>
      <Cube currency='GBP' rate='0.85525'/>
    </Cube>
  </Cube>
</gesmes:Envelope>
"""

RATES = {'EUR': Decimal('1'), 'USD': Decimal('1.25'), 'GBP': Decimal('0.8')}


class DummyResponse:
    def __init__(self, text='', status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request('GET', 'https://rates.test/feed.xml')
            raise httpx.HTTPStatusError(
                f"{self.status_code} error",
                request=request,
                response=httpx.Response(self.status_code, request=request),
            )


class FakeFeed:
    """Stands in for ``httpx.get`` and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, timeout=None):
        self.calls.append((url, timeout))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock(datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def provider(clock):
    return ExchangeRateProvider(
        source_url='https://rates.test/feed.xml',
        timeout=2.5,
        cache=RateCache(),
        clock=clock,
    )


# =============================================================================
# Rate feed parsing
# =============================================================================

class TestParseEcbRates:
    """Tests for parse_ecb_rates()"""

    def test_parses_currency_cubes(self):
        """Every currency/rate cube becomes an entry, anchored at EUR."""
        rates = parse_ecb_rates(ECB_FEED)

        assert rates == {
            'EUR': Decimal('1'),
            'USD': Decimal('1.0823'),
            'JPY': Decimal('162.39'),
            'GBP': Decimal('0.85525'),
        }

    def test_malformed_document(self):
        with pytest.raises(RateFeedError):
            parse_ecb_rates('<Cube currency="USD"')

    def test_feed_without_rates(self):
        with pytest.raises(RateFeedError):
            parse_ecb_rates('<Envelope><Cube/></Envelope>')

    def test_invalid_rate_value(self):
        with pytest.raises(RateFeedError):
            parse_ecb_rates("<Cube><Cube currency='USD' rate='abc'/></Cube>")

    @pytest.mark.parametrize("rate", ["0", "-1.08", "NaN", "sNaN", "Infinity", "-Infinity"])
    def test_rate_must_be_positive_and_finite(self, rate):
        """A rate that cannot be divided by is rejected, not cached."""
        feed = f"<Cube><Cube currency='JPY' rate='162.39'/><Cube currency='USD' rate='{rate}'/></Cube>"

        with pytest.raises(RateFeedError):
            parse_ecb_rates(feed)


# =============================================================================
# Provider caching
# =============================================================================

class TestExchangeRateProvider:
    """Tests for ExchangeRateProvider.get_rates()"""

    def test_fetches_when_cache_empty(self, provider, monkeypatch):
        """First call fetches the feed with the configured URL and timeout."""
        feed = FakeFeed(DummyResponse(ECB_FEED))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        rates = provider.get_rates()

        assert rates['USD'] == Decimal('1.0823')
        assert feed.calls == [('https://rates.test/feed.xml', 2.5)]
        assert provider.cache.rates == rates

    def test_serves_cache_within_refresh_interval(self, provider, clock, monkeypatch):
        feed = FakeFeed(DummyResponse(ECB_FEED))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        provider.get_rates()
        clock.advance(hours=23, minutes=59)
        provider.get_rates()

        assert len(feed.calls) == 1

    def test_refreshes_after_24_hours(self, provider, clock, monkeypatch):
        newer = ECB_FEED.replace("rate='1.0823'", "rate='1.1000'")
        feed = FakeFeed(DummyResponse(ECB_FEED), DummyResponse(newer))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        provider.get_rates()
        clock.advance(hours=24)
        rates = provider.get_rates()

        assert len(feed.calls) == 2
        assert rates['USD'] == Decimal('1.1000')
        assert provider.cache.fetched_at == clock.now

    def test_stale_cache_on_network_error(self, provider, clock, monkeypatch):
        """A failed refresh keeps serving the previous table."""
        feed = FakeFeed(DummyResponse(ECB_FEED), httpx.ConnectError('unreachable'))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        first = provider.get_rates()
        clock.advance(days=3)
        second = provider.get_rates()

        assert second == first

    def test_fallback_on_http_error_without_cache(self, provider, monkeypatch):
        feed = FakeFeed(DummyResponse(status_code=503))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        assert provider.get_rates() == FALLBACK_RATES
        assert provider.cache.rates is None

    def test_fallback_on_timeout(self, provider, monkeypatch):
        feed = FakeFeed(httpx.ReadTimeout('too slow'))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        assert provider.get_rates() == FALLBACK_RATES

    def test_fallback_on_unparsable_feed(self, provider, monkeypatch):
        feed = FakeFeed(DummyResponse('<html>maintenance</html>'))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        assert provider.get_rates() == FALLBACK_RATES

    def test_zero_rate_keeps_previous_table(self, provider, clock, monkeypatch):
        broken = ECB_FEED.replace("rate='1.0823'", "rate='0'").replace("rate='0.85525'", "rate='NaN'")
        feed = FakeFeed(DummyResponse(ECB_FEED), DummyResponse(broken))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        first = provider.get_rates()
        clock.advance(hours=25)
        rates = provider.get_rates()

        assert rates == first
        assert convert(Decimal('10'), 'USD', 'EUR', rates) == Decimal('9.24')

    def test_fallback_on_invalid_source_url(self, provider, monkeypatch):
        feed = FakeFeed(httpx.InvalidURL("Invalid port: ':1'"))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        assert provider.get_rates() == FALLBACK_RATES

    def test_returned_table_is_a_copy(self, provider, monkeypatch):
        """Mutating the result must not corrupt the cache."""
        feed = FakeFeed(DummyResponse(ECB_FEED))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        rates = provider.get_rates()
        rates['USD'] = Decimal('999')

        assert provider.get_rates()['USD'] == Decimal('1.0823')

    def test_fallback_table_is_a_copy(self, provider, monkeypatch):
        feed = FakeFeed(httpx.ConnectError('down'))
        monkeypatch.setattr(exchange_rates.httpx, 'get', feed)

        provider.get_rates()['EUR'] = Decimal('2')

        assert FALLBACK_RATES['EUR'] == Decimal('1')

    def test_providers_do_not_share_cache(self, clock):
        seeded = ExchangeRateProvider(clock=clock)
        seeded.cache.store(RATES, clock())

        assert ExchangeRateProvider(clock=clock).cache.rates is None


class TestRateCache:
    """Tests for RateCache.is_fresh()"""

    def test_empty_cache_is_not_fresh(self, clock):
        assert RateCache().is_fresh(clock(), timedelta(hours=24)) is False

    def test_freshness_boundary(self, clock):
        cache = RateCache()
        cache.store(RATES, clock())

        assert cache.is_fresh(clock.now + timedelta(hours=23), timedelta(hours=24))
        assert not cache.is_fresh(clock.now + timedelta(hours=24), timedelta(hours=24))


# =============================================================================
# Conversion
# =============================================================================

class TestConvert:
    """Tests for convert() and rate_between()"""

    @pytest.mark.parametrize('currency', ['EUR', 'USD', 'XXX'])
    def test_same_currency_is_identity(self, currency):
        amount = Decimal('10.005')

        assert convert(amount, currency, currency, {}) is amount

    def test_to_anchor(self):
        """100 USD at 1 EUR = 1.25 USD is 80 EUR."""
        assert convert(Decimal('100'), 'USD', 'EUR', RATES) == Decimal('80.00')

    def test_from_anchor(self):
        assert convert(Decimal('80'), 'EUR', 'USD', RATES) == Decimal('100.00')

    def test_cross_rate_goes_through_anchor(self):
        assert convert(Decimal('100'), 'USD', 'GBP', RATES) == Decimal('64.00')

    def test_rounds_half_away_from_zero(self):
        rates = {'EUR': Decimal('1'), 'XYZ': Decimal('1')}

        assert convert(Decimal('0.125'), 'XYZ', 'EUR', rates) == Decimal('0.13')
        assert convert(Decimal('-0.125'), 'XYZ', 'EUR', rates) == Decimal('-0.13')

    def test_accepts_plain_numbers(self):
        assert convert(100, 'USD', 'EUR', RATES) == Decimal('80.00')

    def test_round_trip_within_a_cent(self):
        amount = Decimal('123.45')
        there = convert(amount, 'GBP', 'USD', RATES)

        assert abs(convert(there, 'USD', 'GBP', RATES) - amount) <= Decimal('0.01')

    def test_missing_rate(self):
        with pytest.raises(MissingExchangeRateError) as excinfo:
            convert(Decimal('10'), 'CHF', 'EUR', RATES)

        assert excinfo.value.currency == 'CHF'

    def test_rate_between(self):
        assert rate_between('EUR', 'USD', RATES) == Decimal('1.25')
        assert rate_between('USD', 'EUR', RATES) == Decimal('0.8')
        assert rate_between('GBP', 'GBP', {}) == Decimal('1')

    def test_rate_between_missing_rate(self):
        with pytest.raises(MissingExchangeRateError):
            rate_between('EUR', 'CHF', RATES)

    def test_missing_currencies(self):
        assert missing_currencies(['USD', 'EUR', 'CHF', 'AUD', 'CHF'], RATES) == ['AUD', 'CHF']


class TestNormalizeCurrency:
    """Tests for normalize_currency()"""

    def test_upper_cases_and_strips(self):
        assert normalize_currency(' usd ') == 'USD'

    def test_defaults(self):
        assert normalize_currency(None) == 'EUR'
        assert normalize_currency('', default='GBP') == 'GBP'
