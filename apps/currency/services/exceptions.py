"""Domain-specific exceptions for currency services."""


class CurrencyServiceError(Exception):
    """Base exception for currency services."""
    pass


class MissingExchangeRateError(CurrencyServiceError):
    """Raised when a conversion needs a currency the rate table lacks."""

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"No exchange rate available for {currency}")


class RateFeedError(CurrencyServiceError):
    """Raised when the rate feed response cannot be turned into a rate table."""
    pass
