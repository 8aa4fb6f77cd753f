class MarketDataError(Exception):
    """An upstream market data provider failed or returned unusable data."""


class MarketDataConfigError(MarketDataError):
    """A provider is not configured (e.g. missing API key)."""


class SeriesNotFound(MarketDataError):
    """No price history is available for the requested symbol."""


class ProviderRejectedRequest(MarketDataError):
    """The provider answered but refused the request (e.g. unknown symbol)."""
