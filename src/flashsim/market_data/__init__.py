"""Reference market data."""

from flashsim.market_data.provider import KrakenTickerProvider, MarketDataProvider

__all__ = ["KrakenTickerProvider", "MarketDataProvider"]
