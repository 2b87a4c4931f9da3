"""Exchange client interface and the Binance Spot implementation."""

from .base import ExchangeClient
from .binance import BinanceSpotClient

__all__ = ["ExchangeClient", "BinanceSpotClient"]
