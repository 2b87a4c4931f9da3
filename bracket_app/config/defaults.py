"""Default configuration parameters for the bracket trading assistant."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExchangeParams:
    """Exchange REST endpoint parameters."""
    base_url: str = "https://api.binance.com"
    recv_window: int = 5000                          # ms a signed request stays valid
    timeout_seconds: float = 5.0


@dataclass(frozen=True)
class TradingParams:
    """Symbol and indicator parameters."""
    quote_asset: str = "USDT"                        # Appended to base asset to form the pair
    default_symbol: str = "BNBUSDT"                  # rsi command symbol when none is given
    interval: str = "15m"
    rsi_period: int = 14
    kline_limit: int = 500


@dataclass(frozen=True)
class ThresholdParams:
    """Bracket percentages, all expressed in percent."""
    price_update_trigger: float = 0.5                # Rise that warrants moving the bracket
    take_profit_percentage: float = 50.0             # Upper leg above reference price
    stop_loss_percentage: float = 0.5                # Lower leg below reference price


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class ExchangeCredentials:
    """API key pair; the secret is kept out of repr."""
    api_key: str = ""
    api_secret: str = field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key and self.api_secret)


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    exchange: ExchangeParams
    trading: TradingParams
    thresholds: ThresholdParams
    logging: LoggingParams


@dataclass(frozen=True)
class AppConfig(DefaultConfig):
    """Resolved configuration handed to the trading engine."""
    credentials: ExchangeCredentials = field(default_factory=ExchangeCredentials)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        exchange=ExchangeParams(),
        trading=TradingParams(),
        thresholds=ThresholdParams(),
        logging=LoggingParams(),
    )
