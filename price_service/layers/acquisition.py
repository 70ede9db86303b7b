"""
Layer 1 – 数据获取层
根据配置选择行情数据提供商（Alpha Vantage / 合成数据），
并提供按粒度分发的统一入口。
"""

import logging
import threading
from typing import Optional

from price_service.config import PriceServiceSettings, settings
from price_service.models.series import Granularity, PriceSeries
from price_service.providers import AlphaVantageProvider, StockProvider, SyntheticProvider

logger = logging.getLogger(__name__)


_PROVIDER_ALIASES = {
    "synthetic": "synthetic",
    "internal": "synthetic",
    "alpha": "alphavantage",
    "alphavantage": "alphavantage",
}

_GRANULARITY_METHODS = {
    Granularity.DAILY: "get_daily",
    Granularity.WEEKLY: "get_weekly",
    Granularity.MONTHLY: "get_monthly",
    Granularity.INTRADAY: "get_intraday",
}


def create_provider(config: Optional[PriceServiceSettings] = None) -> StockProvider:
    """按 STOCK_PROVIDER 配置构造提供商，未知取值降级为合成数据"""
    config = config or settings
    requested = config.STOCK_PROVIDER.strip().lower()
    resolved = _PROVIDER_ALIASES.get(requested)
    if resolved is None:
        logger.warning(f"未知的数据提供商 '{config.STOCK_PROVIDER}'，使用合成数据")
        resolved = "synthetic"

    if resolved == "alphavantage":
        logger.info("使用 Alpha Vantage 数据提供商")
        return AlphaVantageProvider(
            api_key=config.ALPHAVANTAGE_API_KEY,
            base_url=config.ALPHAVANTAGE_BASE_URL,
            timeout=config.HTTP_TIMEOUT,
        )
    logger.info("使用合成数据提供商")
    return SyntheticProvider()


def fetch_series(provider: StockProvider, granularity: Granularity, symbol: str) -> PriceSeries:
    """按粒度调用提供商对应的方法"""
    method = getattr(provider, _GRANULARITY_METHODS[Granularity(granularity)])
    return method(symbol)


# ── 模块级别单例 ──────────────────────────────────────────
_provider: Optional[StockProvider] = None
_provider_init_lock = threading.Lock()


def get_provider() -> StockProvider:
    global _provider
    if _provider is None:
        with _provider_init_lock:
            if _provider is None:
                _provider = create_provider()
    return _provider
