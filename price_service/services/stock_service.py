"""
行情数据服务
串联数据获取层与缓存层：根据请求参数生成缓存键，未命中时交给提供商获取
"""

import logging
import threading
from typing import Optional

from price_service.layers.acquisition import fetch_series, get_provider
from price_service.layers.cache import CacheLayer, get_cache_layer, make_cache_key
from price_service.models.response import CacheStats
from price_service.models.series import Granularity, PriceSeries
from price_service.providers import StockProvider

logger = logging.getLogger(__name__)


class StockService:
    """行情数据门面，除代码大小写归一化外不做校验或转换"""

    def __init__(
        self,
        provider: Optional[StockProvider] = None,
        cache: Optional[CacheLayer] = None,
    ):
        self._provider = provider or get_provider()
        self._cache = cache or get_cache_layer()

    @property
    def provider_name(self) -> str:
        return getattr(self._provider, "name", type(self._provider).__name__)

    # ── 四种粒度 ──────────────────────────────────────────

    def get_daily(self, symbol: str) -> PriceSeries:
        symbol = symbol.upper()
        return self._cache.get_or_compute(
            make_cache_key(Granularity.DAILY, symbol),
            lambda: self._provider.get_daily(symbol),
        )

    def get_weekly(self, symbol: str) -> PriceSeries:
        symbol = symbol.upper()
        return self._cache.get_or_compute(
            make_cache_key(Granularity.WEEKLY, symbol),
            lambda: self._provider.get_weekly(symbol),
        )

    def get_monthly(self, symbol: str) -> PriceSeries:
        symbol = symbol.upper()
        return self._cache.get_or_compute(
            make_cache_key(Granularity.MONTHLY, symbol),
            lambda: self._provider.get_monthly(symbol),
        )

    def get_intraday(self, symbol: str) -> PriceSeries:
        symbol = symbol.upper()
        return self._cache.get_or_compute(
            make_cache_key(Granularity.INTRADAY, symbol),
            lambda: self._provider.get_intraday(symbol),
        )

    def get_series(self, granularity: Granularity, symbol: str) -> PriceSeries:
        """按粒度参数获取（路由层以外的调用方使用）"""
        symbol = symbol.upper()
        return self._cache.get_or_compute(
            make_cache_key(granularity, symbol),
            lambda: fetch_series(self._provider, granularity, symbol),
        )

    # ── 缓存管理 ──────────────────────────────────────────

    def invalidate(self, granularity: Granularity, symbol: str) -> bool:
        return self._cache.invalidate(make_cache_key(granularity, symbol))

    def clear_cache(self) -> int:
        return self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()


# ── 模块级别单例 ──────────────────────────────────────────
_stock_service: Optional[StockService] = None
_service_init_lock = threading.Lock()


def get_stock_service() -> StockService:
    global _stock_service
    if _stock_service is None:
        with _service_init_lock:
            if _stock_service is None:
                _stock_service = StockService()
    return _stock_service
