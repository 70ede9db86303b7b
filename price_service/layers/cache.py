"""
Layer 2 – 缓存层
进程内内存缓存，键为 "<粒度>_<大写代码>"，例如 DAILY_IBM。

同一个键在未命中时只会有一次正在进行的获取（single-flight）：
首个调用方负责执行 fetch_fn，并发的其他调用方等待同一个 Future。
获取失败不会写入缓存，异常会传递给所有等待方，下一次调用重新获取。

已知限制：条目没有 TTL、没有淘汰策略、没有容量上限，
只能通过 invalidate / clear 显式移除。
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional

from price_service.models.response import CacheStats
from price_service.models.series import Granularity, PriceSeries

logger = logging.getLogger(__name__)


def make_cache_key(granularity: Granularity, symbol: str) -> str:
    """生成规范化缓存键（代码大小写不敏感）"""
    return f"{Granularity(granularity).value}_{symbol.upper()}"


class CacheLayer:
    """线程安全的单飞缓存"""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, PriceSeries] = {}
        self._in_flight: Dict[str, Future] = {}

    def get_or_compute(
        self, key: str, fetch_fn: Callable[[], PriceSeries]
    ) -> PriceSeries:
        """命中则直接返回；未命中时保证同一个键最多只执行一次 fetch_fn"""
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                logger.debug(f"缓存命中: {key}")
                return cached
            future = self._in_flight.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._in_flight[key] = future

        if not is_owner:
            logger.debug(f"等待进行中的获取: {key}")
            return future.result()

        logger.debug(f"缓存未命中: {key}，调用数据提供商")
        try:
            series = fetch_fn()
        except BaseException as exc:
            # 含 KeyboardInterrupt / SystemExit，否则该键会一直处于进行中
            with self._lock:
                del self._in_flight[key]
            future.set_exception(exc)
            logger.debug(f"获取失败，不写入缓存: {key}")
            raise

        with self._lock:
            self._entries[key] = series
            del self._in_flight[key]
        future.set_result(series)
        return series

    def get(self, key: str) -> Optional[PriceSeries]:
        with self._lock:
            return self._entries.get(key)

    def invalidate(self, key: str) -> bool:
        """移除单个条目，不存在时无操作；返回是否确实移除"""
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.info(f"缓存已失效: {key}")
        return removed

    def clear(self) -> int:
        """清空全部条目，返回清除的数量"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.warning(f"缓存已清空（{count} 条）")
        return count

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                in_flight=len(self._in_flight),
                keys=sorted(self._entries),
            )


# ── 模块级别单例 ──────────────────────────────────────────
_cache: Optional[CacheLayer] = None
_cache_init_lock = threading.Lock()


def get_cache_layer() -> CacheLayer:
    global _cache
    if _cache is None:
        # 首批并发请求必须拿到同一个实例
        with _cache_init_lock:
            if _cache is None:
                _cache = CacheLayer()
    return _cache
