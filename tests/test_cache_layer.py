"""
缓存层单元测试

覆盖范围：
  - 缓存键生成（粒度 + 大写代码）
  - 命中 / 未命中 / 失效 / 清空
  - 并发单飞：同一键只执行一次获取，所有调用方拿到同一结果
  - 获取失败（含 BaseException 中断）：不写入缓存，异常传递给所有等待方，可重试
"""

import os
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from price_service.layers.cache import CacheLayer, make_cache_key
from price_service.models.series import Granularity, PriceSeries
from price_service.providers import FetchError


def _series(symbol: str = "IBM", granularity: Granularity = Granularity.DAILY) -> PriceSeries:
    return PriceSeries(
        symbol=symbol,
        granularity=granularity,
        points={"2024-01-09": 174.5, "2024-01-10": 175.25},
    )


class _Interrupted(BaseException):
    """模拟 KeyboardInterrupt / 取消等非 Exception 的中断"""


class _CountingFetch:
    """记录调用次数的获取函数"""

    def __init__(self, result=None, error=None, delay: float = 0.0):
        self.calls = 0
        self._lock = threading.Lock()
        self._result = result
        self._error = error
        self._delay = delay

    def __call__(self):
        with self._lock:
            self.calls += 1
        if self._delay:
            time.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result


# ─────────────────────────────────────────────────────────
# 1. 缓存键
# ─────────────────────────────────────────────────────────

class TestCacheKeys:
    def test_key_format(self):
        assert make_cache_key(Granularity.DAILY, "IBM") == "DAILY_IBM"

    def test_key_case_insensitive(self):
        assert make_cache_key(Granularity.WEEKLY, "aapl") == make_cache_key(Granularity.WEEKLY, "AAPL")

    def test_key_accepts_plain_string_granularity(self):
        assert make_cache_key("MONTHLY", "msft") == "MONTHLY_MSFT"

    def test_granularities_do_not_collide(self):
        keys = {make_cache_key(g, "IBM") for g in Granularity}
        assert len(keys) == 4


# ─────────────────────────────────────────────────────────
# 2. 基本操作
# ─────────────────────────────────────────────────────────

class TestCacheBasics:
    def setup_method(self):
        self.cache = CacheLayer()

    def test_miss_then_hit(self):
        fetch = _CountingFetch(result=_series())
        first = self.cache.get_or_compute("DAILY_IBM", fetch)
        assert fetch.calls == 1
        assert self.cache.size() == 1

        second = self.cache.get_or_compute("DAILY_IBM", fetch)
        assert fetch.calls == 1
        assert second is first

    def test_get_returns_none_when_absent(self):
        assert self.cache.get("DAILY_IBM") is None

    def test_invalidate_forces_refetch(self):
        fetch = _CountingFetch(result=_series())
        self.cache.get_or_compute("DAILY_IBM", fetch)
        assert self.cache.invalidate("DAILY_IBM") is True
        assert self.cache.size() == 0

        self.cache.get_or_compute("DAILY_IBM", fetch)
        assert fetch.calls == 2

    def test_invalidate_absent_is_noop(self):
        self.cache.get_or_compute("DAILY_IBM", lambda: _series())
        assert self.cache.invalidate("WEEKLY_IBM") is False
        assert self.cache.size() == 1

    def test_clear_resets_size(self):
        for g in Granularity:
            self.cache.get_or_compute(make_cache_key(g, "IBM"), lambda g=g: _series(granularity=g))
        assert self.cache.size() == 4

        assert self.cache.clear() == 4
        assert self.cache.size() == 0
        assert self.cache.keys() == []

    def test_keys_sorted(self):
        self.cache.get_or_compute("WEEKLY_IBM", lambda: _series())
        self.cache.get_or_compute("DAILY_IBM", lambda: _series())
        assert self.cache.keys() == ["DAILY_IBM", "WEEKLY_IBM"]

    def test_stats(self):
        self.cache.get_or_compute("DAILY_IBM", lambda: _series())
        stats = self.cache.stats()
        assert stats.entries == 1
        assert stats.in_flight == 0
        assert stats.keys == ["DAILY_IBM"]

    def test_failure_not_cached_and_retry_allowed(self):
        failing = _CountingFetch(error=FetchError("upstream down"))
        with pytest.raises(FetchError):
            self.cache.get_or_compute("DAILY_IBM", failing)
        assert self.cache.size() == 0
        assert self.cache.stats().in_flight == 0

        series = self.cache.get_or_compute("DAILY_IBM", lambda: _series())
        assert series.symbol == "IBM"
        assert self.cache.size() == 1

    def test_interrupted_fetch_releases_key(self):
        with pytest.raises(_Interrupted):
            self.cache.get_or_compute("DAILY_IBM", _CountingFetch(error=_Interrupted()))
        assert self.cache.stats().in_flight == 0
        assert self.cache.size() == 0

        retry = _CountingFetch(result=_series())
        with ThreadPoolExecutor(max_workers=1) as pool:
            series = pool.submit(self.cache.get_or_compute, "DAILY_IBM", retry).result(timeout=5)
        assert series.symbol == "IBM"
        assert retry.calls == 1
        assert self.cache.size() == 1

    def test_failure_leaves_other_entries_untouched(self):
        self.cache.get_or_compute("WEEKLY_IBM", lambda: _series())
        with pytest.raises(FetchError):
            self.cache.get_or_compute("DAILY_IBM", _CountingFetch(error=FetchError("boom")))
        assert self.cache.size() == 1
        assert self.cache.keys() == ["WEEKLY_IBM"]


# ─────────────────────────────────────────────────────────
# 3. 并发单飞
# ─────────────────────────────────────────────────────────

class TestSingleFlight:
    THREADS = 16

    def setup_method(self):
        self.cache = CacheLayer()

    def test_concurrent_callers_share_one_fetch(self):
        fetch = _CountingFetch(result=_series(), delay=0.2)
        barrier = threading.Barrier(self.THREADS)

        def worker():
            barrier.wait()
            return self.cache.get_or_compute("DAILY_IBM", fetch)

        with ThreadPoolExecutor(max_workers=self.THREADS) as pool:
            futures = [pool.submit(worker) for _ in range(self.THREADS)]
            results = [f.result(timeout=10) for f in futures]

        assert fetch.calls == 1
        assert all(r is results[0] for r in results)
        assert self.cache.size() == 1

    def test_concurrent_failure_reaches_every_waiter(self):
        release = threading.Event()
        calls = []

        def fetch():
            calls.append(1)
            release.wait(5)
            raise FetchError("upstream down")

        with ThreadPoolExecutor(max_workers=self.THREADS) as pool:
            futures = [
                pool.submit(self.cache.get_or_compute, "DAILY_IBM", fetch)
                for _ in range(self.THREADS)
            ]
            deadline = time.time() + 5
            while self.cache.stats().in_flight == 0 and time.time() < deadline:
                time.sleep(0.01)
            time.sleep(0.2)
            release.set()

            for f in futures:
                with pytest.raises(FetchError):
                    f.result(timeout=10)

        assert len(calls) == 1
        assert self.cache.size() == 0
        assert self.cache.stats().in_flight == 0

        retry = _CountingFetch(result=_series())
        self.cache.get_or_compute("DAILY_IBM", retry)
        assert retry.calls == 1

    def test_interrupted_fetch_reaches_waiters(self):
        release = threading.Event()

        def fetch():
            release.wait(5)
            raise _Interrupted()

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(self.cache.get_or_compute, "DAILY_IBM", fetch) for _ in range(4)]
            deadline = time.time() + 5
            while self.cache.stats().in_flight == 0 and time.time() < deadline:
                time.sleep(0.01)
            time.sleep(0.2)
            release.set()

            for f in futures:
                with pytest.raises(_Interrupted):
                    f.result(timeout=10)

        assert self.cache.stats().in_flight == 0
        assert self.cache.get_or_compute("DAILY_IBM", lambda: _series()).symbol == "IBM"

    def test_lock_not_held_during_fetch(self):
        """一个键的慢获取不阻塞其他键"""
        release = threading.Event()

        def slow_fetch():
            release.wait(5)
            return _series()

        with ThreadPoolExecutor(max_workers=1) as pool:
            slow = pool.submit(self.cache.get_or_compute, "DAILY_IBM", slow_fetch)
            deadline = time.time() + 5
            while self.cache.stats().in_flight == 0 and time.time() < deadline:
                time.sleep(0.01)

            other = self.cache.get_or_compute("WEEKLY_IBM", lambda: _series(granularity=Granularity.WEEKLY))
            assert other.granularity == Granularity.WEEKLY
            assert slow.done() is False

            release.set()
            assert slow.result(timeout=5).symbol == "IBM"

        assert self.cache.size() == 2
