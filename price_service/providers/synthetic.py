"""
合成行情数据提供商
按 (代码, 粒度) 播种的确定性随机游走，无需网络与 API Key。
同一天内相同输入总是得到完全相同的序列。
"""

import logging
import random
import zlib
from datetime import date
from typing import Callable, Dict, List

import pandas as pd

from price_service.models.series import Granularity, PriceSeries

logger = logging.getLogger(__name__)

BASE_PRICES: Dict[str, float] = {
    "IBM": 175.0,
    "AAPL": 185.0,
    "MSFT": 415.0,
    "GOOGL": 140.0,
    "TSLA": 250.0,
    "AMZN": 180.0,
}
DEFAULT_BASE_PRICE = 100.0
MIN_PRICE = 1.0

# 粒度 → (点数, 单步最大波动比例)
_WALK_SPECS: Dict[Granularity, tuple] = {
    Granularity.INTRADAY: (78, 0.002),
    Granularity.DAILY: (100, 0.015),
    Granularity.WEEKLY: (104, 0.03),
    Granularity.MONTHLY: (60, 0.05),
}

_DATE_FMT = "%Y-%m-%d"
_TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"


def _stable_seed(text: str) -> int:
    # 内置 hash() 按进程随机化，不能用于播种
    return zlib.crc32(text.encode("utf-8"))


class SyntheticProvider:
    """确定性随机游走数据源"""

    name = "synthetic"

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    # ── 四种粒度 ──────────────────────────────────────────

    def get_intraday(self, symbol: str) -> PriceSeries:
        """当日 09:30 起每 5 分钟一个点，共 78 个"""
        logger.info(f"生成合成日内数据: {symbol}")
        open_time = pd.Timestamp(self._today()) + pd.Timedelta(hours=9, minutes=30)
        count, _ = _WALK_SPECS[Granularity.INTRADAY]
        labels = pd.date_range(start=open_time, periods=count, freq="5min")
        return self._build(
            symbol,
            Granularity.INTRADAY,
            list(labels.strftime(_TIMESTAMP_FMT)),
            walk_backward=False,
        )

    def get_daily(self, symbol: str) -> PriceSeries:
        """截至今天的 100 个交易日（跳过周末）"""
        logger.info(f"生成合成日线数据: {symbol}")
        count, _ = _WALK_SPECS[Granularity.DAILY]
        labels = pd.bdate_range(end=pd.Timestamp(self._today()), periods=count)
        return self._build(symbol, Granularity.DAILY, list(labels.strftime(_DATE_FMT)))

    def get_weekly(self, symbol: str) -> PriceSeries:
        logger.info(f"生成合成周线数据: {symbol}")
        count, _ = _WALK_SPECS[Granularity.WEEKLY]
        labels = pd.date_range(end=pd.Timestamp(self._today()), periods=count, freq="7D")
        return self._build(symbol, Granularity.WEEKLY, list(labels.strftime(_DATE_FMT)))

    def get_monthly(self, symbol: str) -> PriceSeries:
        logger.info(f"生成合成月线数据: {symbol}")
        count, _ = _WALK_SPECS[Granularity.MONTHLY]
        today = pd.Timestamp(self._today())
        labels = [
            (today - pd.DateOffset(months=i)).strftime(_DATE_FMT)
            for i in reversed(range(count))
        ]
        return self._build(symbol, Granularity.MONTHLY, labels)

    # ── 内部实现 ──────────────────────────────────────────

    @staticmethod
    def base_price(symbol: str) -> float:
        return BASE_PRICES.get(symbol.upper(), DEFAULT_BASE_PRICE)

    def _walk(self, symbol: str, granularity: Granularity, count: int) -> List[float]:
        _, volatility = _WALK_SPECS[granularity]
        rng = random.Random(_stable_seed(symbol.upper() + granularity.value))
        price = self.base_price(symbol)
        prices = []
        for _ in range(count):
            change = 1.0 + (rng.random() * 2 - 1) * volatility
            price = max(MIN_PRICE, price * change)
            prices.append(round(price, 2))
        return prices

    def _build(
        self,
        symbol: str,
        granularity: Granularity,
        labels: List[str],
        walk_backward: bool = True,
    ) -> PriceSeries:
        """labels 为时间升序；walk_backward 时游走从最新的点开始向过去推进"""
        prices = self._walk(symbol, granularity, len(labels))
        if walk_backward:
            prices.reverse()
        return PriceSeries(
            symbol=symbol,
            granularity=granularity,
            points=dict(zip(labels, prices)),
        )
