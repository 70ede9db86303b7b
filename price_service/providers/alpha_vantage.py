"""Alpha Vantage 行情数据提供商"""

import logging
import re
import threading
from typing import Any, Dict, Mapping, Optional

import requests

from price_service.layers.processing import get_processing_layer
from price_service.models.series import Granularity, PriceSeries

from .base import FetchError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"

# 粒度 → (function 参数, 响应中的数据键, 附加参数)
_SERIES_SPECS: Dict[Granularity, tuple] = {
    Granularity.INTRADAY: ("TIME_SERIES_INTRADAY", "Time Series (5min)", {"interval": "5min"}),
    Granularity.DAILY: ("TIME_SERIES_DAILY", "Time Series (Daily)", {}),
    Granularity.WEEKLY: ("TIME_SERIES_WEEKLY", "Weekly Time Series", {}),
    Granularity.MONTHLY: ("TIME_SERIES_MONTHLY", "Monthly Time Series", {}),
}

# Alpha Vantage 限流或提示时返回这些字段而不是数据
_NOTICE_FIELDS = ("Information", "Note")

_APIKEY_PATTERN = re.compile(r"apikey=[^&\s'\"]+")


def mask_api_key(text: str) -> str:
    """遮蔽 URL 或异常信息中的 apikey 参数"""
    return _APIKEY_PATTERN.sub("apikey=***", text)


class AlphaVantageProvider:
    """
    同步调用 Alpha Vantage TIME_SERIES_* 接口

    限流提示（Information / Note）视为成功获取，返回空序列并记录警告，
    避免对已限流的接口重复请求；缺少数据键时抛出 FetchError。
    """

    name = "alphavantage"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ) -> None:
        if not api_key:
            raise ValueError("Alpha Vantage API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._local = threading.local()
        self.timeout = timeout
        self._proc = get_processing_layer()

    @property
    def session(self) -> requests.Session:
        """注入的会话原样使用；否则每个工作线程各自持有一个 Session"""
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    # ── 四种粒度 ──────────────────────────────────────────

    def get_intraday(self, symbol: str) -> PriceSeries:
        return self._get(Granularity.INTRADAY, symbol)

    def get_daily(self, symbol: str) -> PriceSeries:
        return self._get(Granularity.DAILY, symbol)

    def get_weekly(self, symbol: str) -> PriceSeries:
        return self._get(Granularity.WEEKLY, symbol)

    def get_monthly(self, symbol: str) -> PriceSeries:
        return self._get(Granularity.MONTHLY, symbol)

    # ── 内部实现 ──────────────────────────────────────────

    def build_url(self, granularity: Granularity, symbol: str) -> str:
        function, _, extra = _SERIES_SPECS[granularity]
        params = {"function": function, "symbol": symbol, "apikey": self.api_key}
        params.update(extra)
        return requests.Request("GET", self.base_url, params=params).prepare().url

    def _get(self, granularity: Granularity, symbol: str) -> PriceSeries:
        url = self.build_url(granularity, symbol)
        payload = self._call_api(url, symbol)
        return self._parse(payload, symbol, granularity)

    def _call_api(self, url: str, symbol: str) -> Any:
        logger.info(f"调用 Alpha Vantage: {mask_api_key(url)}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error(f"Alpha Vantage 请求失败（{symbol}）: {mask_api_key(str(exc))}")
            raise FetchError(f"Error querying Alpha Vantage for {symbol}") from exc
        except ValueError as exc:
            logger.error(f"Alpha Vantage 响应不是合法 JSON（{symbol}）: {mask_api_key(str(exc))}")
            raise FetchError(f"Invalid JSON from Alpha Vantage for {symbol}") from exc
        logger.info(f"收到 Alpha Vantage 响应（{symbol}）")
        return payload

    def _parse(
        self, payload: Any, symbol: str, granularity: Granularity
    ) -> PriceSeries:
        if not isinstance(payload, Mapping):
            raise FetchError(f"Unexpected Alpha Vantage payload for {symbol}")

        for field in _NOTICE_FIELDS:
            if field in payload:
                logger.warning(f"Alpha Vantage 提示（{symbol} {granularity.value}）: {payload[field]}")
                return PriceSeries.empty(symbol, granularity)

        _, series_key, _ = _SERIES_SPECS[granularity]
        if series_key not in payload:
            detail = payload.get("Error Message") or f"missing key '{series_key}'"
            logger.error(f"响应中未找到 '{series_key}'（{symbol}）: {detail}")
            raise FetchError(f"Unexpected Alpha Vantage response for {symbol}: {detail}")

        try:
            prices = self._proc.closing_prices(payload[series_key])
        except (TypeError, ValueError) as exc:
            logger.error(f"解析 Alpha Vantage 数据失败（{symbol}）: {exc}")
            raise FetchError(f"Error processing data for {symbol}") from exc

        logger.info(f"解析 {len(prices)} 个收盘价: {symbol} [{granularity.value}]")
        return PriceSeries(symbol=symbol, granularity=granularity, points=prices)
