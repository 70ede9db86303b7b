"""行情数据提供商接口定义"""

from typing import Protocol

from price_service.models.series import PriceSeries


class FetchError(RuntimeError):
    """外部数据源调用失败（网络、超时、HTTP 错误或返回数据结构异常）"""


class StockProvider(Protocol):
    """提供商需实现的四种粒度接口，失败时抛出 FetchError"""

    name: str

    def get_daily(self, symbol: str) -> PriceSeries:
        ...

    def get_intraday(self, symbol: str) -> PriceSeries:
        ...

    def get_weekly(self, symbol: str) -> PriceSeries:
        ...

    def get_monthly(self, symbol: str) -> PriceSeries:
        ...
