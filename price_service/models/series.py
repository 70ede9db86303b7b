"""价格序列领域模型"""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Granularity(str, Enum):
    """时间粒度"""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    INTRADAY = "INTRADAY"


class ReadOnlyPrices(dict):
    """只读的 {标签: 收盘价} 映射，任何写操作抛出 TypeError"""

    def _readonly(self, *args, **kwargs):
        raise TypeError("PriceSeries.points is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return (type(self), (dict(self),))


class PriceSeries(BaseModel):
    """
    单只股票某一粒度的收盘价序列

    序列化格式：{"symbol": ..., "interval": ..., "prices": {标签: 收盘价}}
    创建后不可修改（points 也是只读映射），由缓存层共享给所有调用方。
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str
    granularity: Granularity = Field(alias="interval")
    points: Dict[str, float] = Field(default_factory=ReadOnlyPrices, alias="prices")

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.upper()

    @field_validator("points")
    @classmethod
    def _freeze_points(cls, value: Dict[str, float]) -> ReadOnlyPrices:
        return ReadOnlyPrices(value)

    @classmethod
    def empty(cls, symbol: str, granularity: Granularity) -> "PriceSeries":
        return cls(symbol=symbol, granularity=granularity, points={})
