"""统一 API 响应模型"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """管理类接口的标准响应封装（行情接口直接返回 PriceSeries）"""
    success: bool = True
    data: Optional[Any] = None
    message: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "success") -> "ApiResponse":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, message: str = "failed") -> "ApiResponse":
        return cls(success=False, error=error, message=message)


class CacheStats(BaseModel):
    """缓存统计"""
    entries: int = 0
    in_flight: int = 0
    keys: List[str] = Field(default_factory=list)
