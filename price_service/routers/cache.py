"""
缓存管理路由
GET  /api/cache/stats        - 缓存统计
POST /api/cache/invalidate   - 失效单个条目
POST /api/cache/clear        - 清空缓存
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from price_service.layers.cache import make_cache_key
from price_service.models.response import ApiResponse
from price_service.models.series import Granularity
from price_service.services.stock_service import StockService, get_stock_service

router = APIRouter(prefix="/api/cache", tags=["缓存管理"])


class InvalidateRequest(BaseModel):
    interval: Granularity
    symbol: str


@router.get("/stats", response_model=ApiResponse)
def cache_stats(svc: StockService = Depends(get_stock_service)):
    """获取缓存条目数与键列表"""
    return ApiResponse.ok(data=svc.cache_stats().model_dump())


@router.post("/invalidate", response_model=ApiResponse)
def invalidate(body: InvalidateRequest, svc: StockService = Depends(get_stock_service)):
    """失效指定粒度与代码的缓存条目，不存在时无操作"""
    key = make_cache_key(body.interval, body.symbol)
    removed = svc.invalidate(body.interval, body.symbol)
    return ApiResponse.ok(
        data={"key": key, "removed": removed},
        message=f"缓存已失效: {key}" if removed else f"缓存中不存在: {key}",
    )


@router.post("/clear", response_model=ApiResponse)
def clear_cache(svc: StockService = Depends(get_stock_service)):
    """清空全部缓存条目"""
    count = svc.clear_cache()
    return ApiResponse.ok(data={"cleared": count}, message=f"已清空 {count} 条缓存")
