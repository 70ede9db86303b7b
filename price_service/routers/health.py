"""健康检查路由"""

import time

from fastapi import APIRouter, Depends

from price_service import __version__
from price_service.services.stock_service import StockService, get_stock_service

router = APIRouter(tags=["健康检查"])


@router.get("/health")
def health(svc: StockService = Depends(get_stock_service)):
    """服务健康检查"""
    return {
        "success": True,
        "data": {
            "status": "ok",
            "version": __version__,
            "timestamp": int(time.time()),
            "service": "Stock Price Service",
            "provider": svc.provider_name,
            "cache_entries": svc.cache_stats().entries,
        },
        "message": "服务运行正常",
    }


@router.get("/healthz")
async def healthz():
    """Kubernetes liveness probe"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """Kubernetes readiness probe"""
    return {"ready": True}
