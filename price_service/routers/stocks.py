"""
行情数据路由
GET /stock/daily?symbol=IBM      - 日线收盘价
GET /stock/weekly?symbol=IBM     - 周线收盘价
GET /stock/monthly?symbol=IBM    - 月线收盘价
GET /stock/intraday?symbol=IBM   - 5 分钟日内收盘价

处理函数为同步函数，由线程池并发执行；
FetchError 由 main 中的异常处理器映射为 502。
"""

from fastapi import APIRouter, Depends, Query

from price_service.models.series import PriceSeries
from price_service.services.stock_service import StockService, get_stock_service

router = APIRouter(prefix="/stock", tags=["行情数据"])


@router.get("/daily", response_model=PriceSeries)
def get_daily(
    symbol: str = Query(..., description="股票代码，大小写不敏感，例如 IBM"),
    svc: StockService = Depends(get_stock_service),
):
    """获取日线收盘价"""
    return svc.get_daily(symbol)


@router.get("/weekly", response_model=PriceSeries)
def get_weekly(
    symbol: str = Query(..., description="股票代码，大小写不敏感"),
    svc: StockService = Depends(get_stock_service),
):
    """获取周线收盘价"""
    return svc.get_weekly(symbol)


@router.get("/monthly", response_model=PriceSeries)
def get_monthly(
    symbol: str = Query(..., description="股票代码，大小写不敏感"),
    svc: StockService = Depends(get_stock_service),
):
    """获取月线收盘价"""
    return svc.get_monthly(symbol)


@router.get("/intraday", response_model=PriceSeries)
def get_intraday(
    symbol: str = Query(..., description="股票代码，大小写不敏感"),
    svc: StockService = Depends(get_stock_service),
):
    """获取日内（5 分钟）收盘价"""
    return svc.get_intraday(symbol)
