"""
股票行情服务
独立 FastAPI 应用程序入口

启动方式:
    uvicorn price_service.main:app --host 0.0.0.0 --port 8000
    python -m price_service.main
"""

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from price_service import __version__
from price_service.config import settings
from price_service.models.response import ApiResponse
from price_service.providers import FetchError
from price_service.routers import cache, health, stocks

# ── 日志配置 ──────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── 生命周期管理 ──────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用启动/关闭生命周期钩子"""
    logger.info("=" * 60)
    logger.info(f"🚀 Stock Price Service v{__version__} 启动中")
    logger.info(f"   Provider  : {settings.STOCK_PROVIDER}")
    logger.info(f"   Origins   : {', '.join(settings.ALLOWED_ORIGINS)}")
    logger.info("=" * 60)

    yield

    logger.info("✅ 行情服务已关闭")


# ── 应用实例 ──────────────────────────────────────────────
app = FastAPI(
    title="Stock Price Service",
    description=(
        "股票历史价格 REST 服务，为图表前端提供 JSON 数据：\n"
        "- 📊 日线 / 周线 / 月线 / 日内收盘价\n"
        "- 🌐 Alpha Vantage 或合成数据提供商\n"
        "- 🗄️ 进程内缓存，同一键并发请求只获取一次\n\n"
        "**分层架构**\n"
        "```\n"
        "Acquisition Layer  ← 从数据提供商拉取原始数据\n"
        "Cache Layer        ← 单飞内存缓存\n"
        "Processing Layer   ← 时间序列清洗为收盘价\n"
        "```"
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS 中间件 ───────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ── 请求计时中间件 ─────────────────────────────────────────
@app.middleware("http")
async def add_process_time(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{(time.time() - start) * 1000:.1f}ms"
    return response


# ── 全局异常处理 ──────────────────────────────────────────
@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError):
    logger.error(f"数据提供商调用失败 {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=ApiResponse.fail(error=str(exc), message="外部数据源错误").model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"未处理的异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ApiResponse.fail(error=str(exc), message="内部服务错误").model_dump(),
    )


# ── 注册路由 ──────────────────────────────────────────────
app.include_router(health.router)
app.include_router(stocks.router)
app.include_router(cache.router)


# ── 根路由 ───────────────────────────────────────────────
@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "Stock Price Service",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# ── 直接运行入口 ──────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "price_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
