"""
行情服务配置模块
支持从环境变量 / .env 读取配置，选择行情数据提供商
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PriceServiceSettings(BaseSettings):
    """行情服务配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── 基础配置 ──────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    DEBUG: bool = Field(default=False)
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"]
    )

    # ── 数据源配置 ─────────────────────────────────────────
    STOCK_PROVIDER: str = Field(default="synthetic")  # synthetic / alpha
    ALPHAVANTAGE_API_KEY: str = Field(default="demo")
    ALPHAVANTAGE_BASE_URL: str = Field(default="https://www.alphavantage.co/query")
    HTTP_TIMEOUT: float = Field(default=15.0)         # 外部 API 请求超时（秒）

    # ── 日志配置 ──────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO")


@lru_cache
def get_settings() -> PriceServiceSettings:
    """获取全局配置（单例）"""
    return PriceServiceSettings()


settings = get_settings()
