"""
行情数据提供商
  AlphaVantageProvider : 调用 Alpha Vantage REST API
  SyntheticProvider    : 确定性随机游走，用于本地开发与测试
"""

from .alpha_vantage import AlphaVantageProvider
from .base import FetchError, StockProvider
from .synthetic import SyntheticProvider

__all__ = ["AlphaVantageProvider", "FetchError", "StockProvider", "SyntheticProvider"]
