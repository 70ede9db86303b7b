"""
股票行情 REST 服务
从外部金融数据 API 拉取历史价格序列，内存缓存后以 JSON 提供给图表前端

架构分层：
  数据获取层 (Acquisition)  → Alpha Vantage / 合成数据提供商
  缓存层     (Cache)        → 进程内缓存，按键单飞（single-flight）
  处理层     (Processing)   → 原始时间序列 → 收盘价映射
"""

__version__ = "1.0.0"
