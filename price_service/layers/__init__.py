"""
数据流分层架构
  Layer 1 – Acquisition  : 选择并调用行情数据提供商
  Layer 2 – Cache        : 进程内单飞缓存
  Layer 3 – Processing   : 原始时间序列清洗为收盘价
"""
