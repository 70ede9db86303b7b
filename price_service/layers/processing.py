"""
Layer 3 – 数据处理层
将外部 API 的原始时间序列清洗为 {时间标签: 收盘价} 映射。
"""

import logging
from typing import Any, Dict, Mapping, Optional

import pandas as pd

logger = logging.getLogger(__name__)

CLOSE_FIELD = "4. close"


class ProcessingLayer:
    """数据处理层：原始时间序列 → 收盘价映射"""

    def closing_prices(
        self,
        raw_series: Mapping[str, Mapping[str, Any]],
        field: str = CLOSE_FIELD,
    ) -> Dict[str, float]:
        """
        提取每个时间点的收盘价，按时间升序返回

        Args:
            raw_series: {"2024-01-05": {"1. open": "...", "4. close": "..."}, ...}
            field: 收盘价字段名

        Raises:
            ValueError: 数据结构不符合预期（非字典、缺少收盘价字段）
        """
        if not isinstance(raw_series, Mapping):
            raise ValueError(f"时间序列格式异常: {type(raw_series).__name__}")
        if not raw_series:
            return {}

        df = pd.DataFrame.from_dict(dict(raw_series), orient="index")
        if field not in df.columns:
            raise ValueError(f"时间序列缺少字段 '{field}'")

        closes = pd.to_numeric(df[field], errors="coerce")
        invalid = int(closes.isna().sum())
        if invalid:
            logger.warning(f"丢弃 {invalid} 个无法解析的收盘价")
        closes = closes.dropna().sort_index()

        return {str(label): float(price) for label, price in closes.items()}


# ── 模块级别单例 ──────────────────────────────────────────
_processor: Optional[ProcessingLayer] = None


def get_processing_layer() -> ProcessingLayer:
    global _processor
    if _processor is None:
        _processor = ProcessingLayer()
    return _processor
