"""
eventpace Filters - 过滤器插件框架

包含:
- BaseFilter: 过滤器基类
- FilterRegistry: 按名称查找过滤器
"""

from .base import BaseFilter
from .registry import FilterRegistry

__all__ = [
    "BaseFilter",
    "FilterRegistry",
]
