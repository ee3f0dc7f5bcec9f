"""
eventpace Shared - 共享模块

包含:
- 时间提供者
- 可中断的休眠原语
- 流水线配置加载器
"""

from .time_provider import TimeProvider, get_time_provider, reset_time_provider
from .sleeper import Sleeper

__all__ = [
    "TimeProvider",
    "get_time_provider",
    "reset_time_provider",
    "Sleeper",
]
