"""
eventpace Pacing - 事件节流模块

包含:
- SleepConfig: 节流配置
- PacingState: 运行状态
- SleepFilter: sleep 过滤器 (周期节流 / 时间线回放)
"""

from .config import (
    ConfigurationError,
    ConstantDuration,
    SleepConfig,
    TemplateDuration,
    parse_duration,
)
from .state import PacingState
from .sleep_filter import SleepFilter

__all__ = [
    "ConfigurationError",
    "ConstantDuration",
    "TemplateDuration",
    "SleepConfig",
    "parse_duration",
    "PacingState",
    "SleepFilter",
]
