"""
eventpace 时间提供者

功能:
- 统一时间获取接口，过滤器不直接调用 time.time()
- 支持 Live 模式（真实墙钟）
- 支持 Replay 模式（固定的模拟时间，可推进），用于确定性测试

使用方式:
    from eventpace.shared.time_provider import TimeProvider

    clock = TimeProvider()
    now = clock.time()          # epoch 秒 (float)

    # Replay 模式
    clock = TimeProvider(mode="replay", fixed_time=1_700_000_000.0)
    clock.advance_time(5)
"""

import time as _time
from datetime import datetime, timezone
from typing import Optional, Union

TimeLike = Union[float, int, datetime]

LIVE = "live"
REPLAY = "replay"


def to_epoch_seconds(value: TimeLike) -> float:
    """将 datetime 或数值转换为 epoch 秒"""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return float(value)


class TimeProvider:
    """
    时间提供者

    规则:
    - 所有 "当前时间" 的读取都经过 TimeProvider
    - Replay 模式下时间只在 advance_time / set_time 时变化
    """

    def __init__(self, mode: str = LIVE, fixed_time: Optional[TimeLike] = None):
        """
        创建 TimeProvider 实例

        Args:
            mode: "live" 或 "replay"
            fixed_time: Replay 模式下的固定时间，缺省为创建时的墙钟时间
        """
        if mode not in (LIVE, REPLAY):
            raise ValueError(f"未知的时间模式: {mode}")
        self._mode = mode
        self._fixed_time: Optional[float] = None
        self._offset = 0.0
        if mode == REPLAY:
            self._fixed_time = (
                to_epoch_seconds(fixed_time) if fixed_time is not None else _time.time()
            )

    @property
    def mode(self) -> str:
        """获取当前模式"""
        return self._mode

    def time(self) -> float:
        """当前时间 (epoch 秒)"""
        if self._mode == REPLAY:
            return self._fixed_time + self._offset
        return _time.time()

    def advance_time(self, seconds: float):
        """
        推进模拟时间

        Args:
            seconds: 推进的秒数
        """
        if self._mode != REPLAY:
            raise RuntimeError("只能在 Replay 模式下推进时间")
        self._offset += float(seconds)

    def set_time(self, value: TimeLike):
        """
        设置模拟时间

        Args:
            value: 新的模拟时间
        """
        if self._mode != REPLAY:
            raise RuntimeError("只能在 Replay 模式下设置时间")
        self._fixed_time = to_epoch_seconds(value)
        self._offset = 0.0


# 单例管理
_time_provider_instance: Optional[TimeProvider] = None


def get_time_provider() -> TimeProvider:
    """获取全局 TimeProvider 实例 (Live)"""
    global _time_provider_instance
    if _time_provider_instance is None:
        _time_provider_instance = TimeProvider()
    return _time_provider_instance


def reset_time_provider():
    """重置全局 TimeProvider"""
    global _time_provider_instance
    _time_provider_instance = None
