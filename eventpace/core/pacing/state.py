"""
eventpace 节流运行状态

每个过滤器实例独占一份，不跨实例、不跨线程共享。
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class PacingState:
    """节流运行状态"""
    count: int = 0                      # 周期模式: 上次休眠后看到的事件数
    last_clock: Optional[float] = None  # 回放模式: 上一个事件的记录时间 (epoch 秒)

    def reset(self):
        self.count = 0
        self.last_clock = None
