"""
eventpace sleep 过滤器

通过阻塞调用线程让流水线停顿，用于限速或按原始时间线回放事件。

两种模式 (构造时确定，运行期不变):

1. 周期模式: 每 every 个事件休眠 time 秒
       filter {
         sleep { time => 1  every => 10 }
       }

2. 回放模式: 按相邻事件 @timestamp 的间隔休眠
       filter {
         sleep { replay => true  time => 2  threshold => 5  cooldown => 30 }
       }
   以上配置以两倍速回放，单次休眠不超过 5 秒，
   并保证每个事件在其时间戳 30 秒之后才放行。

回放模式的休眠时长:
    cooldown_delay = max(clock + cooldown - now, 0)
    duration       = min((clock - last_clock - cooldown_delay) / time, threshold)
减去 cooldown_delay 是为了不把冷却期间已经睡过的时间重复计入时间线间隔。
"""

import logging
import math
from typing import Any, Iterable, Mapping, Optional

from ..event import Event
from ..filters.base import BaseFilter
from ...shared.sleeper import Sleeper
from ...shared.time_provider import TimeProvider, get_time_provider
from .config import SleepConfig
from .state import PacingState

logger = logging.getLogger(__name__)


class SleepFilter(BaseFilter):
    """sleep 过滤器 (每个 worker 一个实例，不可并发调用)"""

    config_name = "sleep"

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        time_provider: Optional[TimeProvider] = None,
        sleeper: Optional[Sleeper] = None,
    ):
        """
        Args:
            options: 插件配置字典
            time_provider: 当前时间来源，缺省为全局 Live 时钟
            sleeper: 休眠原语，缺省为可中断的 Sleeper

        Raises:
            ConfigurationError: 配置项无法解析
        """
        super().__init__(options)
        self.config = SleepConfig.from_dict(self.options)
        self.time_provider = time_provider or get_time_provider()
        self.sleeper = sleeper or Sleeper()
        self.state = PacingState()

    def register(self):
        """
        校验配置并重置状态

        Raises:
            ConfigurationError: 非回放模式缺少 time
        """
        self.config = self.config.validated()
        self.state.reset()
        self._registered = True

    def add_tags(self) -> Iterable[str]:
        return self.config.add_tag

    def filter(self, event: Event) -> Event:
        if not self._registered:
            raise RuntimeError("SleepFilter.filter() called before register()")

        if self.config.replay:
            self._replay(event)
        else:
            self._periodic(event)

        self.filter_matched(event)
        return event

    def _periodic(self, event: Event):
        self.state.count += 1
        duration = self.config.time.resolve(event)
        if self.state.count >= self.config.every:
            self.state.count = 0
            self._sleep("Sleeping", duration)

    def _replay(self, event: Event):
        clock = event.timestamp_seconds()

        cooldown = self.config.cooldown.resolve(event)
        cooldown_delay = max(clock + cooldown - self.time_provider.time(), 0.0)
        self._sleep("Cooldown", cooldown_delay)

        if self.state.last_clock is not None:
            speed = self.config.time.resolve(event)
            if speed > 0:
                elapsed = clock - self.state.last_clock - cooldown_delay
                duration = min(elapsed / speed, self.config.threshold.resolve(event))
                if duration > 0:
                    self._sleep("Sleeping", duration)
            else:
                logger.warning("Non-positive replay speed %s, skipping timeline sleep", speed)

        self.state.last_clock = clock

    def _sleep(self, message: str, delay: float):
        # 负数和非有限值一律按 0 处理
        if not math.isfinite(delay) or delay < 0:
            delay = 0.0
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s delay=%.6f", message, delay)
        self.sleeper.sleep(delay)

    def close(self):
        """中断正在进行的休眠"""
        self.sleeper.shutdown()
