"""
eventpace 阻塞休眠原语

休眠直接阻塞调用线程，这是过滤器向上游施加背压的方式。
shutdown() 会唤醒正在休眠的线程，之后的休眠立即返回。
"""

import logging
import math
import threading

logger = logging.getLogger(__name__)


class Sleeper:
    """可中断的阻塞休眠"""

    def __init__(self):
        self._shutdown = threading.Event()

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown.is_set()

    def sleep(self, seconds: float) -> bool:
        """
        阻塞 seconds 秒，<= 0 时立即返回

        Returns:
            True 表示完整休眠，False 表示被 shutdown 提前唤醒
        """
        if not seconds > 0:  # 同时排除 NaN
            return True
        # 无穷大时一直等到 shutdown
        timeout = seconds if math.isfinite(seconds) else None
        interrupted = self._shutdown.wait(timeout)
        if interrupted:
            logger.debug("Sleep interrupted by shutdown")
        return not interrupted

    def shutdown(self):
        """唤醒休眠线程并使后续休眠立即返回"""
        self._shutdown.set()
