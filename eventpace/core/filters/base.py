"""
eventpace 过滤器基础类

设计原则:
- 所有过滤器继承 BaseFilter
- 构造时接收配置字典，register() 时完成校验与状态初始化
- filter(event) 每个事件调用一次，结束时调用 filter_matched(event)
- 过滤器不丢弃事件，只可能为事件打标签
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional

from ..event import Event


class BaseFilter(ABC):
    """
    过滤器基类

    使用示例:
        class UppercaseFilter(BaseFilter):
            config_name = "uppercase"

            def register(self):
                ...

            def filter(self, event):
                ...
                self.filter_matched(event)
                return event
    """

    config_name: str = ""

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        self.options = dict(options or {})
        self._registered = False

    @property
    def is_registered(self) -> bool:
        return self._registered

    @abstractmethod
    def register(self):
        """校验配置、初始化状态；失败时抛出异常，实例不可再使用"""
        pass

    @abstractmethod
    def filter(self, event: Event) -> Event:
        """处理单个事件并返回它"""
        pass

    def add_tags(self) -> Iterable[str]:
        """filter_matched 时附加的标签"""
        return ()

    def filter_matched(self, event: Event):
        """标记事件已成功通过本过滤器"""
        for tag in self.add_tags():
            event.add_tag(event.sprintf(tag))

    def close(self):
        """流水线关闭时调用"""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.config_name} {self.options!r}>"
