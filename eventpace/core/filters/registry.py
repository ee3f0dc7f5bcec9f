"""
eventpace 过滤器注册表

按插件名称查找过滤器类。

使用示例:
    registry = FilterRegistry.get_instance()
    filter_class = registry.lookup("sleep")
    plugin = registry.create("sleep", {"time": 1})
"""

from typing import Any, Dict, List, Mapping, Optional, Type

from .base import BaseFilter


class FilterRegistry:
    """
    过滤器注册表

    单例模式管理所有内置过滤器。
    """

    _instance = None

    def __init__(self):
        self._filter_classes: Dict[str, Type[BaseFilter]] = {}
        self._initialized = False

    @classmethod
    def get_instance(cls) -> "FilterRegistry":
        """获取单例实例"""
        if cls._instance is None:
            cls._instance = cls()
            cls._instance._initialize()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """重置单例 (测试用)"""
        cls._instance = None

    def _initialize(self):
        """注册内置过滤器"""
        if self._initialized:
            return

        from ..pacing.sleep_filter import SleepFilter

        self.register(SleepFilter)
        self._initialized = True

    def register(self, filter_class: Type[BaseFilter]):
        """
        注册过滤器类

        Args:
            filter_class: 过滤器类，必须定义 config_name
        """
        name = filter_class.config_name
        if not name:
            raise ValueError(f"Filter {filter_class.__name__} has no config_name")
        if name in self._filter_classes:
            raise ValueError(f"Filter {name} already registered")
        self._filter_classes[name] = filter_class

    def lookup(self, name: str) -> Type[BaseFilter]:
        """
        按名称查找过滤器类

        Raises:
            KeyError: 名称未注册
        """
        try:
            return self._filter_classes[name]
        except KeyError:
            raise KeyError(f"Unknown filter: {name}") from None

    def create(self, name: str, options: Optional[Mapping[str, Any]] = None, **kwargs) -> BaseFilter:
        """创建过滤器实例 (未 register)"""
        return self.lookup(name)(options, **kwargs)

    def list_filters(self) -> List[str]:
        """所有已注册的过滤器名称"""
        return sorted(self._filter_classes)
