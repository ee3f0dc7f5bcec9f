"""
eventpace 事件模型

事件是一个字段字典，约定:
- "@timestamp": 事件记录时间 (pandas.Timestamp, UTC)
- "tags": 标签列表

字段引用语法:
- "%{name}"            顶层字段
- "%{[outer][inner]}"  嵌套字段
引用不存在的字段时保留原样，不抛异常。
"""

import copy
import re
from typing import Any, Dict, List, Optional

import pandas as pd

from ..shared.time_provider import TimeProvider, get_time_provider

TIMESTAMP = "@timestamp"
TAGS = "tags"

_REFERENCE_PATTERN = re.compile(r"%\{([^}]+)\}")
_NESTED_PATTERN = re.compile(r"\[([^\]]+)\]")


class EventFieldError(ValueError):
    """字段访问错误"""
    pass


def parse_timestamp(value: Any) -> pd.Timestamp:
    """
    解析时间戳

    支持 ISO-8601 字符串、epoch 秒、datetime 与 pandas.Timestamp。
    无时区的时间按 UTC 处理。
    """
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            ts = pd.Timestamp(value, unit="s")
        else:
            ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise EventFieldError(f"无法解析时间戳: {value!r}") from e
    if ts is pd.NaT:
        raise EventFieldError(f"无法解析时间戳: {value!r}")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def _field_path(reference: str) -> List[str]:
    """"[a][b]" -> ["a", "b"], "a" -> ["a"]"""
    reference = reference.strip()
    if reference.startswith("["):
        return _NESTED_PATTERN.findall(reference)
    return [reference]


class Event:
    """流水线事件"""

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        time_provider: Optional[TimeProvider] = None,
    ):
        """
        创建事件

        Args:
            data: 字段字典，会被复制
            time_provider: 缺少 @timestamp 时用于取当前时间
        """
        self._data: Dict[str, Any] = copy.deepcopy(data) if data else {}
        if TIMESTAMP in self._data:
            self._data[TIMESTAMP] = parse_timestamp(self._data[TIMESTAMP])
        else:
            clock = time_provider or get_time_provider()
            self._data[TIMESTAMP] = parse_timestamp(clock.time())

    @property
    def timestamp(self) -> pd.Timestamp:
        return self._data[TIMESTAMP]

    @timestamp.setter
    def timestamp(self, value: Any):
        self._data[TIMESTAMP] = parse_timestamp(value)

    def timestamp_seconds(self) -> float:
        """记录时间 (epoch 秒)"""
        return self.timestamp.timestamp()

    @property
    def tags(self) -> List[str]:
        return list(self._data.get(TAGS, []))

    def add_tag(self, tag: str):
        tags = self._data.setdefault(TAGS, [])
        if tag not in tags:
            tags.append(tag)

    def get(self, reference: str, default: Any = None) -> Any:
        """
        读取字段

        Args:
            reference: "name" 或 "[outer][inner]"
            default: 字段不存在时的返回值
        """
        value: Any = self._data
        for key in _field_path(reference):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set(self, reference: str, value: Any):
        """写入字段，自动创建中间层"""
        path = _field_path(reference)
        if not path:
            raise EventFieldError(f"非法字段引用: {reference!r}")
        if path == [TIMESTAMP]:
            self.timestamp = value
            return
        target = self._data
        for key in path[:-1]:
            child = target.setdefault(key, {})
            if not isinstance(child, dict):
                raise EventFieldError(f"字段 {key} 不是对象，无法写入 {reference}")
            target = child
        target[path[-1]] = value

    def sprintf(self, template: str) -> str:
        """
        替换模板中的字段引用

        Args:
            template: 例如 "%{delay}" 或 "%{[meta][delay]}s"

        Returns:
            替换后的字符串，缺失字段保留原样
        """

        def _replace(match: "re.Match") -> str:
            value = self.get(match.group(1))
            if value is None:
                return match.group(0)
            if isinstance(value, pd.Timestamp):
                return value.isoformat()
            return str(value)

        return _REFERENCE_PATTERN.sub(_replace, str(template))

    def to_dict(self) -> Dict[str, Any]:
        """转换为可 JSON 序列化的字典"""
        data = copy.deepcopy(self._data)
        data[TIMESTAMP] = self.timestamp.isoformat().replace("+00:00", "Z")
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"Event({self.to_dict()!r})"


def has_field_reference(value: Any) -> bool:
    """字符串中是否包含 %{...} 字段引用"""
    return isinstance(value, str) and _REFERENCE_PATTERN.search(value) is not None
