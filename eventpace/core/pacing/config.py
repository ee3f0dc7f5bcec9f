"""
eventpace 节流配置

配置项:
- time:      周期模式下每次休眠的秒数；回放模式下为速度除数 (2 = 两倍速)
- every:     周期模式下每 N 个事件休眠一次，回放模式忽略
- replay:    启用回放模式
- threshold: 回放模式下时间线休眠的上限 (秒)
- cooldown:  回放模式下事件时间戳之后至少等待的秒数

time / threshold / cooldown 可以是数字、数字字符串，或包含字段引用的模板
(例如 "%{delay}")。数字在构造时解析，模板在每个事件上求值。
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..event import Event, has_field_reference

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """过滤器配置错误，实例不可用"""
    pass


@dataclass(frozen=True)
class ConstantDuration:
    """常量时长"""
    seconds: float

    def resolve(self, event: Event) -> float:
        return self.seconds


@dataclass(frozen=True)
class TemplateDuration:
    """按事件字段求值的时长"""
    template: str
    allow_infinite: bool = False  # threshold 用 +inf 表示不限

    def resolve(self, event: Event) -> float:
        """无法解析为数字、NaN 或不允许的无穷大时返回 0.0，不中断事件流"""
        text = event.sprintf(self.template)
        try:
            value = float(text)
        except ValueError:
            value = math.nan
        if math.isfinite(value) or (self.allow_infinite and value == math.inf):
            return value
        logger.warning(
            "Unresolvable duration template %r (got %r), using 0", self.template, text
        )
        return 0.0


DurationSource = Union[ConstantDuration, TemplateDuration]

NO_THRESHOLD = ConstantDuration(math.inf)
NO_COOLDOWN = ConstantDuration(0.0)
DEFAULT_REPLAY_SPEED = ConstantDuration(1.0)

_KNOWN_OPTIONS = ("time", "every", "replay", "threshold", "cooldown", "add_tag")
_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _parse_number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"配置项 {name} 必须是数字，得到布尔值 {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"配置项 {name} 无法解析为数字: {value!r}") from e
    if math.isnan(number):
        raise ConfigurationError(f"配置项 {name} 不能为 NaN")
    return number


def parse_duration(name: str, value: Any, allow_infinite: bool = False) -> DurationSource:
    """
    将配置值解析为 DurationSource

    Args:
        name: 配置项名称 (用于错误信息)
        value: 数字、数字字符串或字段模板
        allow_infinite: 是否接受 +inf (仅 threshold)

    Returns:
        ConstantDuration 或 TemplateDuration
    """
    if has_field_reference(value):
        return TemplateDuration(value, allow_infinite)
    number = _parse_number(name, value)
    if math.isinf(number) and not (allow_infinite and number > 0):
        raise ConfigurationError(f"配置项 {name} 不能为无穷大: {value!r}")
    return ConstantDuration(number)


def parse_every(value: Any) -> float:
    number = _parse_number("every", value)
    if number < 1 or not number.is_integer():
        raise ConfigurationError(f"配置项 every 必须是正整数: {value!r}")
    return number


def parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"配置项 {name} 必须是布尔值: {value!r}")


@dataclass(frozen=True)
class SleepConfig:
    """sleep 过滤器配置 (构造后只读)"""
    time: Optional[DurationSource] = None
    every: float = 1.0
    replay: bool = False
    threshold: DurationSource = NO_THRESHOLD
    cooldown: DurationSource = NO_COOLDOWN
    add_tag: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, options: Optional[Mapping[str, Any]] = None) -> "SleepConfig":
        """
        从插件配置字典构造

        Args:
            options: 例如 {"time": 1, "every": "10"}

        Raises:
            ConfigurationError: 未知配置项或数值无法解析
        """
        options = dict(options or {})
        unknown = sorted(set(options) - set(_KNOWN_OPTIONS))
        if unknown:
            raise ConfigurationError(f"未知配置项: {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        if options.get("time") is not None:
            kwargs["time"] = parse_duration("time", options["time"])
        if "every" in options:
            kwargs["every"] = parse_every(options["every"])
        if "replay" in options:
            kwargs["replay"] = parse_bool("replay", options["replay"])
        if "threshold" in options:
            kwargs["threshold"] = parse_duration("threshold", options["threshold"], allow_infinite=True)
        if "cooldown" in options:
            kwargs["cooldown"] = parse_duration("cooldown", options["cooldown"])
        if "add_tag" in options:
            tags = options["add_tag"]
            kwargs["add_tag"] = (tags,) if isinstance(tags, str) else tuple(tags)
        return cls(**kwargs)

    def validated(self) -> "SleepConfig":
        """
        校验模式并补全默认值

        Returns:
            回放模式下缺省 time 补为 1 的配置

        Raises:
            ConfigurationError: 非回放模式缺少 time
        """
        if self.replay and self.time is None:
            return replace(self, time=DEFAULT_REPLAY_SPEED)
        if self.time is None:
            raise ConfigurationError("Missing required parameter 'time' for filter/sleep")
        return self
