"""
eventpace 流水线配置加载与校验

功能:
- 加载和解析 YAML 流水线配置
- 计算配置的规范化哈希 (排序键 JSON + SHA256)
- 按过滤器注册表实例化并 register 过滤器

配置格式:
    filters:
      - sleep:
          time: 1
          every: 10
      - sleep:
          replay: true
          threshold: 5
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from ..core.filters.base import BaseFilter
from ..core.filters.registry import FilterRegistry
from ..core.pacing.config import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigValidationError(ConfigurationError):
    """流水线配置错误"""
    pass


class PipelineConfigLoader:
    """流水线配置加载器"""

    def __init__(self, registry: Optional[FilterRegistry] = None):
        """
        Args:
            registry: 过滤器注册表，缺省为全局单例
        """
        self.registry = registry or FilterRegistry.get_instance()

    def load_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        加载 YAML 配置文件

        Raises:
            ConfigValidationError: 文件不存在或 YAML 无法解析
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigValidationError(f"配置文件不存在: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"配置文件解析失败: {config_path}: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigValidationError(f"配置文件顶层必须是映射: {config_path}")
        logger.info("Loaded pipeline config %s (%s)", config_path, self.compute_hash(config))
        return config

    @staticmethod
    def compute_hash(config: Mapping[str, Any]) -> str:
        """
        计算配置的规范化哈希

        规范化规则:
        1. 移除 config_hash 字段（避免循环）
        2. 将字典转为排序的 JSON 字符串
        3. 计算 SHA256 哈希
        """
        config_copy = dict(config)
        config_copy.pop("config_hash", None)

        canonical_json = json.dumps(
            config_copy,
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
            default=str,
        )
        hash_value = hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
        return f"sha256:{hash_value[:16]}"

    def validate_hash(self, config: Mapping[str, Any]) -> Tuple[bool, str]:
        """
        校验配置中存储的 config_hash

        Returns:
            (是否通过, 消息)
        """
        stored_hash = config.get("config_hash", "")
        computed_hash = self.compute_hash(config)

        if not stored_hash:
            return True, f"配置无存储哈希，计算哈希: {computed_hash}"
        if stored_hash == computed_hash:
            return True, "配置哈希验证通过"
        return False, (
            f"配置哈希不匹配!\n"
            f"  存储: {stored_hash}\n"
            f"  计算: {computed_hash}"
        )

    def filter_specs(self, config: Mapping[str, Any]) -> List[Tuple[str, Dict[str, Any]]]:
        """
        解析 filters 段为 (名称, 配置) 列表

        Raises:
            ConfigValidationError: 结构不合法
        """
        filters = config.get("filters", [])
        if not isinstance(filters, list):
            raise ConfigValidationError("filters 必须是列表")

        specs = []
        for index, entry in enumerate(filters):
            if not isinstance(entry, dict) or len(entry) != 1:
                raise ConfigValidationError(
                    f"filters[{index}] 必须是只有一个键的映射，例如 {{sleep: {{time: 1}}}}"
                )
            (name, options), = entry.items()
            if options is None:
                options = {}
            if not isinstance(options, dict):
                raise ConfigValidationError(f"filters[{index}].{name} 的配置必须是映射")
            specs.append((name, options))
        return specs

    def build_filters(self, config: Mapping[str, Any], **kwargs) -> List[BaseFilter]:
        """
        实例化并 register 全部过滤器

        Args:
            config: 流水线配置
            **kwargs: 透传给过滤器构造函数 (time_provider, sleeper)

        Raises:
            ConfigValidationError: 过滤器未注册或配置非法
        """
        passed, message = self.validate_hash(config)
        if not passed:
            raise ConfigValidationError(message)

        plugins = []
        for index, (name, options) in enumerate(self.filter_specs(config)):
            try:
                plugin = self.registry.create(name, options, **kwargs)
                plugin.register()
            except KeyError as e:
                raise ConfigValidationError(f"filters[{index}]: 未知过滤器 {name}") from e
            except ConfigurationError as e:
                raise ConfigValidationError(f"filters[{index}].{name}: {e}") from e
            plugins.append(plugin)
        return plugins
