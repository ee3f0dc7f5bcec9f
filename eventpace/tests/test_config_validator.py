"""
流水线配置加载器与过滤器注册表测试
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from eventpace.core.filters.base import BaseFilter
from eventpace.core.filters.registry import FilterRegistry
from eventpace.core.pacing.config import ConfigurationError
from eventpace.core.pacing.sleep_filter import SleepFilter
from eventpace.shared.config_validator import ConfigValidationError, PipelineConfigLoader
from eventpace.shared.sleeper import Sleeper


class TestFilterRegistry:
    """过滤器注册表"""

    def setup_method(self):
        FilterRegistry.reset_instance()

    def teardown_method(self):
        FilterRegistry.reset_instance()

    def test_builtin_sleep(self):
        registry = FilterRegistry.get_instance()
        assert registry.lookup("sleep") is SleepFilter
        assert "sleep" in registry.list_filters()

    def test_singleton(self):
        assert FilterRegistry.get_instance() is FilterRegistry.get_instance()

    def test_unknown_filter(self):
        with pytest.raises(KeyError):
            FilterRegistry.get_instance().lookup("throttle")

    def test_duplicate_registration(self):
        with pytest.raises(ValueError):
            FilterRegistry.get_instance().register(SleepFilter)

    def test_register_without_name(self):
        class Nameless(BaseFilter):
            def register(self):
                pass

            def filter(self, event):
                return event

        with pytest.raises(ValueError):
            FilterRegistry().register(Nameless)

    def test_create_passes_collaborators(self):
        sleeper = MagicMock(spec=Sleeper)
        plugin = FilterRegistry.get_instance().create("sleep", {"time": 1}, sleeper=sleeper)
        assert isinstance(plugin, SleepFilter)
        assert plugin.sleeper is sleeper
        assert not plugin.is_registered


class TestPipelineConfigLoader:
    """流水线配置加载器"""

    def setup_method(self):
        """测试前准备"""
        self.temp_dir = tempfile.mkdtemp()
        self.loader = PipelineConfigLoader()

    def teardown_method(self):
        """测试后清理"""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, name, config):
        path = os.path.join(self.temp_dir, name)
        with open(path, "w") as f:
            yaml.dump(config, f)
        return path

    def test_load_and_build(self):
        path = self._write("pipeline.yaml", {
            "filters": [
                {"sleep": {"time": 1, "every": "10"}},
                {"sleep": {"replay": True, "threshold": 5}},
            ],
        })
        config = self.loader.load_file(path)
        sleeper = MagicMock(spec=Sleeper)
        plugins = self.loader.build_filters(config, sleeper=sleeper)

        assert len(plugins) == 2
        assert all(p.is_registered for p in plugins)
        assert plugins[0].config.every == 10.0
        assert plugins[1].config.replay is True
        assert plugins[1].config.time.seconds == 1.0

    def test_missing_file(self):
        with pytest.raises(ConfigValidationError):
            self.loader.load_file(os.path.join(self.temp_dir, "nonexistent.yaml"))

    def test_invalid_yaml(self):
        path = os.path.join(self.temp_dir, "broken.yaml")
        with open(path, "w") as f:
            f.write("filters: [sleep: {time: 1\n")
        with pytest.raises(ConfigValidationError):
            self.loader.load_file(path)

    def test_top_level_must_be_mapping(self):
        path = self._write("list.yaml", [1, 2])
        with pytest.raises(ConfigValidationError):
            self.loader.load_file(path)

    def test_empty_file(self):
        path = os.path.join(self.temp_dir, "empty.yaml")
        Path(path).write_text("")
        assert self.loader.build_filters(self.loader.load_file(path)) == []

    def test_missing_time_is_validation_error(self):
        with pytest.raises(ConfigValidationError, match="time"):
            self.loader.build_filters({"filters": [{"sleep": {"every": 2}}]})

    def test_validation_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            self.loader.build_filters({"filters": [{"sleep": {"time": "abc"}}]})

    def test_unknown_filter(self):
        with pytest.raises(ConfigValidationError, match="throttle"):
            self.loader.build_filters({"filters": [{"throttle": {}}]})

    @pytest.mark.parametrize("filters", [
        {"sleep": {}},
        [{"sleep": {"time": 1}, "extra": {}}],
        ["sleep"],
        [{"sleep": [1]}],
    ])
    def test_malformed_filters(self, filters):
        with pytest.raises(ConfigValidationError):
            self.loader.filter_specs({"filters": filters})

    def test_compute_hash(self):
        """相同内容相同哈希，忽略 config_hash 字段"""
        config = {"filters": [{"sleep": {"time": 1}}]}
        hash1 = PipelineConfigLoader.compute_hash(config)
        assert hash1 == PipelineConfigLoader.compute_hash(dict(config, config_hash="old"))
        assert hash1 != PipelineConfigLoader.compute_hash({"filters": []})
        assert hash1.startswith("sha256:")

    def test_hash_mismatch_rejected(self):
        config = {"filters": [{"sleep": {"time": 1}}], "config_hash": "sha256:0000000000000000"}
        passed, _ = self.loader.validate_hash(config)
        assert not passed
        with pytest.raises(ConfigValidationError):
            self.loader.build_filters(config)

    def test_hash_match_accepted(self):
        config = {"filters": [{"sleep": {"time": 1}}]}
        config["config_hash"] = PipelineConfigLoader.compute_hash(config)
        passed, _ = self.loader.validate_hash(config)
        assert passed
        assert len(self.loader.build_filters(config)) == 1


class TestBundledConfig:
    """随包发布的示例配置"""

    def test_replay_yaml(self):
        config_path = Path(__file__).parent.parent / "config" / "replay.yaml"
        loader = PipelineConfigLoader()
        (plugin,) = loader.build_filters(loader.load_file(config_path))
        assert plugin.config.replay is True
        assert plugin.config.time.seconds == 2.0
        assert plugin.config.threshold.seconds == 5.0
        assert plugin.config.cooldown.seconds == 30.0
        assert plugin.config.add_tag == ("replayed",)
