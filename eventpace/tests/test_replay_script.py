"""
回放脚本测试
"""

import io
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from eventpace.core.pacing.sleep_filter import SleepFilter
from eventpace.scripts.replay_events import (
    ReplayPipeline,
    build_filters,
    build_sleep_options,
    create_parser,
    main,
)
from eventpace.shared.sleeper import Sleeper
from eventpace.shared.time_provider import TimeProvider

NOW = 1_700_000_000.0


@pytest.fixture
def sleeper():
    return MagicMock(spec=Sleeper)


@pytest.fixture
def replay_filter(sleeper):
    plugin = SleepFilter(
        {"replay": True, "threshold": 2, "add_tag": "replayed"},
        time_provider=TimeProvider(mode="replay", fixed_time=NOW),
        sleeper=sleeper,
    )
    plugin.register()
    return plugin


def jsonl(*events):
    return [json.dumps(e) + "\n" for e in events]


class TestReplayPipeline:
    """ReplayPipeline"""

    def test_events_in_order(self, replay_filter, sleeper):
        lines = jsonl(
            {"@timestamp": "2023-11-14T22:12:00Z", "seq": 1},
            {"@timestamp": "2023-11-14T22:12:01Z", "seq": 2},
            {"@timestamp": "2023-11-14T22:12:11Z", "seq": 3},
        )
        output = io.StringIO()
        count = ReplayPipeline([replay_filter]).run(lines, output)

        assert count == 3
        written = [json.loads(line) for line in output.getvalue().splitlines()]
        assert [e["seq"] for e in written] == [1, 2, 3]
        assert all(e["tags"] == ["replayed"] for e in written)
        assert [c.args[0] for c in sleeper.sleep.call_args_list] == [0.0, 0.0, 1.0, 0.0, 2.0]

    def test_skips_bad_lines(self, replay_filter):
        lines = ["not json\n", "[1, 2]\n", "\n", '{"@timestamp": "garbage"}\n'] + jsonl(
            {"@timestamp": "2023-11-14T22:12:00Z"}
        )
        output = io.StringIO()
        assert ReplayPipeline([replay_filter]).run(lines, output) == 1

    def test_stop_halts_and_closes(self, replay_filter, sleeper):
        pipeline = ReplayPipeline([replay_filter])
        pipeline.stop()
        sleeper.shutdown.assert_called_once()
        output = io.StringIO()
        assert pipeline.run(jsonl({"seq": 1}), output) == 0
        assert output.getvalue() == ""

    def test_stop_during_sleep_keeps_current_event(self, sleeper):
        """休眠中收到停止信号，当前事件仍然输出，后续事件不再读取"""
        plugin = SleepFilter({"time": 1}, sleeper=sleeper)
        plugin.register()
        pipeline = ReplayPipeline([plugin])
        sleeper.sleep.side_effect = lambda seconds: pipeline.stop()

        output = io.StringIO()
        count = pipeline.run(jsonl({"seq": 1}, {"seq": 2}, {"seq": 3}), output)

        assert count == 1
        assert [json.loads(line)["seq"] for line in output.getvalue().splitlines()] == [1]
        sleeper.shutdown.assert_called_once()


class TestCommandLine:
    """命令行参数"""

    def test_sleep_options(self):
        args = create_parser().parse_args(
            ["--replay", "--time", "2", "--threshold", "5", "--cooldown", "30"]
        )
        assert build_sleep_options(args) == {
            "replay": True,
            "time": "2",
            "threshold": "5",
            "cooldown": "30",
        }

    def test_build_periodic_filter(self):
        args = create_parser().parse_args(["--time", "1", "--every", "10"])
        (plugin,) = build_filters(args)
        assert plugin.is_registered
        assert plugin.config.every == 10.0

    def test_pipeline_file(self, tmp_path):
        config_path = tmp_path / "pipeline.yaml"
        config_path.write_text("filters:\n  - sleep:\n      replay: true\n      threshold: 1\n")
        args = create_parser().parse_args(["--pipeline", str(config_path)])
        (plugin,) = build_filters(args)
        assert plugin.config.replay is True

    def test_main_missing_time(self, tmp_path):
        events = tmp_path / "events.jsonl"
        events.write_text("")
        assert main([str(events)]) == 2

    def test_main_missing_input(self, tmp_path):
        assert main(["--time", "0", str(tmp_path / "missing.jsonl")]) == 2

    def test_main_runs_file(self, tmp_path, capsys):
        events = tmp_path / "events.jsonl"
        events.write_text("".join(jsonl({"@timestamp": 0, "seq": 1}, {"@timestamp": 0, "seq": 2})))
        assert main(["--time", "0", str(events)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert [json.loads(line)["seq"] for line in out] == [1, 2]
