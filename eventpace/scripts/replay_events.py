#!/usr/bin/env python3
"""
eventpace 事件回放脚本

功能:
- 从 JSON Lines 文件或标准输入读取事件
- 经过 sleep 过滤器链 (YAML 流水线配置或命令行参数)
- 以 JSON Lines 写到标准输出
- SIGINT / SIGTERM 时中断休眠并停止

使用方式:
    # 按原始时间线回放，单次休眠不超过 5 秒
    eventpace-replay --replay --threshold 5 events.jsonl

    # 每 10 个事件休眠 1 秒
    eventpace-replay --time 1 --every 10 events.jsonl

    # 使用流水线配置
    eventpace-replay --pipeline pipeline.yaml < events.jsonl
"""

import argparse
import json
import logging
import signal
import sys
from typing import Any, Dict, IO, Iterable, List

from eventpace.core.event import Event, EventFieldError
from eventpace.core.filters.base import BaseFilter
from eventpace.core.filters.registry import FilterRegistry
from eventpace.core.pacing.config import ConfigurationError
from eventpace.shared.config_validator import PipelineConfigLoader

logger = logging.getLogger("eventpace.replay")


class ReplayPipeline:
    """按顺序把事件送过过滤器链"""

    def __init__(self, filters: List[BaseFilter]):
        self.filters = filters
        self._stopped = False
        self.processed = 0

    def run(self, lines: Iterable[str], output: IO[str]) -> int:
        """
        处理输入的每一行 JSON

        Returns:
            成功输出的事件数
        """
        for line_no, line in enumerate(lines, start=1):
            if self._stopped:
                break
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping line %d: invalid JSON (%s)", line_no, e)
                continue
            if not isinstance(data, dict):
                logger.warning("Skipping line %d: not a JSON object", line_no)
                continue

            try:
                event = Event(data)
            except EventFieldError as e:
                logger.warning("Skipping line %d: %s", line_no, e)
                continue
            # stop() 可能在休眠中触发，已读入的事件仍然输出
            for plugin in self.filters:
                event = plugin.filter(event)
            output.write(json.dumps(event.to_dict(), ensure_ascii=False, default=str) + "\n")
            output.flush()
            self.processed += 1
        return self.processed

    def stop(self):
        """停止读取并中断所有休眠"""
        self._stopped = True
        for plugin in self.filters:
            plugin.close()


def build_sleep_options(args: argparse.Namespace) -> Dict[str, Any]:
    """命令行参数 -> sleep 过滤器配置"""
    options: Dict[str, Any] = {}
    if args.time is not None:
        options["time"] = args.time
    if args.every is not None:
        options["every"] = args.every
    if args.replay:
        options["replay"] = True
    if args.threshold is not None:
        options["threshold"] = args.threshold
    if args.cooldown is not None:
        options["cooldown"] = args.cooldown
    return options


def build_filters(args: argparse.Namespace) -> List[BaseFilter]:
    """按 --pipeline 或单个 sleep 过滤器的命令行参数构造过滤器链"""
    if args.pipeline:
        loader = PipelineConfigLoader()
        return loader.build_filters(loader.load_file(args.pipeline))

    plugin = FilterRegistry.get_instance().create("sleep", build_sleep_options(args))
    plugin.register()
    return [plugin]


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="eventpace 事件节流 / 回放")
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="JSON Lines 事件文件，- 表示标准输入",
    )
    parser.add_argument(
        "--pipeline",
        type=str,
        default=None,
        help="YAML 流水线配置文件",
    )
    parser.add_argument(
        "--time",
        type=str,
        default=None,
        help="休眠秒数或字段模板 (如 %%{delay})；回放模式下为速度除数",
    )
    parser.add_argument(
        "--every",
        type=str,
        default=None,
        help="每 N 个事件休眠一次",
    )
    parser.add_argument(
        "--replay",
        action="store_true",
        help="按事件 @timestamp 回放",
    )
    parser.add_argument(
        "--threshold",
        type=str,
        default=None,
        help="回放模式单次休眠上限 (秒)",
    )
    parser.add_argument(
        "--cooldown",
        type=str,
        default=None,
        help="回放模式冷却时间 (秒)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="输出 DEBUG 日志",
    )
    return parser


def main(argv=None) -> int:
    args = create_parser().parse_args(argv)

    # 日志写 stderr，stdout 只输出事件
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    try:
        filters = build_filters(args)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    if args.input == "-":
        source = sys.stdin
    else:
        try:
            source = open(args.input, "r", encoding="utf-8")
        except OSError as e:
            logger.error("Cannot open input: %s", e)
            return 2

    pipeline = ReplayPipeline(filters)

    def signal_handler(sig, frame):
        logger.info("Received shutdown signal")
        pipeline.stop()

    previous = {sig: signal.signal(sig, signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        count = pipeline.run(source, sys.stdout)
    finally:
        if source is not sys.stdin:
            source.close()
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)

    logger.info("Processed %d events", count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
