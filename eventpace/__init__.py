"""
eventpace - 流水线事件节流与回放

版本: 1.0.0

功能:
- 周期节流: 每 N 个事件休眠固定时长
- 时间线回放: 按事件原始时间戳间隔重放，可变速、限幅、冷却
"""

__version__ = "1.0.0"
