"""
eventpace Core - 核心模块

包含:
- event: 事件模型与字段引用
- filters: 过滤器插件框架
- pacing: sleep 过滤器
"""
