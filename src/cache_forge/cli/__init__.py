"""
Cache Forge CLI — 命令行工具。

提供：
- init: 生成默认策略文件
- validate: 校验策略文件
- plan: 为对话文件计算缓存断点，可逐轮读写状态文件
- models: 查看模型缓存能力
"""

from cache_forge.cli.app import app, main

__all__ = ["app", "main"]
