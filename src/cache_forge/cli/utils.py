"""
CLI 工具函数 — Rich 输出、文件加载、通用辅助。
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cache_forge.models.placement import Placement, PlacementKind
from cache_forge.models.result import CacheResult

# 全局 Console 实例
_console: Console | None = None


def create_console() -> Console:
    """创建或获取全局 Rich Console 实例。"""
    global _console
    if _console is None:
        _console = Console()
    return _console


def print_error(message: str, exit_code: int = 1) -> NoReturn:
    """打印错误信息并退出程序。"""
    console = create_console()
    # [DX Decision] 使用 X 而非 ✗，避免 Windows 终端编码问题
    console.print(f"[bold red]X 错误：[/bold red]{escape(message)}")
    sys.exit(exit_code)


def print_success(message: str) -> None:
    create_console().print(f"[bold green]OK[/bold green] {message}")


def print_warning(message: str) -> None:
    create_console().print(f"[bold yellow]![/bold yellow] {escape(message)}")


def format_token_count(count: int) -> str:
    """
    格式化 Token 数字为带千分位分隔符的字符串。

    示例::

        >>> format_token_count(128000)
        '128,000'
    """
    return f"{count:,}"


def load_json_or_yaml(file_path: str | Path) -> dict[str, Any]:
    """
    从文件加载 JSON 或 YAML 字典，按扩展名判断格式。

    异常:
        FileNotFoundError: 文件不存在
        ValueError: 文件格式无效或根元素不是字典
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"文件不存在：{path}")

    content = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"JSON 格式错误：{e}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"YAML 格式错误：{e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"文件根元素必须是字典，实际为 {type(data).__name__}")
    return data


def create_placement_table(result: CacheResult, title: str = "缓存断点") -> Table:
    """把放置结果渲染为 Rich 表格。"""
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("类型", style="cyan")
    table.add_column("位置")
    table.add_column("覆盖 Tokens", justify="right", style="green")

    for number, placement in enumerate(result.placements, start=1):
        table.add_row(
            str(number),
            placement.kind.value,
            _describe_position(placement, result),
            format_token_count(placement.tokens_covered),
        )
    return table


def _describe_position(placement: Placement, result: CacheResult) -> str:
    if placement.kind == PlacementKind.SYSTEM:
        return "System Prompt 之后"
    message = result.annotated_messages[placement.index]
    return f"消息 {placement.index}（{message.role.value}）之后"
