"""
init 命令 — 在当前目录生成默认策略文件。
"""

from __future__ import annotations

from pathlib import Path

from cache_forge.cli.utils import create_console, print_error, print_success, print_warning
from cache_forge.config.loader import dump_default_policy

console = create_console()

POLICY_FILENAME = "cache_forge.yaml"


def init_command(force: bool) -> None:
    """执行 init 命令。已存在的文件只在 --force 时覆盖。"""
    target = Path.cwd() / POLICY_FILENAME
    if target.exists() and not force:
        print_warning(f"{POLICY_FILENAME} 已存在，跳过（使用 --force 可强制覆盖）")
        return

    try:
        target.write_text(dump_default_policy(), encoding="utf-8")
    except OSError as e:
        print_error(f"创建配置文件失败: {e}")

    print_success(f"已生成 {POLICY_FILENAME}")
    console.print("\n[bold]下一步：[/bold]")
    console.print(f"  cache-forge validate {POLICY_FILENAME}")
    console.print("  cache-forge plan --input conversation.json --model claude-sonnet-4")
