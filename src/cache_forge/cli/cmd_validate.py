"""
validate 命令 — 校验 YAML 策略文件。

除 Schema 校验外，还检查策略名、计数器名能否解析，
以及自定义模型里"开启缓存但预算为 0"之类的可疑配置（作为警告）。
"""

from __future__ import annotations

import sys
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from cache_forge.cli.utils import create_console, print_error, print_success
from cache_forge.config.loader import load_policy, validate_policy_file
from cache_forge.config.schema import PolicyConfig
from cache_forge.errors import TokenizerError
from cache_forge.placement import available_policies
from cache_forge.tokenizer.registry import get_counter

console = create_console()


def validate_command(path: str, strict: bool) -> None:
    """执行 validate 命令。"""
    if not Path(path).exists():
        print_error(f"文件不存在：{path}")

    console.print(f"[bold]校验策略文件：[/bold] {path}\n")

    errors = validate_policy_file(path)
    warnings: list[str] = []
    if not errors:
        config = load_policy(path=path)
        errors.extend(_check_references(config))
        warnings.extend(_check_models(config))

    if errors:
        console.print(Panel(
            "\n".join(f"[red]X[/red] {escape(err)}" for err in errors),
            title=f"[bold red]校验失败（{len(errors)} 个错误）[/bold red]",
            border_style="red",
        ))
        sys.exit(1)

    if warnings:
        console.print(Panel(
            "\n".join(f"[yellow]![/yellow] {escape(w)}" for w in warnings),
            title=f"[bold yellow]警告（{len(warnings)} 条）[/bold yellow]",
            border_style="yellow",
        ))
        if strict:
            console.print("\n[bold red]严格模式下警告视为错误。[/bold red]")
            sys.exit(1)

    print_success(f"{path} 校验通过")


def _check_references(config: PolicyConfig) -> list[str]:
    errors: list[str] = []
    if config.placement.policy not in available_policies():
        errors.append(
            f"placement.policy: 未知的放置策略 '{config.placement.policy}'，"
            f"可用：{', '.join(available_policies())}"
        )
    try:
        get_counter(config.tokenizer.counter)
    except TokenizerError as e:
        errors.append(f"tokenizer.counter: {e.what}")
    return errors


def _check_models(config: PolicyConfig) -> list[str]:
    warnings: list[str] = []
    for name, model in config.models.items():
        if model.supports_cache and model.max_breakpoints == 0:
            warnings.append(f"models.{name}: supports_cache 为 true 但 max_breakpoints 为 0，不会放置任何断点")
        if model.supports_cache and not model.cacheable_segments:
            warnings.append(f"models.{name}: cacheable_segments 为空，不会放置任何断点")
    return warnings
