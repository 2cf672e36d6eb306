"""
plan 命令 — 为一个对话文件计算缓存断点。

输入文件（JSON 或 YAML）::

    {
      "system_prompt": "你是一个助手。",
      "messages": [
        {"role": "user", "content": "..."},
        {"role": "assistant", "content": "..."}
      ]
    }

状态文件即 PlacementState 的 JSON；配合 --write-state 可以逐轮模拟同一会话。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError
from rich.panel import Panel

from cache_forge.cli.utils import (
    create_console,
    create_placement_table,
    format_token_count,
    load_json_or_yaml,
    print_error,
    print_warning,
)
from cache_forge.errors import CacheForgeError
from cache_forge.facade import CacheForge
from cache_forge.models.placement import PlacementState
from cache_forge.models.result import CacheResult, CacheStrategyConfig

console = create_console()


def plan_command(
    input_file: str,
    model: str,
    state_file: str | None,
    write_state: bool,
    policy: str | None,
    format: str,
    no_cache: bool,
    verbose: bool,
) -> None:
    """执行 plan 命令。"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        data = load_json_or_yaml(input_file)
    except (FileNotFoundError, ValueError) as e:
        print_error(str(e))

    try:
        forge = CacheForge(model=model, policy_path=Path(policy) if policy else None)
        previous = _load_state(state_file)
        config = CacheStrategyConfig(
            capabilities=forge.capabilities,
            system_prompt=data.get("system_prompt"),
            messages=tuple(data.get("messages") or ()),
            use_cache=not no_cache,
            previous_state=previous,
        )
    except CacheForgeError as e:
        print_error(e.full_message)
    except ValidationError as e:
        print_error(f"输入文件 '{input_file}' 的消息格式无效：{e.errors()[0]['msg']}")

    result = forge.place(config)

    if write_state:
        if not state_file:
            print_error("--write-state 需要同时指定 --state 路径。")
        Path(state_file).write_text(
            json.dumps(result.new_state.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    if format == "json":
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
    elif format == "rich":
        _output_rich(result, forge, write_state, state_file)
    else:
        print_error(f"不支持的输出格式：{format}")


def _load_state(state_file: str | None) -> PlacementState:
    if not state_file or not Path(state_file).exists():
        return PlacementState()
    try:
        payload = json.loads(Path(state_file).read_text(encoding="utf-8") or "{}")
    except json.JSONDecodeError as e:
        print_error(f"状态文件 '{state_file}' 不是合法的 JSON：{e}")
    return PlacementState.from_dict(payload, source=state_file)


def _output_rich(
    result: CacheResult,
    forge: CacheForge,
    write_state: bool,
    state_file: str | None,
) -> None:
    capabilities = forge.capabilities
    summary = (
        f"[bold]模型[/bold]：{forge.model}\n"
        f"[bold]策略[/bold]：{forge.policy.name}\n"
        f"[bold]预算[/bold]：{capabilities.max_breakpoints} 个断点，"
        f"每段至少 {format_token_count(capabilities.min_tokens_per_breakpoint)} tokens\n"
        f"[bold]决策[/bold]：{result.decision.value}\n"
        f"[bold]消息数[/bold]：{len(result.annotated_messages)}"
    )
    console.print(Panel(summary, title="Cache Forge 放置结果", expand=False))

    if result.placements:
        console.print(create_placement_table(result))
    else:
        console.print("[dim]未放置任何断点。[/dim]")

    for warning in result.warnings:
        print_warning(warning)
    if write_state:
        console.print(f"[dim]新状态已写入 {state_file}[/dim]")
