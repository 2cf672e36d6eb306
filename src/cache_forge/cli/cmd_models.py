"""
models 命令 — 列出内置模型的缓存能力。
"""

from __future__ import annotations

import json

from rich.table import Table

from cache_forge.cli.utils import create_console, format_token_count, print_error
from cache_forge.config.defaults import CAPABILITY_REGISTRY, MODEL_ALIASES, resolve_capabilities
from cache_forge.errors import ModelNotFoundError
from cache_forge.models.capabilities import CacheSegment, ModelCapabilities

console = create_console()


def models_command(model: str | None, format: str) -> None:
    """执行 models 命令。指定 model 时只显示其解析结果。"""
    if model is not None:
        try:
            rows = {model: resolve_capabilities(model)}
        except ModelNotFoundError as e:
            print_error(e.full_message)
    else:
        rows = dict(sorted(CAPABILITY_REGISTRY.items()))

    if format == "json":
        payload = {name: caps.model_dump(mode="json") for name, caps in rows.items()}
        for name in payload:
            payload[name]["cacheable_segments"] = sorted(payload[name]["cacheable_segments"])
        console.print_json(json.dumps(payload, ensure_ascii=False))
        return

    table = Table(title="模型缓存能力")
    table.add_column("模型", style="cyan")
    table.add_column("缓存", justify="center")
    table.add_column("断点预算", justify="right")
    table.add_column("最小 Tokens", justify="right")
    table.add_column("可缓存区域")
    table.add_column("别名", style="dim")

    aliases = _aliases_by_target()
    for name, caps in rows.items():
        table.add_row(
            name,
            "[green]是[/green]" if caps.supports_cache else "[dim]否[/dim]",
            str(caps.max_breakpoints),
            format_token_count(caps.min_tokens_per_breakpoint),
            _describe_segments(caps),
            ", ".join(aliases.get(name, [])),
        )
    console.print(table)


def _aliases_by_target() -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for alias, target in sorted(MODEL_ALIASES.items()):
        result.setdefault(target, []).append(alias)
    return result


def _describe_segments(caps: ModelCapabilities) -> str:
    if not caps.supports_cache:
        return "-"
    return " / ".join(segment.value for segment in CacheSegment if caps.allows(segment))
