"""
多轮对话中的断点演化。

逐轮追加消息，观察断点如何新建（fresh）、追加（extend）、
保留（preserve）以及在预算饱和后重新分配（reallocate）。

运行方式：
    python examples/multi_turn_demo.py
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from cache_forge import CacheForge, ModelCapabilities

console = Console(highlight=False, emoji=False)

TURNS = [
    ("帮我设计一个 LRU 缓存。", 40, 120),
    ("如果要支持 TTL 呢？", 30, 150),
    ("多线程下怎么保证正确？", 30, 200),
    ("能换成 asyncio 版本吗？", 20, 260),
    ("再加上命中率统计。", 20, 80),
    ("写一组 pytest 测试。", 20, 300),
    ("最后整理成一个模块。", 20, 420),
]


def main() -> None:
    forge = CacheForge(
        capabilities=ModelCapabilities(
            supports_cache=True,
            max_breakpoints=4,
            min_tokens_per_breakpoint=1024,
        ),
    )
    system_prompt = "你是一个严谨的 Python 导师。" * 200
    history: list[dict[str, str]] = []

    table = Table(title="逐轮断点演化")
    table.add_column("轮次", justify="right")
    table.add_column("消息数", justify="right")
    table.add_column("决策", style="cyan")
    table.add_column("断点 (索引: tokens)")

    for turn, (question, user_repeat, assistant_repeat) in enumerate(TURNS, start=1):
        history.append({"role": "user", "content": question * user_repeat})
        result = forge.plan("lru-session", history, system_prompt=system_prompt)

        table.add_row(
            str(turn),
            str(len(history)),
            result.decision.value,
            ", ".join(f"{p.index}: {p.tokens_covered:,}" for p in result.placements),
        )
        history.append({"role": "assistant", "content": "好的，下面是实现思路和代码。" * assistant_repeat})

    console.print(table)
    console.print("[dim]索引 -1 表示 System Prompt 断点。[/dim]")


if __name__ == "__main__":
    main()
