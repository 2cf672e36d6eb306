"""
Token 计数器注册表 — 按名称解析计数器。

策略文件里的 `tokenizer.counter` 字段通过这里解析：

- "heuristic"            → WordHeuristicCounter（默认）
- "chars"                → CharRatioCounter（自动比率）
- "tiktoken"             → TiktokenCounter(cl100k_base)
- "tiktoken:o200k_base"  → TiktokenCounter(o200k_base)
- 通过 register_counter() 注册的自定义名称
"""

from __future__ import annotations

import logging

from cache_forge.errors import TokenizerError
from cache_forge.tokenizer.heuristic import CharRatioCounter, WordHeuristicCounter
from cache_forge.tokenizer.protocol import TokenCounter

logger = logging.getLogger(__name__)

DEFAULT_COUNTER = "heuristic"

# 计数器实例缓存（tiktoken 加载编码表较慢）
_counter_cache: dict[str, TokenCounter] = {}

# 用户注册的自定义计数器
_custom_counters: dict[str, TokenCounter] = {}


def get_counter(name: str = DEFAULT_COUNTER) -> TokenCounter:
    """
    按名称获取 Token 计数器。

    参数:
        name: 计数器名称

    返回:
        TokenCounter 实例

    异常:
        TokenizerError: 名称无法解析
    """
    if name in _custom_counters:
        return _custom_counters[name]
    if name in _counter_cache:
        return _counter_cache[name]

    counter = _build_counter(name)
    _counter_cache[name] = counter
    return counter


def _build_counter(name: str) -> TokenCounter:
    if name == "heuristic":
        return WordHeuristicCounter()
    if name == "chars":
        return CharRatioCounter()
    if name == "tiktoken" or name.startswith("tiktoken:"):
        from cache_forge.tokenizer.tiktoken_counter import DEFAULT_ENCODING, TiktokenCounter

        _, _, encoding = name.partition(":")
        return TiktokenCounter(encoding or DEFAULT_ENCODING)

    available = sorted({"heuristic", "chars", "tiktoken", *_custom_counters})
    raise TokenizerError(
        what=f"未知的 Token 计数器 '{name}'。",
        why="该名称既不是内置计数器，也未通过 register_counter() 注册。",
        how=f"可用计数器：{', '.join(available)}；tiktoken 可写成 'tiktoken:<encoding>'。",
        details={"counter": name},
    )


def register_counter(name: str, counter: TokenCounter) -> None:
    """
    注册自定义 Token 计数器。

    示例::

        class WhitespaceCounter:
            def count(self, text: str) -> int:
                return len(text.split())

            @property
            def name(self) -> str:
                return "whitespace"

        register_counter("whitespace", WhitespaceCounter())
    """
    if not isinstance(counter, TokenCounter):
        raise TypeError(
            f"counter 必须实现 TokenCounter 协议，"
            f"但 {type(counter).__name__} 缺少必要的方法。"
            f"需要实现：count(text) -> int, name -> str"
        )
    _custom_counters[name] = counter
    logger.info("已注册自定义 Token 计数器 '%s'：%s", name, counter.name)


def clear_cache() -> None:
    """清除计数器缓存与自定义注册。通常仅在测试中使用。"""
    _counter_cache.clear()
    _custom_counters.clear()
