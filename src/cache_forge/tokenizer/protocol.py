"""
TokenCounter 协议定义。

断点放置只用 Token 数做相对比较（阈值检查、"哪个分段更小"），
所以计数器不必与厂商的 Tokenizer 完全一致，
只要求在一次调用内单调且一致。

# [Design Decision] 使用 Protocol（结构化子类型）而非 ABC，
# 任何实现了 count() 和 name 的对象都可以作为 TokenCounter 使用。
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenCounter(Protocol):
    """
    Token 计数器协议。

    内置实现：
    - WordHeuristicCounter：按词数 × 1.3 估算（默认，零依赖）
    - CharRatioCounter：按字符数 / 比率估算
    - TiktokenCounter：基于 tiktoken 的 BPE 精确计数

    最小实现示例::

        class MyCounter:
            def count(self, text: str) -> int:
                return len(text.split())

            @property
            def name(self) -> str:
                return "my_counter"
    """

    def count(self, text: str) -> int:
        """
        计算文本的 Token 数量。

        参数:
            text: 待计数的文本

        返回:
            非负整数；空文本返回 0
        """
        ...

    @property
    def name(self) -> str:
        """计数器名称标识。"""
        ...
