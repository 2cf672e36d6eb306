"""
TokenEstimator — 估算文本与结构化消息的 Token 数。

这是放置引擎的叶子依赖。它纯函数、确定、无 I/O；
同一次放置调用中始终使用同一个估算器，保证比较的一致性。

消息估算规则：
- text 块：交给 TokenCounter
- image 块：固定 image_tokens（默认 300）
- 其他结构化块（tool_use / tool_result / document）：文本部分 + 负载的规范化 JSON
- 每条消息额外加上固定的 message_overhead（默认 10），对应角色与格式开销
"""

from __future__ import annotations

import json
from collections.abc import Iterable

from cache_forge.models.message import ContentPart, Message
from cache_forge.tokenizer.heuristic import WordHeuristicCounter
from cache_forge.tokenizer.protocol import TokenCounter

DEFAULT_MESSAGE_OVERHEAD = 10
DEFAULT_IMAGE_TOKENS = 300


class TokenEstimator:
    """
    Token 估算器。

    用法::

        estimator = TokenEstimator()
        estimator.estimate("You are a helpful assistant.")
        estimator.estimate_message(Message(role=Role.USER, content="你好"))

        # 使用 tiktoken 计数
        estimator = TokenEstimator(counter=TiktokenCounter())

    参数:
        counter: 文本计数器，默认 WordHeuristicCounter
        message_overhead: 每条消息的固定开销
        image_tokens: 每个图片块的估算值
    """

    def __init__(
        self,
        counter: TokenCounter | None = None,
        message_overhead: int = DEFAULT_MESSAGE_OVERHEAD,
        image_tokens: int = DEFAULT_IMAGE_TOKENS,
    ) -> None:
        self.counter: TokenCounter = counter or WordHeuristicCounter()
        self.message_overhead = max(0, message_overhead)
        self.image_tokens = max(0, image_tokens)

    @property
    def name(self) -> str:
        return self.counter.name

    def estimate(self, text: str | None) -> int:
        """估算一段文本的 Token 数。"""
        if not text:
            return 0
        return max(0, int(self.counter.count(text)))

    def estimate_part(self, part: ContentPart) -> int:
        if part.type == "image":
            return self.image_tokens
        tokens = self.estimate(part.text)
        if part.data:
            tokens += self.estimate(json.dumps(part.data, sort_keys=True, ensure_ascii=False, default=str))
        return tokens

    def estimate_message(self, message: Message) -> int:
        """估算一条消息的 Token 数（含固定开销）。"""
        if isinstance(message.content, str):
            body = self.estimate(message.content)
        else:
            body = sum(self.estimate_part(part) for part in message.content)
        return body + self.message_overhead

    def estimate_messages(self, messages: Iterable[Message]) -> list[int]:
        """逐条估算，返回与输入等长的列表。"""
        return [self.estimate_message(message) for message in messages]
