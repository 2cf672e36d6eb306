"""
基于 tiktoken 的 Token 计数器。

对于需要更贴近真实计费的部署，可以用 BPE 计数替代启发式估算。
对于 Claude 等非 OpenAI 模型，cl100k_base 的结果是近似值，
但断点放置只依赖一致性，近似值足够。
"""

from __future__ import annotations

import logging

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


class TiktokenCounter:
    """
    tiktoken 计数器。

    用法::

        counter = TiktokenCounter()                      # cl100k_base
        counter = TiktokenCounter(encoding_name="o200k_base")

    编码方案加载失败时回退到 cl100k_base 并记录警告。
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        self._encoding_name = encoding_name
        try:
            self._encoding = tiktoken.get_encoding(encoding_name)
        except (KeyError, ValueError) as e:
            logger.warning(
                "tiktoken 编码方案 '%s' 加载失败，回退到 %s。错误：%s",
                encoding_name,
                DEFAULT_ENCODING,
                e,
            )
            self._encoding_name = DEFAULT_ENCODING
            self._encoding = tiktoken.get_encoding(DEFAULT_ENCODING)

    def count(self, text: str) -> int:
        if not text:
            return 0
        # 消息内容里可能出现 <|endoftext|> 之类的字面量，按普通文本计数
        return len(self._encoding.encode(text, disallowed_special=()))

    @property
    def name(self) -> str:
        return f"tiktoken:{self._encoding_name}"
