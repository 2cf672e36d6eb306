"""
Cache Forge Token 估算模块。

提供可插拔的 Token 计数器和基于它的消息级估算器。
"""

from cache_forge.tokenizer.estimator import TokenEstimator
from cache_forge.tokenizer.heuristic import CharRatioCounter, WordHeuristicCounter
from cache_forge.tokenizer.protocol import TokenCounter
from cache_forge.tokenizer.registry import clear_cache, get_counter, register_counter
from cache_forge.tokenizer.tiktoken_counter import TiktokenCounter

__all__ = [
    "CharRatioCounter",
    "TokenCounter",
    "TiktokenCounter",
    "TokenEstimator",
    "WordHeuristicCounter",
    "clear_cache",
    "get_counter",
    "register_counter",
]
