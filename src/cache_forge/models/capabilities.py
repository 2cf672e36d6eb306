"""
模型缓存能力描述。

ModelCapabilities 由外部的模型能力查询提供（见 config.defaults 中的注册表），
在一次放置调用中保持不变。

# [Design Decision] 非法数值（负的断点预算或负的最小 Token 数）
# 在构造时被钳制为 0 并记录警告，而不是校验失败。
# 缓存断点是尽力而为的优化，不应成为请求失败的原因。
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

_CLAMPED_FIELDS = ("max_breakpoints", "min_tokens_per_breakpoint")


def _is_negative(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0


class CacheSegment(str, Enum):
    """可以承载断点的逻辑区域。"""

    SYSTEM = "system"
    MESSAGES = "messages"


class ModelCapabilities(BaseModel):
    """
    模型的显式缓存断点能力。

    属性:
        supports_cache: 模型是否支持显式缓存断点
        max_breakpoints: 单次请求可用的断点数量上限
        min_tokens_per_breakpoint: 一个分段至少覆盖多少 Token 才值得放置断点（0 表示总是满足）
        cacheable_segments: 允许放置断点的区域
    """

    model_config = ConfigDict(frozen=True)

    supports_cache: bool = Field(default=False, description="是否支持显式缓存断点")
    max_breakpoints: int = Field(default=0, description="单次请求的断点预算")
    min_tokens_per_breakpoint: int = Field(default=0, description="每个断点的最小覆盖 Token 数")
    cacheable_segments: frozenset[CacheSegment] = Field(
        default_factory=lambda: frozenset({CacheSegment.SYSTEM, CacheSegment.MESSAGES}),
        description="允许放置断点的区域",
    )

    adjustments: tuple[str, ...] = Field(
        default=(),
        exclude=True,
        description="构造时对非法数值所做的钳制记录，放置时并入 CacheResult.warnings",
    )

    @model_validator(mode="before")
    @classmethod
    def _clamp_non_negative(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        negative = [name for name in _CLAMPED_FIELDS if _is_negative(data.get(name))]
        if not negative:
            return data
        notes = [f"模型能力 {name}={data[name]} 为负数，已钳制为 0。" for name in negative]
        for note in notes:
            logger.warning(note)
        return {
            **data,
            **{name: 0 for name in negative},
            "adjustments": (*data.get("adjustments", ()), *notes),
        }

    def allows(self, segment: CacheSegment) -> bool:
        return segment in self.cacheable_segments

    @classmethod
    def disabled(cls) -> ModelCapabilities:
        """不支持缓存的能力描述。"""
        return cls(supports_cache=False, max_breakpoints=0, cacheable_segments=frozenset())
