"""
策略配置的 Schema 定义与校验。

YAML 策略文件决定使用哪种放置策略、滞后倍数、Token 估算方式，
以及（可选的）自定义模型缓存能力。本模块定义该文件的 Schema。

# [Design Decision] 使用 Pydantic 模型作为 Schema 定义，
# 既能做字段级校验，又能生成 JSON Schema 供编辑器提示。
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from cache_forge.models.capabilities import CacheSegment, ModelCapabilities


class PlacementConfig(BaseModel):
    """断点放置策略配置。"""

    policy: str = Field(
        default="multi_point",
        description="放置策略：multi_point / single_point / 自定义注册名",
    )
    hysteresis_factor: float = Field(
        default=1.2,
        description="预算饱和时，新内容需达到最小合并跨度的多少倍才重新分配",
        ge=1.0,
    )
    marker_type: str = Field(default="default", description="CacheMarker 类型标识")


class TokenizerConfig(BaseModel):
    """Token 估算配置。"""

    counter: str = Field(
        default="heuristic",
        description="计数器：heuristic / chars / tiktoken / tiktoken:<encoding>",
    )
    message_overhead: int = Field(default=10, description="每条消息的固定开销", ge=0)
    image_tokens: int = Field(default=300, description="每个图片块的估算值", ge=0)


class CapabilityConfig(BaseModel):
    """
    自定义模型缓存能力。

    与 ModelCapabilities 不同，这里严格校验（负数直接报错），
    因为策略文件是人工编写的，应尽早暴露笔误。
    """

    supports_cache: bool = Field(default=True, description="是否支持显式缓存断点")
    max_breakpoints: int = Field(default=4, description="单次请求的断点预算", ge=0)
    min_tokens_per_breakpoint: int = Field(default=1024, description="每个断点的最小覆盖 Token 数", ge=0)
    cacheable_segments: list[CacheSegment] = Field(
        default_factory=lambda: [CacheSegment.SYSTEM, CacheSegment.MESSAGES],
        description="允许放置断点的区域：system / messages",
    )

    @field_validator("cacheable_segments", mode="before")
    @classmethod
    def _lowercase_segments(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [v.lower() if isinstance(v, str) else v for v in value]
        return value

    def to_capabilities(self) -> ModelCapabilities:
        return ModelCapabilities(
            supports_cache=self.supports_cache,
            max_breakpoints=self.max_breakpoints,
            min_tokens_per_breakpoint=self.min_tokens_per_breakpoint,
            cacheable_segments=frozenset(self.cacheable_segments),
        )


class PolicyConfig(BaseModel):
    """
    Cache Forge 策略配置（YAML 文件的根）。

    示例::

        version: "1.0"
        placement:
          policy: multi_point
          hysteresis_factor: 1.2
        tokenizer:
          counter: heuristic
        models:
          my-model:
            max_breakpoints: 2
            min_tokens_per_breakpoint: 512
    """

    version: str = Field(default="1.0", description="策略文件版本")
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    models: dict[str, CapabilityConfig] = Field(
        default_factory=dict,
        description="自定义模型能力（覆盖或扩展内置注册表）",
    )
