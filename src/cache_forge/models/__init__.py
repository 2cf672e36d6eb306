"""
Cache Forge 数据模型。

输入与跨轮状态使用冻结的 Pydantic 模型（可校验、可序列化），
放置结果使用冻结的 dataclass（只读、零校验开销）。
"""

from cache_forge.models.capabilities import CacheSegment, ModelCapabilities
from cache_forge.models.message import ContentPart, Message, Role
from cache_forge.models.placement import (
    SYSTEM_INDEX,
    Placement,
    PlacementKind,
    PlacementState,
)
from cache_forge.models.result import (
    AnnotatedMessage,
    AnnotatedSystem,
    CacheMarker,
    CacheResult,
    CacheStrategyConfig,
    PlacementDecision,
)

__all__ = [
    "SYSTEM_INDEX",
    "AnnotatedMessage",
    "AnnotatedSystem",
    "CacheMarker",
    "CacheResult",
    "CacheSegment",
    "CacheStrategyConfig",
    "ContentPart",
    "Message",
    "ModelCapabilities",
    "Placement",
    "PlacementDecision",
    "PlacementKind",
    "PlacementState",
    "Role",
]
