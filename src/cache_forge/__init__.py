"""
Cache Forge — 提示缓存断点放置引擎。

为支持显式缓存断点的 LLM API 决定断点位置：
在断点预算和单段最小 Token 数的约束下，让多轮对话的前缀尽可能被复用。

快速上手::

    from cache_forge import CacheForge

    forge = CacheForge(model="claude-sonnet-4")
    result = forge.plan("conv-1", messages=history, system_prompt=system_prompt)
    result.annotated_messages   # 带 CacheMarker 的消息副本
    result.new_state            # 已写回会话存储

直接使用策略（调用方自己保存状态）::

    from cache_forge import CacheStrategyConfig, MultiPointPlacementPolicy

    result = MultiPointPlacementPolicy().place(CacheStrategyConfig(
        capabilities=capabilities,
        messages=history,
        previous_state=previous_state,
    ))
"""

from cache_forge.config import PolicyConfig, load_policy, resolve_capabilities
from cache_forge.errors import (
    CacheForgeError,
    ConfigValidationError,
    ModelNotFoundError,
    PolicyLoadError,
    StateFormatError,
    TokenizerError,
    UnknownPolicyError,
)
from cache_forge.facade import CacheForge
from cache_forge.models import (
    SYSTEM_INDEX,
    AnnotatedMessage,
    AnnotatedSystem,
    CacheMarker,
    CacheResult,
    CacheSegment,
    CacheStrategyConfig,
    ContentPart,
    Message,
    ModelCapabilities,
    Placement,
    PlacementDecision,
    PlacementKind,
    PlacementState,
    Role,
)
from cache_forge.placement import (
    Annotator,
    MultiPointPlacementPolicy,
    PlacementPolicy,
    SinglePointPlacementPolicy,
    create_policy,
    register_policy,
)
from cache_forge.store import MemoryPlacementStore, PlacementStore
from cache_forge.tokenizer import TokenCounter, TokenEstimator

__version__ = "0.1.0"

__all__ = [
    # 顶层入口
    "CacheForge",
    # 数据模型
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
    # 放置策略
    "Annotator",
    "MultiPointPlacementPolicy",
    "PlacementPolicy",
    "SinglePointPlacementPolicy",
    "create_policy",
    "register_policy",
    # Token 估算
    "TokenCounter",
    "TokenEstimator",
    # 会话状态
    "MemoryPlacementStore",
    "PlacementStore",
    # 配置
    "PolicyConfig",
    "load_policy",
    "resolve_capabilities",
    # 异常
    "CacheForgeError",
    "ConfigValidationError",
    "ModelNotFoundError",
    "PolicyLoadError",
    "StateFormatError",
    "TokenizerError",
    "UnknownPolicyError",
]
