"""
放置调用的输入配置与输出结果。

→ CacheStrategyConfig：一次调用的全部输入（能力、System Prompt、消息、上一轮状态）
→ CacheResult：带标记的 System / 消息副本 + 新状态 + 决策说明

输出中的 CacheMarker 只是一个稳定的占位符，
具体序列化为哪种厂商格式由传输层决定。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from cache_forge.models.capabilities import ModelCapabilities
from cache_forge.models.message import ContentPart, Message, Role
from cache_forge.models.placement import Placement, PlacementState


class PlacementDecision(str, Enum):
    """产生本次结果的分支。"""

    DISABLED = "disabled"        # 缓存关闭或输入退化
    SYSTEM_ONLY = "system_only"  # 消息区域不可缓存或预算已被 System 用尽
    FRESH = "fresh"             # 新会话，从头贪心扫描
    PRESERVE = "preserve"        # 保留上一轮全部断点
    EXTEND = "extend"            # 保留上一轮断点并追加一个
    REALLOCATE = "reallocate"    # 合并最小间隔的两个断点，为新内容腾出名额


class CacheStrategyConfig(BaseModel):
    """
    一次放置调用的完整输入。

    属性:
        capabilities: 模型缓存能力
        system_prompt: System Prompt 文本（可选）
        messages: 已规范化的消息序列
        use_cache: 调用方的缓存开关
        previous_state: 上一轮的断点状态（第一轮为空）
    """

    model_config = ConfigDict(frozen=True)

    capabilities: ModelCapabilities
    system_prompt: str | None = None
    messages: tuple[Message, ...] = ()
    use_cache: bool = True
    previous_state: PlacementState = Field(default_factory=PlacementState)


@dataclass(frozen=True)
class CacheMarker:
    """缓存断点占位符。"""

    type: str = "default"

    def to_dict(self) -> dict[str, Any]:
        return {"cache_point": {"type": self.type}}


AnnotatedBlock = Union[ContentPart, CacheMarker]


@dataclass(frozen=True)
class AnnotatedSystem:
    """带（或不带）断点标记的 System Prompt。"""

    text: str
    marker: CacheMarker | None = None

    @property
    def has_cache_point(self) -> bool:
        return self.marker is not None

    def to_blocks(self) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = [{"type": "text", "text": self.text}]
        if self.marker is not None:
            blocks.append(self.marker.to_dict())
        return blocks


@dataclass(frozen=True)
class AnnotatedMessage:
    """原消息的带标记副本。content 中的 CacheMarker 即断点位置。"""

    role: Role
    content: tuple[AnnotatedBlock, ...]

    @property
    def has_cache_point(self) -> bool:
        return any(isinstance(block, CacheMarker) for block in self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": [block.to_dict() for block in self.content],
        }


@dataclass(frozen=True)
class CacheResult:
    """
    放置结果。

    属性:
        annotated_system: 带标记的 System Prompt（未提供 System Prompt 时为 None）
        annotated_messages: 带标记的消息副本
        new_state: 供下一轮使用的断点状态，调用方应整体替换旧状态
        decision: 产生本结果的分支
        warnings: 钳制或修复输入时产生的提示
    """

    annotated_system: AnnotatedSystem | None
    annotated_messages: tuple[AnnotatedMessage, ...]
    new_state: PlacementState
    decision: PlacementDecision = PlacementDecision.DISABLED
    warnings: tuple[str, ...] = field(default=())

    @property
    def placements(self) -> tuple[Placement, ...]:
        return self.new_state.placements

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "system": self.annotated_system.to_blocks() if self.annotated_system else None,
            "messages": [message.to_dict() for message in self.annotated_messages],
            "state": self.new_state.to_dict(),
            "warnings": list(self.warnings),
        }
