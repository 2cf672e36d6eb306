"""
断点放置记录与跨轮状态。

PlacementState 是同一会话相邻两次调用之间唯一需要传递的状态。
引擎按值接收、按值返回，从不持有它的引用；
持久化由调用方负责（例如以会话 ID 为键的外部存储，见 cache_forge.store）。
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cache_forge.errors import StateFormatError

# SYSTEM 断点的索引哨兵值。
# 取 -1 使得 SYSTEM 断点排在所有消息断点之前时，"索引严格递增"依然成立。
SYSTEM_INDEX = -1


class PlacementKind(str, Enum):
    SYSTEM = "system"
    MESSAGE = "message"


class Placement(BaseModel):
    """
    一个缓存断点。

    属性:
        index: MESSAGE 断点插入在该消息之后；SYSTEM 断点为 SYSTEM_INDEX
        kind: 断点类型
        tokens_covered: 以该断点结尾的分段的 Token 数，
            从上一个消息断点（或第一条消息）开始计算
    """

    model_config = ConfigDict(frozen=True)

    index: int
    kind: PlacementKind = PlacementKind.MESSAGE
    tokens_covered: int = Field(default=0, ge=0)

    @classmethod
    def system(cls, tokens_covered: int) -> Placement:
        return cls(index=SYSTEM_INDEX, kind=PlacementKind.SYSTEM, tokens_covered=tokens_covered)


class PlacementState(BaseModel):
    """
    上一次调用留下的断点布局。

    用法::

        state = PlacementState()                      # 第一轮：空状态
        result = policy.place(config)
        store[conversation_id] = result.new_state      # 整体替换

        # 持久化
        payload = state.to_dict()
        state = PlacementState.from_dict(payload)
    """

    model_config = ConfigDict(frozen=True)

    placements: tuple[Placement, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.placements

    @property
    def message_placements(self) -> tuple[Placement, ...]:
        return tuple(p for p in self.placements if p.kind == PlacementKind.MESSAGE)

    @property
    def system_placement(self) -> Placement | None:
        for placement in self.placements:
            if placement.kind == PlacementKind.SYSTEM:
                return placement
        return None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, source: str = "<dict>") -> PlacementState:
        """
        从持久化的字典恢复状态。

        异常:
            StateFormatError: 数据结构不合法
        """
        if not data:
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise StateFormatError(
                what=f"无法解析断点状态 '{source}'。",
                why=f"{len(e.errors())} 个字段校验失败：{e.errors()[0]['msg']}",
                how="状态应为 {\"placements\": [{\"index\": 2, \"kind\": \"message\", "
                    "\"tokens_covered\": 1200}]} 形式。也可以删除该状态，从空状态重新开始。",
                source=source,
            ) from e
