"""
Annotator — 把计算好的断点应用到消息序列上。

这是纯机械的一步，不含任何决策逻辑：
- MESSAGE 断点：在对应消息的内容末尾追加一个 CacheMarker
- SYSTEM 断点：为 System Prompt 附加 CacheMarker

所有输出都是新对象，调用方的原始消息不会被修改。
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from cache_forge.models.message import ContentPart, Message
from cache_forge.models.placement import Placement, PlacementKind
from cache_forge.models.result import AnnotatedBlock, AnnotatedMessage, AnnotatedSystem, CacheMarker


class Annotator:
    """
    断点标记插入器。

    用法::

        annotator = Annotator()
        system = annotator.annotate_system("你是一个助手。", placements)
        messages = annotator.annotate_messages(messages, placements)

    参数:
        marker_type: CacheMarker 的类型标识，由传输层解释
    """

    def __init__(self, marker_type: str = "default") -> None:
        self.marker = CacheMarker(type=marker_type)

    def annotate_system(
        self,
        system_prompt: str | None,
        placements: Iterable[Placement],
    ) -> AnnotatedSystem | None:
        if system_prompt is None:
            return None
        has_system = any(p.kind == PlacementKind.SYSTEM for p in placements)
        return AnnotatedSystem(text=system_prompt, marker=self.marker if has_system else None)

    def annotate_messages(
        self,
        messages: Sequence[Message],
        placements: Iterable[Placement],
    ) -> tuple[AnnotatedMessage, ...]:
        marked = {
            p.index
            for p in placements
            if p.kind == PlacementKind.MESSAGE and 0 <= p.index < len(messages)
        }
        return tuple(
            self._annotate_one(message, index in marked)
            for index, message in enumerate(messages)
        )

    def _annotate_one(self, message: Message, with_marker: bool) -> AnnotatedMessage:
        blocks: list[AnnotatedBlock] = list(message.parts())
        if with_marker:
            blocks.append(self.marker)
        return AnnotatedMessage(role=message.role, content=tuple(blocks))

    def strip(self, annotated: Sequence[AnnotatedMessage]) -> tuple[Message, ...]:
        """去掉标记，还原为普通消息（用于比对与测试）。"""
        return tuple(
            Message(
                role=message.role,
                content=tuple(b for b in message.content if isinstance(b, ContentPart)),
            )
            for message in annotated
        )
