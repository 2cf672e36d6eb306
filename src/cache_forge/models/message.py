"""
对话消息模型。

引擎只读取消息、产出带标记的副本，从不修改调用方的原始序列。
因此 Message 和 ContentPart 都是冻结的 Pydantic 模型。

# [DX Decision] 凡是接受消息的地方都同时接受
# {"role": "user", "content": "..."} 形式的普通字典，
# 由 Pydantic 负责校验并转换为 Message。
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """消息角色。System Prompt 单独传入，不作为消息出现。"""

    USER = "user"
    ASSISTANT = "assistant"


class ContentPart(BaseModel):
    """
    结构化消息内容块。

    属性:
        type: 内容类型：text / image / tool_use / tool_result / document
        text: 文本内容（text 类型，或工具结果的文本部分）
        data: 其他类型的不透明负载（图片来源、工具参数等），引擎只用于估算 Token
    """

    model_config = ConfigDict(frozen=True)

    type: str = Field(default="text", description="内容类型")
    text: str = Field(default="", description="文本内容")
    data: dict[str, Any] = Field(default_factory=dict, description="非文本负载")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.text or self.type == "text":
            result["text"] = self.text
        if self.data:
            result.update(self.data)
        return result


class Message(BaseModel):
    """
    对话中的一条消息。

    content 为字符串或 ContentPart 序列。

    用法::

        Message(role=Role.USER, content="你好")
        Message.model_validate({"role": "assistant", "content": [{"type": "text", "text": "你好！"}]})
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | tuple[ContentPart, ...] = ""

    @property
    def is_user(self) -> bool:
        return self.role == Role.USER

    def parts(self) -> tuple[ContentPart, ...]:
        """以内容块形式返回内容（字符串内容视为单个 text 块）。"""
        if isinstance(self.content, str):
            return (ContentPart(type="text", text=self.content),)
        return self.content

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role.value, "content": self.content}
        return {
            "role": self.role.value,
            "content": [part.to_dict() for part in self.content],
        }
