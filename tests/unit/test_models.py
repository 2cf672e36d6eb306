"""
数据模型单元测试。

覆盖范围:
- models/message.py: Role、ContentPart、Message
- models/capabilities.py: ModelCapabilities（负数钳制）
- models/placement.py: Placement、PlacementState（持久化与解析错误）
- models/result.py: CacheStrategyConfig、CacheResult
"""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from cache_forge.errors import StateFormatError
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


class TestMessage:
    """Message / ContentPart 测试。"""

    def test_from_dict(self) -> None:
        message = Message.model_validate({"role": "user", "content": "你好"})
        assert message.role == Role.USER
        assert message.is_user

    def test_structured_content_from_dict(self) -> None:
        message = Message.model_validate({
            "role": "assistant",
            "content": [{"type": "text", "text": "好的"}, {"type": "tool_use", "data": {"name": "search"}}],
        })
        assert isinstance(message.content, tuple)
        assert message.content[1].data == {"name": "search"}
        assert not message.is_user

    def test_parts_of_string_content(self) -> None:
        message = Message(role=Role.USER, content="hi")
        assert message.parts() == (ContentPart(type="text", text="hi"),)

    def test_to_dict(self) -> None:
        assert Message(role=Role.USER, content="hi").to_dict() == {"role": "user", "content": "hi"}
        image = Message(role=Role.USER, content=(ContentPart(type="image", data={"source": "x"}),))
        assert image.to_dict() == {"role": "user", "content": [{"type": "image", "source": "x"}]}

    def test_frozen(self) -> None:
        message = Message(role=Role.USER, content="hi")
        with pytest.raises(ValidationError):
            message.content = "changed"  # type: ignore[misc]

    def test_invalid_role(self) -> None:
        with pytest.raises(ValidationError):
            Message.model_validate({"role": "system", "content": "hi"})


class TestModelCapabilities:
    """ModelCapabilities 测试。"""

    def test_defaults_disable_cache(self) -> None:
        caps = ModelCapabilities()
        assert not caps.supports_cache
        assert caps.max_breakpoints == 0
        assert caps.allows(CacheSegment.SYSTEM)
        assert caps.allows(CacheSegment.MESSAGES)

    def test_negative_values_clamped(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            caps = ModelCapabilities(
                supports_cache=True, max_breakpoints=-2, min_tokens_per_breakpoint=-100
            )
        assert caps.max_breakpoints == 0
        assert caps.min_tokens_per_breakpoint == 0
        assert "钳制" in caplog.text
        assert len(caps.adjustments) == 2
        assert "adjustments" not in caps.model_dump()

    def test_disabled(self) -> None:
        caps = ModelCapabilities.disabled()
        assert not caps.supports_cache
        assert not caps.allows(CacheSegment.MESSAGES)

    def test_segments_from_strings(self) -> None:
        caps = ModelCapabilities(supports_cache=True, cacheable_segments=["messages"])
        assert caps.allows(CacheSegment.MESSAGES)
        assert not caps.allows(CacheSegment.SYSTEM)


class TestPlacementState:
    """Placement / PlacementState 测试。"""

    def test_system_placement(self) -> None:
        placement = Placement.system(1500)
        assert placement.index == SYSTEM_INDEX
        assert placement.kind == PlacementKind.SYSTEM

    def test_negative_tokens_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Placement(index=0, tokens_covered=-1)

    def test_views(self) -> None:
        state = PlacementState(placements=(Placement.system(100), Placement(index=2, tokens_covered=300)))
        assert not state.is_empty
        assert state.system_placement == Placement.system(100)
        assert state.message_placements == (Placement(index=2, tokens_covered=300),)
        assert PlacementState().is_empty
        assert PlacementState().system_placement is None

    def test_to_dict_and_back(self) -> None:
        state = PlacementState(placements=(Placement(index=2, tokens_covered=300),))
        payload = state.to_dict()

        assert payload == {"placements": [{"index": 2, "kind": "message", "tokens_covered": 300}]}
        assert PlacementState.from_dict(payload) == state

    @pytest.mark.parametrize("payload", [None, {}])
    def test_from_empty(self, payload) -> None:
        assert PlacementState.from_dict(payload).is_empty

    def test_from_invalid_dict(self) -> None:
        with pytest.raises(StateFormatError) as exc_info:
            PlacementState.from_dict({"placements": [{"index": "abc"}]}, source="state.json")

        assert exc_info.value.source == "state.json"
        assert "state.json" in exc_info.value.what


class TestResultTypes:
    """CacheStrategyConfig / CacheResult 测试。"""

    def test_config_accepts_dict_messages(self, sample_messages) -> None:
        config = CacheStrategyConfig(capabilities=ModelCapabilities(), messages=sample_messages)

        assert len(config.messages) == 3
        assert all(isinstance(m, Message) for m in config.messages)
        assert config.previous_state.is_empty
        assert config.use_cache

    def test_cache_marker(self) -> None:
        assert CacheMarker().to_dict() == {"cache_point": {"type": "default"}}

    def test_annotated_system(self) -> None:
        assert not AnnotatedSystem(text="x").has_cache_point
        assert AnnotatedSystem(text="x", marker=CacheMarker()).has_cache_point

    def test_result_to_dict(self) -> None:
        state = PlacementState(placements=(Placement(index=0, tokens_covered=200),))
        result = CacheResult(
            annotated_system=None,
            annotated_messages=(
                AnnotatedMessage(role=Role.USER, content=(ContentPart(text="hi"), CacheMarker())),
            ),
            new_state=state,
            decision=PlacementDecision.FRESH,
        )

        assert result.placements == state.placements
        assert result.to_dict() == {
            "decision": "fresh",
            "system": None,
            "messages": [
                {"role": "user", "content": [{"type": "text", "text": "hi"}, {"cache_point": {"type": "default"}}]},
            ],
            "state": {"placements": [{"index": 0, "kind": "message", "tokens_covered": 200}]},
            "warnings": [],
        }
