"""
错误处理单元测试 — 测试所有异常类。

覆盖范围:
- errors/exceptions.py: 全部自定义异常类
- 三段式错误信息验证（What / Why / How）
- 异常继承关系与 to_dict()
"""

from __future__ import annotations

import pytest

from cache_forge.errors import (
    CacheForgeError,
    ConfigValidationError,
    ModelNotFoundError,
    PolicyLoadError,
    StateFormatError,
    TokenizerError,
    UnknownPolicyError,
)


class TestCacheForgeError:
    """CacheForgeError 基类测试。"""

    def test_three_segments(self) -> None:
        error = CacheForgeError(what="出错了。", why="原因。", how="修复。")

        assert str(error) == "出错了。\n→ 原因：原因。\n→ 修复建议：修复。"
        assert error.full_message == str(error)

    def test_what_only(self) -> None:
        assert str(CacheForgeError(what="出错了。")) == "出错了。"

    def test_to_dict(self) -> None:
        error = CacheForgeError(what="a", how="c", details={"k": 1})

        assert error.to_dict() == {
            "error_type": "CacheForgeError",
            "what": "a",
            "how": "c",
            "details": {"k": 1},
        }

    @pytest.mark.parametrize(
        "error_cls",
        [
            ConfigValidationError,
            PolicyLoadError,
            ModelNotFoundError,
            UnknownPolicyError,
            StateFormatError,
            TokenizerError,
        ],
    )
    def test_inheritance(self, error_cls: type[CacheForgeError]) -> None:
        error = error_cls(what="x")
        assert isinstance(error, CacheForgeError)
        assert isinstance(error, Exception)


class TestSubclasses:
    """子类的附加属性与 details。"""

    def test_config_validation_error(self) -> None:
        error = ConfigValidationError(
            what="校验失败。",
            config_path="cache_forge.yaml",
            field_path="placement.hysteresis_factor",
        )
        assert error.field_path == "placement.hysteresis_factor"
        assert error.details == {
            "config_path": "cache_forge.yaml",
            "field_path": "placement.hysteresis_factor",
        }

    def test_policy_load_error(self) -> None:
        error = PolicyLoadError(what="不存在。", file_path="x.yaml")
        assert error.file_path == "x.yaml"
        assert error.to_dict()["details"] == {"file_path": "x.yaml"}

    def test_model_not_found_error(self) -> None:
        error = ModelNotFoundError(what="未找到。", model_id="m", available_models=["a", "b"])
        assert error.model_id == "m"
        assert error.details["available_models"] == ["a", "b"]

    def test_model_not_found_without_candidates(self) -> None:
        assert "available_models" not in ModelNotFoundError(what="x", model_id="m").details

    def test_unknown_policy_error(self) -> None:
        error = UnknownPolicyError(what="未知。", policy_name="p", extra="y")
        assert error.policy_name == "p"
        assert error.details == {"policy_name": "p", "extra": "y"}

    def test_state_format_error(self) -> None:
        error = StateFormatError(what="无法解析。", source="state.json")
        assert error.source == "state.json"
        assert error.to_dict()["error_type"] == "StateFormatError"
