"""
配置模块单元测试 — 测试策略配置和模型能力注册表。

覆盖范围:
- config/schema.py: PolicyConfig 及所有子配置
- config/loader.py: load_policy(), YAML 加载/校验/合并
- config/defaults.py: CAPABILITY_REGISTRY, MODEL_ALIASES, resolve_capabilities()
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from cache_forge.config import (
    CAPABILITY_REGISTRY,
    MODEL_ALIASES,
    CapabilityConfig,
    PolicyConfig,
    dump_default_policy,
    list_models,
    load_policy,
    register_capabilities,
    resolve_capabilities,
    validate_policy_file,
)
from cache_forge.errors import ConfigValidationError, ModelNotFoundError, PolicyLoadError
from cache_forge.models.capabilities import CacheSegment, ModelCapabilities


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


# === Schema 测试 ===


class TestPolicyConfig:
    """PolicyConfig 主配置测试。"""

    def test_defaults(self) -> None:
        config = PolicyConfig()
        assert config.placement.policy == "multi_point"
        assert config.placement.hysteresis_factor == 1.2
        assert config.tokenizer.counter == "heuristic"
        assert config.tokenizer.message_overhead == 10
        assert config.models == {}

    def test_hysteresis_below_one_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PolicyConfig(placement={"hysteresis_factor": 0.9})

    def test_negative_budget_rejected(self) -> None:
        """策略文件是人工编写的，负数直接报错（与运行时钳制不同）。"""
        with pytest.raises(ValidationError):
            CapabilityConfig(max_breakpoints=-1)

    def test_capability_config_to_capabilities(self) -> None:
        config = CapabilityConfig(
            max_breakpoints=2,
            min_tokens_per_breakpoint=512,
            cacheable_segments=["MESSAGES"],
        )
        caps = config.to_capabilities()

        assert caps == ModelCapabilities(
            supports_cache=True,
            max_breakpoints=2,
            min_tokens_per_breakpoint=512,
            cacheable_segments=frozenset({CacheSegment.MESSAGES}),
        )


# === Loader 测试 ===


class TestLoadPolicy:
    """load_policy 测试。"""

    def test_load_from_path(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "policy.yaml", (
            "placement:\n"
            "  policy: single_point\n"
            "tokenizer:\n"
            "  counter: chars\n"
            "models:\n"
            "  my-model:\n"
            "    max_breakpoints: 2\n"
        ))
        config = load_policy(path)

        assert config.placement.policy == "single_point"
        assert config.tokenizer.counter == "chars"
        assert config.models["my-model"].max_breakpoints == 2

    def test_default_when_no_file(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_policy() == PolicyConfig()

    def test_auto_discover(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        _write(tmp_path / "cache_forge.yaml", "placement:\n  hysteresis_factor: 1.5\n")

        assert load_policy().placement.hysteresis_factor == 1.5

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_policy(_write(tmp_path / "empty.yaml", "")) == PolicyConfig()

    def test_overrides_deep_merged(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "p.yaml", "placement:\n  policy: single_point\n  marker_type: x\n")
        config = load_policy(path, overrides={"placement": {"marker_type": "ephemeral"}})

        assert config.placement.policy == "single_point"
        assert config.placement.marker_type == "ephemeral"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyLoadError) as exc_info:
            load_policy(tmp_path / "nope.yaml")

        assert "cache-forge init" in exc_info.value.how
        assert exc_info.value.file_path.endswith("nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyLoadError):
            load_policy(_write(tmp_path / "bad.yaml", "placement: [unclosed\n"))

    def test_root_not_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyLoadError) as exc_info:
            load_policy(_write(tmp_path / "list.yaml", "- a\n- b\n"))

        assert "list" in exc_info.value.why

    def test_field_level_error(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "p.yaml", "placement:\n  hysteresis_factor: 0.5\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_policy(path)

        assert exc_info.value.field_path == "placement.hysteresis_factor"
        assert "hysteresis_factor" in exc_info.value.why

    def test_validate_policy_file(self, tmp_path: Path) -> None:
        good = _write(tmp_path / "good.yaml", "version: '1.0'\n")
        bad = _write(tmp_path / "bad.yaml", "tokenizer:\n  message_overhead: -1\n")

        assert validate_policy_file(good) == []
        assert len(validate_policy_file(bad)) == 1

    def test_dump_default_policy_loads_back(self, tmp_path: Path) -> None:
        text = dump_default_policy()
        data = yaml.safe_load(text)
        config = load_policy(_write(tmp_path / "default.yaml", text))

        assert data["placement"]["policy"] == "multi_point"
        assert "my-custom-model" in config.models


# === 模型能力注册表 ===


class TestResolveCapabilities:
    """resolve_capabilities 测试。"""

    def test_exact_match(self) -> None:
        caps = resolve_capabilities("claude-sonnet-4")
        assert caps.supports_cache
        assert caps.max_breakpoints == 4
        assert caps.min_tokens_per_breakpoint == 1024

    def test_alias(self) -> None:
        assert resolve_capabilities("haiku") == CAPABILITY_REGISTRY["claude-3-5-haiku"]
        assert all(target in CAPABILITY_REGISTRY for target in MODEL_ALIASES.values())

    def test_dated_version_prefix(self) -> None:
        assert resolve_capabilities("claude-sonnet-4-5-20250929") == CAPABILITY_REGISTRY["claude-sonnet-4"]

    def test_bedrock_model_ids(self) -> None:
        assert (
            resolve_capabilities("us.anthropic.claude-3-5-haiku-20241022-v1:0")
            == CAPABILITY_REGISTRY["claude-3-5-haiku"]
        )
        micro = resolve_capabilities("us.amazon.nova-micro-v1:0")
        assert not micro.allows(CacheSegment.SYSTEM)

    def test_prefix_cached_models_disabled(self) -> None:
        assert not resolve_capabilities("gpt-4o-2024-08-06").supports_cache

    def test_unknown_model(self) -> None:
        with pytest.raises(ModelNotFoundError) as exc_info:
            resolve_capabilities("llama-99")

        assert exc_info.value.model_id == "llama-99"
        assert "claude-sonnet-4" in exc_info.value.details["available_models"]

    def test_register_capabilities(self, monkeypatch) -> None:
        monkeypatch.setattr("cache_forge.config.defaults.CAPABILITY_REGISTRY", dict(CAPABILITY_REGISTRY))
        caps = ModelCapabilities(supports_cache=True, max_breakpoints=2)
        register_capabilities("my-model", caps)

        assert resolve_capabilities("my-model") is caps
        assert "my-model" in list_models()
