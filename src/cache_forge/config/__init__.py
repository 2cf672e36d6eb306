"""
Cache Forge 配置模块。

提供 YAML 策略加载、模型缓存能力注册表和默认配置。
"""

from cache_forge.config.defaults import (
    CAPABILITY_REGISTRY,
    MODEL_ALIASES,
    list_models,
    register_capabilities,
    resolve_capabilities,
)
from cache_forge.config.loader import dump_default_policy, load_policy, validate_policy_file
from cache_forge.config.schema import CapabilityConfig, PlacementConfig, PolicyConfig, TokenizerConfig

__all__ = [
    "CAPABILITY_REGISTRY",
    "MODEL_ALIASES",
    "CapabilityConfig",
    "PlacementConfig",
    "PolicyConfig",
    "TokenizerConfig",
    "dump_default_policy",
    "list_models",
    "load_policy",
    "register_capabilities",
    "resolve_capabilities",
    "validate_policy_file",
]
