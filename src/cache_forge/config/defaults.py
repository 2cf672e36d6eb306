"""
模型缓存能力注册表。

# [DX Decision] 内置常见模型的断点预算与最小 Token 数，
# 用户传入模型名即可得到 ModelCapabilities，无需查阅各厂商文档。

🏭 生产提示：厂商会调整缓存规则，可通过策略文件的 models 段覆盖默认值。
不支持显式断点的模型（自动前缀缓存）登记为 supports_cache=False。
"""

from __future__ import annotations

from cache_forge.errors import ModelNotFoundError
from cache_forge.models.capabilities import CacheSegment, ModelCapabilities

_SYSTEM_AND_MESSAGES = frozenset({CacheSegment.SYSTEM, CacheSegment.MESSAGES})


def _explicit(max_breakpoints: int, min_tokens: int) -> ModelCapabilities:
    return ModelCapabilities(
        supports_cache=True,
        max_breakpoints=max_breakpoints,
        min_tokens_per_breakpoint=min_tokens,
        cacheable_segments=_SYSTEM_AND_MESSAGES,
    )


CAPABILITY_REGISTRY: dict[str, ModelCapabilities] = {
    # --- Anthropic ---
    "claude-opus-4": _explicit(4, 1024),
    "claude-sonnet-4": _explicit(4, 1024),
    "claude-3-7-sonnet": _explicit(4, 1024),
    "claude-3-5-sonnet": _explicit(4, 1024),
    "claude-3-5-haiku": _explicit(4, 2048),
    "claude-3-haiku": _explicit(4, 2048),
    "claude-haiku-4": _explicit(4, 2048),
    # --- Amazon Bedrock ---
    "amazon.nova-pro": _explicit(4, 1000),
    "amazon.nova-lite": _explicit(4, 1000),
    "amazon.nova-micro": ModelCapabilities(
        supports_cache=True,
        max_breakpoints=4,
        min_tokens_per_breakpoint=1000,
        cacheable_segments=frozenset({CacheSegment.MESSAGES}),
    ),
    # --- 自动前缀缓存，没有显式断点 ---
    "gpt-4o": ModelCapabilities.disabled(),
    "gpt-4o-mini": ModelCapabilities.disabled(),
    "gemini-2.5-pro": ModelCapabilities.disabled(),
    "deepseek-v3": ModelCapabilities.disabled(),
}

MODEL_ALIASES: dict[str, str] = {
    "opus": "claude-opus-4",
    "sonnet": "claude-sonnet-4",
    "haiku": "claude-3-5-haiku",
    "claude-opus": "claude-opus-4",
    "claude-sonnet": "claude-sonnet-4",
    "claude-haiku": "claude-3-5-haiku",
    "nova-pro": "amazon.nova-pro",
    "nova-lite": "amazon.nova-lite",
    "nova-micro": "amazon.nova-micro",
    "4o": "gpt-4o",
    "deepseek": "deepseek-v3",
}


def resolve_capabilities(model_id: str) -> ModelCapabilities:
    """
    解析模型名称并返回缓存能力。

    支持：
    1. 精确匹配
    2. 别名匹配
    3. 前缀匹配（如 "claude-sonnet-4-5-20250929" 匹配 "claude-sonnet-4"；
       Bedrock 的 "us.anthropic.claude-sonnet-4-..." 会先去掉区域与厂商前缀）

    异常:
        ModelNotFoundError: 未找到匹配的模型
    """
    if model_id in CAPABILITY_REGISTRY:
        return CAPABILITY_REGISTRY[model_id]

    resolved = MODEL_ALIASES.get(model_id)
    if resolved and resolved in CAPABILITY_REGISTRY:
        return CAPABILITY_REGISTRY[resolved]

    model_lower = _strip_provider_prefix(model_id.lower())
    for registry_id in sorted(CAPABILITY_REGISTRY, key=len, reverse=True):
        if model_lower.startswith(registry_id.lower()):
            return CAPABILITY_REGISTRY[registry_id]

    available = sorted(CAPABILITY_REGISTRY) + sorted(MODEL_ALIASES)
    raise ModelNotFoundError(
        what=f"未找到模型 '{model_id}' 的缓存能力。",
        why="该模型不在内置能力注册表中，也未通过策略文件或 register_capabilities() 注册。",
        how=f"检查模型名称是否正确。可用的模型和别名：{', '.join(available[:10])} 等。"
            f"如需添加自定义模型，在策略文件的 models 段中声明。",
        model_id=model_id,
        available_models=available,
    )


def _strip_provider_prefix(model_id: str) -> str:
    # "us.anthropic.claude-..." / "anthropic.claude-..." → "claude-..."
    position = model_id.find("anthropic.")
    if position != -1:
        return model_id[position + len("anthropic."):]
    # "us.amazon.nova-pro-v1:0" → "amazon.nova-pro-v1:0"
    position = model_id.find("amazon.")
    if position > 0:
        return model_id[position:]
    return model_id


def register_capabilities(model_id: str, capabilities: ModelCapabilities) -> None:
    """注册或覆盖模型缓存能力。"""
    CAPABILITY_REGISTRY[model_id] = capabilities


def list_models() -> list[str]:
    """返回所有已注册模型的 ID 列表。"""
    return sorted(CAPABILITY_REGISTRY)
