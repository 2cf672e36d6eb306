"""
Cache Forge 结构化异常体系。

所有异常遵循"三段式"规范：What / Why / How to fix。
"""

from cache_forge.errors.exceptions import (
    CacheForgeError,
    ConfigValidationError,
    ModelNotFoundError,
    PolicyLoadError,
    StateFormatError,
    TokenizerError,
    UnknownPolicyError,
)

__all__ = [
    "CacheForgeError",
    "ConfigValidationError",
    "ModelNotFoundError",
    "PolicyLoadError",
    "StateFormatError",
    "TokenizerError",
    "UnknownPolicyError",
]
