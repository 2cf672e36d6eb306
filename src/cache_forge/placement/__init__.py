"""
Cache Forge 断点放置模块。

提供放置策略的公共契约、两种内置策略、标记插入器，
以及按名称创建策略的注册表。

用法::

    policy = create_policy("multi_point", hysteresis_factor=1.2)
    result = policy.place(config)
"""

from __future__ import annotations

from typing import Any

from cache_forge.errors import UnknownPolicyError
from cache_forge.placement.annotator import Annotator
from cache_forge.placement.base import PlacementPolicy, TokenProfile
from cache_forge.placement.multi_point import DEFAULT_HYSTERESIS_FACTOR, MultiPointPlacementPolicy
from cache_forge.placement.single_point import SinglePointPlacementPolicy

_POLICIES: dict[str, type[PlacementPolicy]] = {
    MultiPointPlacementPolicy.name: MultiPointPlacementPolicy,
    SinglePointPlacementPolicy.name: SinglePointPlacementPolicy,
}


def register_policy(name: str, policy_cls: type[PlacementPolicy]) -> None:
    """注册自定义放置策略。"""
    if not (isinstance(policy_cls, type) and issubclass(policy_cls, PlacementPolicy)):
        raise TypeError(f"policy_cls 必须是 PlacementPolicy 的子类，实际为 {policy_cls!r}。")
    _POLICIES[name] = policy_cls


def available_policies() -> list[str]:
    return sorted(_POLICIES)


def create_policy(name: str = MultiPointPlacementPolicy.name, **kwargs: Any) -> PlacementPolicy:
    """
    按名称创建放置策略。

    参数:
        name: 策略名称（multi_point / single_point / 自定义注册名）
        **kwargs: 传给策略构造函数的参数。策略不接受的 hysteresis_factor 会被忽略。

    异常:
        UnknownPolicyError: 名称未注册
    """
    policy_cls = _POLICIES.get(name)
    if policy_cls is None:
        raise UnknownPolicyError(
            what=f"未知的断点放置策略 '{name}'。",
            why="该名称既不是内置策略，也未通过 register_policy() 注册。",
            how=f"可用策略：{', '.join(available_policies())}。",
            policy_name=name,
        )
    if not issubclass(policy_cls, MultiPointPlacementPolicy):
        kwargs.pop("hysteresis_factor", None)
    return policy_cls(**kwargs)


__all__ = [
    "DEFAULT_HYSTERESIS_FACTOR",
    "Annotator",
    "MultiPointPlacementPolicy",
    "PlacementPolicy",
    "SinglePointPlacementPolicy",
    "TokenProfile",
    "available_policies",
    "create_policy",
    "register_policy",
]
