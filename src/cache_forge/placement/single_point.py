"""
SinglePointPlacementPolicy — 单断点放置策略。

System 分段的处理与多断点策略相同；消息区域最多只放一个断点，
落在整段对话的最后一条 USER 消息上，覆盖从第一条消息起的全部内容。
上一轮状态被忽略：单断点总是跟随对话尾部移动。

适用于断点预算很小（1～2 个）或对话很短的模型。
"""

from __future__ import annotations

from cache_forge.models.placement import Placement
from cache_forge.models.result import CacheStrategyConfig, PlacementDecision
from cache_forge.placement.base import PlacementPolicy, TokenProfile


class SinglePointPlacementPolicy(PlacementPolicy):
    """单断点放置策略。"""

    name = "single_point"

    def _place_messages(
        self,
        config: CacheStrategyConfig,
        profile: TokenProfile,
        remaining: int,
        warnings: list[str],
    ) -> tuple[list[Placement], PlacementDecision]:
        placement = self.find_boundary(
            config.messages, profile, 0, len(config.messages) - 1, config.capabilities
        )
        return ([placement] if placement else []), PlacementDecision.FRESH
