"""
MultiPointPlacementPolicy — 多断点放置策略。

这是放置引擎的核心。它同时处理两种情况：

**新会话**（上一轮没有消息断点）：从头贪心扫描。
候选边界是目前扫描范围内最后一条 USER 消息；
从分段起点累计到候选边界的 Token 数达到阈值时立即落点，然后从下一条消息继续。
预算用完或消息扫描完毕即停止。

**增长中的会话**（上一轮有消息断点）：令 new_tokens 为最后一个旧断点之后的 Token 数。

1. new_tokens 未达阈值 → 保留（PRESERVE），新内容还不值得一个断点
2. 预算有富余 → 扩展（EXTEND）：保留全部旧断点，在新区间追加一个
3. 预算已饱和 → 计算相邻旧断点的合并跨度 gap[i] = covered[i] + covered[i+1]，
   取最小值 gap_min：
   - new_tokens >= gap_min × hysteresis_factor → 重新分配（REALLOCATE）：
     删除围成 gap_min 的两个断点，用一个覆盖合并区间的断点替代，
     腾出的名额用于新区间
   - 否则保留（PRESERVE），新内容推迟到之后的轮次

hysteresis_factor（默认 1.2）是滞后余量：只有新内容明显大于最小的已有跨度时
才打乱已缓存的历史，避免轮次间 Token 的小幅波动导致断点来回抖动。
牺牲的总是最小的跨度，使每次重新分配损失的缓存价值最小。

⚠️ 调用方必须串行化同一会话的调用：两个并发调用读取同一个 previous_state
并各自写回，会产生不一致的断点谱系（见 cache_forge.store）。
"""

from __future__ import annotations

import logging

from cache_forge.models.placement import Placement
from cache_forge.models.result import CacheStrategyConfig, PlacementDecision
from cache_forge.placement.annotator import Annotator
from cache_forge.placement.base import PlacementPolicy, TokenProfile
from cache_forge.tokenizer.estimator import TokenEstimator

logger = logging.getLogger(__name__)

DEFAULT_HYSTERESIS_FACTOR = 1.2


class MultiPointPlacementPolicy(PlacementPolicy):
    """
    多断点放置策略。

    用法::

        policy = MultiPointPlacementPolicy()
        result = policy.place(CacheStrategyConfig(
            capabilities=ModelCapabilities(
                supports_cache=True,
                max_breakpoints=4,
                min_tokens_per_breakpoint=1024,
            ),
            system_prompt=system_prompt,
            messages=history,
            previous_state=store.get(conversation_id),
        ))
        store.put(conversation_id, result.new_state)

    参数:
        estimator: Token 估算器
        annotator: 标记插入器
        hysteresis_factor: 重新分配所需的增长倍数，小于 1.0 时钳制为 1.0
    """

    name = "multi_point"

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        annotator: Annotator | None = None,
        hysteresis_factor: float = DEFAULT_HYSTERESIS_FACTOR,
    ) -> None:
        super().__init__(estimator=estimator, annotator=annotator)
        if hysteresis_factor < 1.0:
            logger.warning("hysteresis_factor=%s 小于 1.0，已钳制为 1.0。", hysteresis_factor)
            hysteresis_factor = 1.0
        self.hysteresis_factor = hysteresis_factor

    def _place_messages(
        self,
        config: CacheStrategyConfig,
        profile: TokenProfile,
        remaining: int,
        warnings: list[str],
    ) -> tuple[list[Placement], PlacementDecision]:
        previous = self._usable_previous(config, remaining, warnings)
        if not previous:
            placements = self._place_fresh(config, profile, 0, len(config.messages) - 1, remaining)
            return placements, PlacementDecision.FRESH
        return self._place_growing(config, profile, previous, remaining)

    # ------------------------------------------------------------
    # Case 1：新会话
    # ------------------------------------------------------------

    def _place_fresh(
        self,
        config: CacheStrategyConfig,
        profile: TokenProfile,
        start: int,
        end: int,
        budget: int,
    ) -> list[Placement]:
        placements: list[Placement] = []
        cursor = start
        while cursor <= end and len(placements) < budget:
            placement = self.find_first_boundary(
                config.messages, profile, cursor, end, config.capabilities
            )
            if placement is None:
                break
            placements.append(placement)
            cursor = placement.index + 1
        return placements

    # ------------------------------------------------------------
    # Case 2：增长中的会话
    # ------------------------------------------------------------

    def _place_growing(
        self,
        config: CacheStrategyConfig,
        profile: TokenProfile,
        previous: list[Placement],
        remaining: int,
    ) -> tuple[list[Placement], PlacementDecision]:
        capabilities = config.capabilities
        start = previous[-1].index + 1
        end = len(config.messages) - 1
        new_tokens = profile.sum(start, end)

        if start > end or not self.meets_threshold(new_tokens, capabilities):
            logger.debug("[MultiPoint] 新增 %d tokens 未达阈值，保留 %d 个断点。",
                         new_tokens, len(previous))
            return previous, PlacementDecision.PRESERVE

        if remaining > len(previous):
            added = self.find_boundary(config.messages, profile, start, end, capabilities)
            if added is None:
                return previous, PlacementDecision.PRESERVE
            logger.debug("[MultiPoint] 预算有富余，在 %d 处追加断点（%d tokens）。",
                         added.index, added.tokens_covered)
            return [*previous, added], PlacementDecision.EXTEND

        if len(previous) < 2:
            return previous, PlacementDecision.PRESERVE

        gap_index, gap_min = self._smallest_gap(previous)
        if new_tokens < gap_min * self.hysteresis_factor:
            logger.debug(
                "[MultiPoint] 预算饱和，新增 %d tokens < 最小跨度 %d × %.2f，保留现有断点。",
                new_tokens,
                gap_min,
                self.hysteresis_factor,
            )
            return previous, PlacementDecision.PRESERVE

        combined_start = previous[gap_index - 1].index + 1 if gap_index > 0 else 0
        combined = self.find_boundary(
            config.messages, profile, combined_start, previous[gap_index + 1].index, capabilities
        )
        added = self.find_boundary(config.messages, profile, start, end, capabilities)
        if combined is None or added is None:
            return previous, PlacementDecision.PRESERVE

        logger.debug(
            "[MultiPoint] 重新分配：合并断点 %d 与 %d（跨度 %d tokens），在 %d 处新增断点（%d tokens）。",
            previous[gap_index].index,
            previous[gap_index + 1].index,
            gap_min,
            added.index,
            added.tokens_covered,
        )
        placements = [*previous[:gap_index], combined, *previous[gap_index + 2:], added]
        return placements, PlacementDecision.REALLOCATE

    @staticmethod
    def _smallest_gap(previous: list[Placement]) -> tuple[int, int]:
        """返回最小合并跨度的左端下标及其大小；并列时取最早的一对。"""
        best_index = 0
        best_gap = previous[0].tokens_covered + previous[1].tokens_covered
        for i in range(1, len(previous) - 1):
            gap = previous[i].tokens_covered + previous[i + 1].tokens_covered
            if gap < best_gap:
                best_index, best_gap = i, gap
        return best_index, best_gap

    def _usable_previous(
        self,
        config: CacheStrategyConfig,
        remaining: int,
        warnings: list[str],
    ) -> list[Placement]:
        """
        取出上一轮的消息断点，并修复与当前输入不一致的情况。

        - 索引越界、未严格递增、不在 USER 消息上，或覆盖量低于当前阈值：
          历史已不匹配，丢弃状态，按新会话处理
        - 旧断点多于剩余预算：保留最早的 remaining 个（保住已缓存的前缀）
        """
        previous = list(config.previous_state.message_placements)
        if not previous:
            return []

        messages = config.messages
        reason = ""
        for i, placement in enumerate(previous):
            if not 0 <= placement.index < len(messages):
                reason = f"断点索引 {placement.index} 超出当前消息范围 [0, {len(messages)})"
            elif i > 0 and placement.index <= previous[i - 1].index:
                reason = f"断点索引未严格递增（{previous[i - 1].index} → {placement.index}）"
            elif not messages[placement.index].is_user:
                reason = f"断点 {placement.index} 落在 {messages[placement.index].role.value} 消息上"
            elif not self.meets_threshold(placement.tokens_covered, config.capabilities):
                reason = (
                    f"断点 {placement.index} 覆盖 {placement.tokens_covered} tokens，"
                    f"低于当前阈值 {config.capabilities.min_tokens_per_breakpoint}"
                )
            if reason:
                break

        if reason:
            message = f"上一轮断点状态与当前会话不一致（{reason}），已按新会话重新放置。"
            logger.warning("[MultiPoint] %s", message)
            warnings.append(message)
            return []

        if len(previous) > remaining:
            message = (
                f"上一轮有 {len(previous)} 个消息断点，超过当前剩余预算 {remaining}，"
                f"保留最早的 {remaining} 个。"
            )
            logger.warning("[MultiPoint] %s", message)
            warnings.append(message)
            previous = previous[:remaining]

        return previous
