"""
PlacementPolicy — 断点放置策略的公共契约与共享辅助。

所有具体策略共享同一个入口 `place(config) -> CacheResult`，
以及以下辅助能力：

- meets_threshold(tokens, capabilities)：阈值检查
- sum_tokens(messages, start, end)：区间 Token 求和（闭区间）
- insert_marker(messages, placements)：机械地插入标记
- find_boundary / find_first_boundary：边界规则（只在 USER 消息处落点）

`place()` 是模板方法，负责所有策略共有的步骤：

1. 缓存关闭 / 消息为空 / 预算为 0 → 不放置任何断点，原样返回内容
2. Step A：为 System Prompt 预留一个断点（若可缓存且达到阈值）
3. Step B：交给子类的 `_place_messages()` 决定消息断点
4. 校验不变量；若被破坏，记录错误并退化为零断点
5. Step C：插入标记

# [Design Decision] 这里用抽象基类而不是 Protocol：
# 共享辅助方法有实现，具体策略只需实现 `_place_messages()`。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from cache_forge.models.capabilities import CacheSegment, ModelCapabilities
from cache_forge.models.message import Message
from cache_forge.models.placement import Placement, PlacementKind, PlacementState
from cache_forge.models.result import (
    AnnotatedMessage,
    CacheResult,
    CacheStrategyConfig,
    PlacementDecision,
)
from cache_forge.placement.annotator import Annotator
from cache_forge.tokenizer.estimator import TokenEstimator

logger = logging.getLogger(__name__)


class TokenProfile:
    """
    一次调用内的逐条消息 Token 数与前缀和。

    同一次调用中所有区间求和都走这里，保证一致性且每条消息只估算一次。
    """

    def __init__(self, counts: Sequence[int]) -> None:
        self.counts = tuple(counts)
        prefix = [0]
        for count in self.counts:
            prefix.append(prefix[-1] + count)
        self._prefix = prefix

    def __len__(self) -> int:
        return len(self.counts)

    def sum(self, start: int, end: int) -> int:
        """闭区间 [start, end] 的 Token 总数；空区间返回 0。"""
        start = max(start, 0)
        end = min(end, len(self.counts) - 1)
        if start > end:
            return 0
        return self._prefix[end + 1] - self._prefix[start]


class PlacementPolicy(ABC):
    """
    断点放置策略基类。

    子类实现 `_place_messages()`，返回消息断点列表和对应的决策分支。

    参数:
        estimator: Token 估算器，默认 TokenEstimator()
        annotator: 标记插入器，默认 Annotator()
    """

    name: str = "base"

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        annotator: Annotator | None = None,
    ) -> None:
        self.estimator = estimator or TokenEstimator()
        self.annotator = annotator or Annotator()

    # ------------------------------------------------------------
    # 公共入口
    # ------------------------------------------------------------

    def place(self, config: CacheStrategyConfig) -> CacheResult:
        """
        计算断点并返回带标记的结果。

        此方法从不抛出异常给调用方：最坏情况下返回零断点的结果，
        与关闭缓存等价。

        参数:
            config: 本次调用的完整输入

        返回:
            CacheResult
        """
        capabilities = config.capabilities
        messages = config.messages
        warnings = list(capabilities.adjustments)

        if not capabilities.supports_cache or not config.use_cache:
            logger.debug("[%s] 缓存未启用（supports_cache=%s, use_cache=%s）",
                         self.name, capabilities.supports_cache, config.use_cache)
            return self._unannotated(config, warnings=warnings)
        if not messages:
            logger.debug("[%s] 消息列表为空，不放置断点。", self.name)
            return self._unannotated(config, warnings=warnings)
        if capabilities.max_breakpoints <= 0:
            logger.debug("[%s] 断点预算为 0，不放置断点。", self.name)
            return self._unannotated(config, warnings=warnings)

        profile = TokenProfile(self.estimator.estimate_messages(messages))
        placements: list[Placement] = []
        remaining = capabilities.max_breakpoints

        # Step A：System 分段
        system_placement = self._place_system(config)
        if system_placement is not None:
            placements.append(system_placement)
            remaining -= 1

        # Step B：消息分段
        if remaining > 0 and capabilities.allows(CacheSegment.MESSAGES):
            message_placements, decision = self._place_messages(config, profile, remaining, warnings)
            placements.extend(message_placements)
        else:
            decision = PlacementDecision.SYSTEM_ONLY

        violations = self.validate_placements(placements, capabilities, len(messages))
        if violations:
            for violation in violations:
                logger.error("[%s] 断点不变量被破坏：%s", self.name, violation)
            warnings.extend(violations)
            return self._unannotated(config, warnings=warnings)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "[%s] 决策 %s：%d 个断点 %s（消息 %d 条，共 %d tokens）",
                self.name,
                decision.value,
                len(placements),
                [(p.index, p.tokens_covered) for p in placements],
                len(messages),
                profile.sum(0, len(profile) - 1),
            )

        # Step C：插入标记
        return CacheResult(
            annotated_system=self.annotator.annotate_system(config.system_prompt, placements),
            annotated_messages=self.insert_marker(messages, placements),
            new_state=PlacementState(placements=tuple(placements)),
            decision=decision,
            warnings=tuple(warnings),
        )

    @abstractmethod
    def _place_messages(
        self,
        config: CacheStrategyConfig,
        profile: TokenProfile,
        remaining: int,
        warnings: list[str],
    ) -> tuple[list[Placement], PlacementDecision]:
        """
        计算消息断点。

        参数:
            config: 本次调用的输入
            profile: 本次调用的 Token 档案
            remaining: 扣除 System 断点后剩余的预算（>= 1）
            warnings: 用于收集修复输入时的提示

        返回:
            (消息断点列表, 决策分支)
        """
        ...

    # ------------------------------------------------------------
    # 共享辅助
    # ------------------------------------------------------------

    @staticmethod
    def meets_threshold(tokens: int, capabilities: ModelCapabilities) -> bool:
        """阈值检查。阈值为 0（或被钳制为 0）时总是满足。"""
        return tokens >= max(capabilities.min_tokens_per_breakpoint, 0)

    def sum_tokens(self, messages: Sequence[Message], start: int, end: int) -> int:
        """计算闭区间 [start, end] 内消息的 Token 总数。"""
        profile = TokenProfile(self.estimator.estimate_messages(messages))
        return profile.sum(start, end)

    def insert_marker(
        self,
        messages: Sequence[Message],
        placements: Sequence[Placement],
    ) -> tuple[AnnotatedMessage, ...]:
        """按断点插入标记，返回带标记的消息副本。"""
        return self.annotator.annotate_messages(messages, placements)

    def find_boundary(
        self,
        messages: Sequence[Message],
        profile: TokenProfile,
        start: int,
        end: int,
        capabilities: ModelCapabilities,
    ) -> Placement | None:
        """
        在 [start, end] 中选取最后一条 USER 消息作为边界。

        从 start 累计到该消息的 Token 数达到阈值时返回断点，否则返回 None。
        ASSISTANT 消息永远不会成为边界。
        """
        for index in range(min(end, len(messages) - 1), max(start, 0) - 1, -1):
            if messages[index].is_user:
                tokens = profile.sum(start, index)
                if self.meets_threshold(tokens, capabilities):
                    return Placement(index=index, kind=PlacementKind.MESSAGE, tokens_covered=tokens)
                return None
        return None

    def find_first_boundary(
        self,
        messages: Sequence[Message],
        profile: TokenProfile,
        start: int,
        end: int,
        capabilities: ModelCapabilities,
    ) -> Placement | None:
        """
        从 start 向后扫描，返回第一个累计 Token 达到阈值的 USER 消息处的断点。

        扫描到的范围内，候选边界始终是"目前为止最后一条 USER 消息"；
        累计量只在 USER 消息处检查，因此断点总落在稳定的轮次边界上。
        """
        tokens = 0
        for index in range(max(start, 0), min(end, len(messages) - 1) + 1):
            tokens += profile.counts[index]
            if messages[index].is_user and self.meets_threshold(tokens, capabilities):
                return Placement(index=index, kind=PlacementKind.MESSAGE, tokens_covered=tokens)
        return None

    @staticmethod
    def validate_placements(
        placements: Sequence[Placement],
        capabilities: ModelCapabilities,
        message_count: int,
    ) -> list[str]:
        """
        检查断点列表的不变量，返回违规描述（空列表表示通过）。

        - 总数不超过 max_breakpoints
        - 索引严格递增
        - MESSAGE 断点落在消息范围内，且覆盖 Token 数达到阈值
        """
        violations: list[str] = []
        if len(placements) > capabilities.max_breakpoints:
            violations.append(
                f"断点数 {len(placements)} 超过预算 {capabilities.max_breakpoints}。"
            )
        for previous, current in zip(placements, placements[1:]):
            if current.index <= previous.index:
                violations.append(f"断点索引未严格递增：{previous.index} → {current.index}。")
        for placement in placements:
            if placement.kind != PlacementKind.MESSAGE:
                continue
            if not 0 <= placement.index < message_count:
                violations.append(f"断点索引 {placement.index} 超出消息范围 [0, {message_count})。")
            if placement.tokens_covered < capabilities.min_tokens_per_breakpoint:
                violations.append(
                    f"断点 {placement.index} 仅覆盖 {placement.tokens_covered} tokens，"
                    f"低于阈值 {capabilities.min_tokens_per_breakpoint}。"
                )
        return violations

    # ------------------------------------------------------------
    # 内部步骤
    # ------------------------------------------------------------

    def _place_system(self, config: CacheStrategyConfig) -> Placement | None:
        """Step A：System Prompt 可缓存、非空且达到阈值时返回 SYSTEM 断点。"""
        if not config.capabilities.allows(CacheSegment.SYSTEM):
            return None
        if not config.system_prompt or not config.system_prompt.strip():
            return None
        tokens = self.estimator.estimate(config.system_prompt)
        if not self.meets_threshold(tokens, config.capabilities):
            logger.debug(
                "[%s] System Prompt 仅 %d tokens，未达到阈值 %d，不放置 System 断点。",
                self.name,
                tokens,
                config.capabilities.min_tokens_per_breakpoint,
            )
            return None
        return Placement.system(tokens)

    def _unannotated(
        self,
        config: CacheStrategyConfig,
        warnings: list[str] | None = None,
    ) -> CacheResult:
        """缓存关闭路径：零断点，内容原样返回（仅转换为标注类型）。"""
        return CacheResult(
            annotated_system=self.annotator.annotate_system(config.system_prompt, ()),
            annotated_messages=self.insert_marker(config.messages, ()),
            new_state=PlacementState(),
            decision=PlacementDecision.DISABLED,
            warnings=tuple(warnings or ()),
        )
