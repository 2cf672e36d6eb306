"""
CacheForge — 顶层 Facade API。

把"查模型能力 → 读上一轮状态 → 放置断点 → 写回新状态"串成一次调用。

最简用法::

    from cache_forge import CacheForge

    forge = CacheForge(model="claude-sonnet-4-5-20250929")
    result = forge.plan(
        "conv-42",
        messages=[{"role": "user", "content": "你好"}],
        system_prompt=system_prompt,
    )
    result.annotated_messages  # → 交给传输层序列化为厂商格式

无状态用法（调用方自己管理 PlacementState）::

    result = forge.place(CacheStrategyConfig(
        capabilities=forge.capabilities,
        messages=history,
        previous_state=my_store[conversation_id],
    ))
    my_store[conversation_id] = result.new_state
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from cache_forge.config.defaults import resolve_capabilities
from cache_forge.config.loader import load_policy
from cache_forge.config.schema import PolicyConfig
from cache_forge.models.capabilities import ModelCapabilities
from cache_forge.models.message import Message
from cache_forge.models.result import CacheResult, CacheStrategyConfig
from cache_forge.placement import Annotator, PlacementPolicy, create_policy
from cache_forge.store import MemoryPlacementStore, PlacementStore
from cache_forge.tokenizer.estimator import TokenEstimator
from cache_forge.tokenizer.registry import get_counter

logger = logging.getLogger(__name__)


class CacheForge:
    """
    Cache Forge 顶层入口。

    参数:
        model: 模型名称或别名，用于查找缓存能力
        policy_path: YAML 策略文件路径。None 时自动搜索，找不到则用默认配置。
        policy_config: 直接传入的策略配置（优先于 policy_path）
        capabilities: 显式指定的缓存能力（跳过模型查找）
        estimator: 自定义 Token 估算器（跳过策略文件的 tokenizer 段）
        store: 会话状态存储，默认进程内 MemoryPlacementStore
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4",
        policy_path: str | Path | None = None,
        policy_config: PolicyConfig | None = None,
        capabilities: ModelCapabilities | None = None,
        estimator: TokenEstimator | None = None,
        store: PlacementStore | None = None,
    ) -> None:
        self._config = policy_config or load_policy(path=policy_path)
        self._model = model
        self._capabilities = capabilities or self._resolve_capabilities(model)

        tokenizer = self._config.tokenizer
        self._estimator = estimator or TokenEstimator(
            counter=get_counter(tokenizer.counter),
            message_overhead=tokenizer.message_overhead,
            image_tokens=tokenizer.image_tokens,
        )

        placement = self._config.placement
        self._policy = create_policy(
            placement.policy,
            estimator=self._estimator,
            annotator=Annotator(marker_type=placement.marker_type),
            hysteresis_factor=placement.hysteresis_factor,
        )
        self._store: PlacementStore = store if store is not None else MemoryPlacementStore()

        logger.debug(
            "[CacheForge] 模型 %s：supports_cache=%s，预算 %d，阈值 %d，策略 %s，计数器 %s",
            model,
            self._capabilities.supports_cache,
            self._capabilities.max_breakpoints,
            self._capabilities.min_tokens_per_breakpoint,
            self._policy.name,
            self._estimator.name,
        )

    def _resolve_capabilities(self, model: str) -> ModelCapabilities:
        custom = self._config.models.get(model)
        if custom is not None:
            return custom.to_capabilities()
        return resolve_capabilities(model)

    @property
    def model(self) -> str:
        return self._model

    @property
    def capabilities(self) -> ModelCapabilities:
        return self._capabilities

    @property
    def policy(self) -> PlacementPolicy:
        return self._policy

    @property
    def store(self) -> PlacementStore:
        return self._store

    def place(self, config: CacheStrategyConfig) -> CacheResult:
        """无状态放置：直接运行策略，不读写存储。"""
        return self._policy.place(config)

    def plan(
        self,
        conversation_id: str,
        messages: Iterable[Message | Mapping[str, Any]],
        system_prompt: str | None = None,
        use_cache: bool = True,
    ) -> CacheResult:
        """
        为会话的本轮请求放置断点，并把新状态写回存储。

        同一会话的调用在会话锁内串行执行；不同会话互不阻塞。

        参数:
            conversation_id: 会话 ID
            messages: 完整的对话历史（Message 或 {"role", "content"} 字典）
            system_prompt: System Prompt
            use_cache: 本轮是否启用缓存。关闭时新状态为空，下一轮按新会话处理。
        """
        with self._store.lock(conversation_id):
            config = CacheStrategyConfig(
                capabilities=self._capabilities,
                system_prompt=system_prompt,
                messages=tuple(messages),
                use_cache=use_cache,
                previous_state=self._store.get(conversation_id),
            )
            result = self._policy.place(config)
            self._store.put(conversation_id, result.new_state)
        return result

    def reset(self, conversation_id: str) -> None:
        """丢弃会话的断点状态。"""
        self._store.delete(conversation_id)
