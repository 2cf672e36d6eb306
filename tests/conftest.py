"""
测试套件共享 Fixtures 和配置。

放置算法的测试大多使用 WordCounter + message_overhead=0 的估算器：
每条消息的 Token 数恰好等于其中空白分隔的词数，场景中的数字可以直接手算。
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

import pytest

from cache_forge.models.capabilities import CacheSegment, ModelCapabilities
from cache_forge.models.message import Message, Role
from cache_forge.models.placement import Placement, PlacementState
from cache_forge.models.result import CacheStrategyConfig
from cache_forge.placement import MultiPointPlacementPolicy, SinglePointPlacementPolicy
from cache_forge.tokenizer.estimator import TokenEstimator
from cache_forge.tokenizer.registry import clear_cache

MessageSpec = tuple[str, int]


class WordCounter:
    """测试用计数器：Token 数 = 空白分隔的词数。"""

    def count(self, text: str) -> int:
        return len(text.split())

    @property
    def name(self) -> str:
        return "words"


def words(count: int) -> str:
    """生成恰好 count 个词的文本。"""
    return " ".join(["tok"] * count)


def build_messages(specs: Sequence[MessageSpec]) -> tuple[Message, ...]:
    """按 [("user", 150), ("assistant", 80), ...] 构建消息。"""
    return tuple(Message(role=Role(role), content=words(tokens)) for role, tokens in specs)


def build_state(*placements: tuple[int, int]) -> PlacementState:
    """按 (index, tokens_covered) 构建上一轮的消息断点状态。"""
    return PlacementState(
        placements=tuple(Placement(index=index, tokens_covered=tokens) for index, tokens in placements)
    )


# === 估算器与策略 Fixtures ===


@pytest.fixture
def word_estimator() -> TokenEstimator:
    """无消息开销的词数估算器。"""
    return TokenEstimator(counter=WordCounter(), message_overhead=0)


@pytest.fixture
def multi_policy(word_estimator: TokenEstimator) -> MultiPointPlacementPolicy:
    return MultiPointPlacementPolicy(estimator=word_estimator)


@pytest.fixture
def single_policy(word_estimator: TokenEstimator) -> SinglePointPlacementPolicy:
    return SinglePointPlacementPolicy(estimator=word_estimator)


# === 模型能力 Fixtures ===


@pytest.fixture
def make_caps() -> Callable[..., ModelCapabilities]:
    """构建支持缓存的 ModelCapabilities。"""

    def _make(
        max_breakpoints: int = 3,
        min_tokens: int = 100,
        segments: Sequence[CacheSegment] = (CacheSegment.SYSTEM, CacheSegment.MESSAGES),
    ) -> ModelCapabilities:
        return ModelCapabilities(
            supports_cache=True,
            max_breakpoints=max_breakpoints,
            min_tokens_per_breakpoint=min_tokens,
            cacheable_segments=frozenset(segments),
        )

    return _make


@pytest.fixture
def make_config(make_caps: Callable[..., ModelCapabilities]) -> Callable[..., CacheStrategyConfig]:
    """
    构建一次放置调用的输入。

    用法::

        config = make_config([("user", 150), ("assistant", 150)], max_breakpoints=2)
    """

    def _make(
        specs: Sequence[MessageSpec],
        previous: PlacementState | None = None,
        system_prompt: str | None = None,
        capabilities: ModelCapabilities | None = None,
        use_cache: bool = True,
        **caps_kwargs: object,
    ) -> CacheStrategyConfig:
        return CacheStrategyConfig(
            capabilities=capabilities or make_caps(**caps_kwargs),
            system_prompt=system_prompt,
            messages=build_messages(specs),
            use_cache=use_cache,
            previous_state=previous or PlacementState(),
        )

    return _make


@pytest.fixture
def make_messages() -> Callable[[Sequence[MessageSpec]], tuple[Message, ...]]:
    return build_messages


@pytest.fixture
def make_text() -> Callable[[int], str]:
    return words


@pytest.fixture
def make_state() -> Callable[..., PlacementState]:
    return build_state


@pytest.fixture
def sample_messages() -> list[dict[str, str]]:
    """普通字典形式的多轮对话。"""
    return [
        {"role": "user", "content": "介绍一下 Python 的 GIL"},
        {"role": "assistant", "content": "GIL（全局解释器锁）是 CPython 解释器中的一个机制..."},
        {"role": "user", "content": "它对多线程有什么影响？"},
    ]


@pytest.fixture(autouse=True)
def _reset_counter_registry() -> Iterator[None]:
    """每个测试前后清空计数器注册表，避免自定义注册互相影响。"""
    clear_cache()
    yield
    clear_cache()
