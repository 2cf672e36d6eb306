"""
断点放置延迟基准测试。

放置是每次请求路径上的同步计算，耗时应远小于网络往返：
- 单次放置（200 条消息，默认启发式估算器）：P99 < 50ms
- 耗时随消息数线性增长

运行方式::

    python -m pytest benchmarks/test_bench_placement.py -v --no-cov -s
    python benchmarks/test_bench_placement.py          # 独立运行，打印详细统计
"""

from __future__ import annotations

import statistics
import time

import pytest

from cache_forge import CacheStrategyConfig, ModelCapabilities, MultiPointPlacementPolicy, PlacementState

CAPABILITIES = ModelCapabilities(supports_cache=True, max_breakpoints=4, min_tokens_per_breakpoint=1024)


def _build_messages(count: int) -> list[dict[str, str]]:
    """构建交替的 user / assistant 对话历史。"""
    messages: list[dict[str, str]] = []
    for i in range(count):
        if i % 2 == 0:
            messages.append({"role": "user", "content": f"第 {i} 轮：请解释 Python 的描述符协议和它与 property 的关系。" * 8})
        else:
            messages.append({"role": "assistant", "content": "描述符是实现了 __get__、__set__ 或 __delete__ 的对象。" * 20})
    return messages


def _measure(policy: MultiPointPlacementPolicy, config: CacheStrategyConfig) -> float:
    start = time.perf_counter()
    policy.place(config)
    return (time.perf_counter() - start) * 1000


@pytest.mark.slow
class TestPlacementLatency:
    """放置延迟基准测试。"""

    WARMUP_ROUNDS = 3
    BENCHMARK_ROUNDS = 50
    P99_THRESHOLD_MS = 50.0

    @pytest.fixture
    def policy(self) -> MultiPointPlacementPolicy:
        return MultiPointPlacementPolicy()

    def test_placement_p99(self, policy: MultiPointPlacementPolicy) -> None:
        """P99 延迟 < 50ms（200 条消息，带上一轮状态）。"""
        messages = _build_messages(200)
        fresh = policy.place(CacheStrategyConfig(capabilities=CAPABILITIES, messages=messages[:-2]))
        config = CacheStrategyConfig(
            capabilities=CAPABILITIES,
            system_prompt="你是一个专业的技术助手。" * 200,
            messages=messages,
            previous_state=fresh.new_state,
        )

        for _ in range(self.WARMUP_ROUNDS):
            _measure(policy, config)

        latencies = sorted(_measure(policy, config) for _ in range(self.BENCHMARK_ROUNDS))
        p50 = latencies[len(latencies) // 2]
        p99 = latencies[min(int(len(latencies) * 0.99), len(latencies) - 1)]
        avg = statistics.mean(latencies)

        print(
            f"\n{'='*60}\n"
            f"放置延迟基准（{self.BENCHMARK_ROUNDS} 轮，200 条消息）\n"
            f"{'='*60}\n"
            f"  平均:  {avg:.2f} ms\n"
            f"  P50:   {p50:.2f} ms\n"
            f"  P99:   {p99:.2f} ms\n"
            f"  阈值:  {self.P99_THRESHOLD_MS:.2f} ms\n"
            f"{'='*60}"
        )

        assert p99 < self.P99_THRESHOLD_MS, f"P99 延迟 {p99:.2f}ms 超过阈值 {self.P99_THRESHOLD_MS}ms。"

    def test_placement_scales_linearly(self, policy: MultiPointPlacementPolicy) -> None:
        """400 条消息的耗时不应超过 100 条的 8 倍。"""

        def median_ms(count: int, rounds: int = 10) -> float:
            config = CacheStrategyConfig(
                capabilities=CAPABILITIES,
                messages=_build_messages(count),
                previous_state=PlacementState(),
            )
            return statistics.median(_measure(policy, config) for _ in range(rounds))

        median_ms(50, rounds=2)
        lat_100 = median_ms(100)
        lat_400 = median_ms(400)

        print(f"\n  100 条: {lat_100:.2f} ms\n  400 条: {lat_400:.2f} ms  (比例: {lat_400 / lat_100:.2f}x)")

        assert lat_400 < lat_100 * 8, "放置耗时随消息数呈非线性增长。"


if __name__ == "__main__":
    bench = TestPlacementLatency()
    bench.BENCHMARK_ROUNDS = 200
    bench.test_placement_p99(MultiPointPlacementPolicy())
    bench.test_placement_scales_linearly(MultiPointPlacementPolicy())
