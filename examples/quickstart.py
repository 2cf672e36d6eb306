"""
Cache Forge 快速上手示例。

演示最基本的用法：为一段对话放置缓存断点，并把结果交给传输层。

运行方式：
    python examples/quickstart.py

无需 API Key，无需任何配置文件。
"""

import json


def main() -> None:
    from cache_forge import CacheForge

    # ===== 场景 1：最简用法 =====
    print("=" * 60)
    print("场景 1：最简用法")
    print("=" * 60)

    forge = CacheForge(model="claude-sonnet-4")
    system_prompt = "你是一个资深的 Python 工程师，回答要准确、简洁，并给出可运行的示例。" * 60
    history = [
        {"role": "user", "content": "请解释一下 asyncio 的事件循环。" * 60},
        {"role": "assistant", "content": "事件循环负责调度协程、回调和 I/O 事件。" * 80},
        {"role": "user", "content": "那 run_in_executor 适合什么场景？" * 60},
    ]

    result = forge.plan("demo", history, system_prompt=system_prompt)

    print(f"\n决策：{result.decision.value}")
    print(f"断点：{[(p.kind.value, p.index, p.tokens_covered) for p in result.placements]}")

    # ===== 场景 2：序列化为请求体 =====
    print("\n" + "=" * 60)
    print("场景 2：序列化为请求体（标记格式由传输层决定）")
    print("=" * 60)

    body = {
        "system": result.annotated_system.to_blocks() if result.annotated_system else [],
        "messages": [message.to_dict() for message in result.annotated_messages],
    }
    for message in body["messages"]:
        markers = [block for block in message["content"] if "cache_point" in block]
        print(f"  [{message['role']}] {len(message['content'])} 个内容块，断点 {len(markers)} 个")

    # ===== 场景 3：不支持显式断点的模型 =====
    print("\n" + "=" * 60)
    print("场景 3：自动前缀缓存的模型（不放置断点）")
    print("=" * 60)

    result = CacheForge(model="gpt-4o").plan("demo", history, system_prompt=system_prompt)
    print(f"\n决策：{result.decision.value}，断点数：{len(result.placements)}")
    print(json.dumps(result.new_state.to_dict(), ensure_ascii=False))


if __name__ == "__main__":
    main()
