"""
按会话保存 PlacementState 的存储。

放置引擎本身是无状态的纯函数，跨轮"记忆"只有 PlacementState。
这里提供一个进程内实现，供 CacheForge 门面和简单部署使用；
多进程部署可实现同样的 PlacementStore 协议对接外部 KV 存储。

并发约束：不同会话可以并行放置；同一会话必须串行——
读取 previous_state、计算、写回 new_state 这三步需在同一把锁内完成，
否则两个并发调用会基于同一个旧状态各自写回，产生不一致的断点谱系。
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

from cache_forge.models.placement import PlacementState

logger = logging.getLogger(__name__)


@runtime_checkable
class PlacementStore(Protocol):
    """按会话 ID 存取 PlacementState 的存储协议。"""

    def get(self, conversation_id: str) -> PlacementState:
        """返回会话的上一轮状态；未知会话返回空状态。"""
        ...

    def put(self, conversation_id: str, state: PlacementState) -> None:
        """整体替换会话状态。"""
        ...

    def delete(self, conversation_id: str) -> None:
        ...

    def lock(self, conversation_id: str) -> AbstractContextManager[object]:
        """返回该会话专属的互斥锁。"""
        ...


class MemoryPlacementStore:
    """
    进程内的会话状态存储（线程安全）。

    用法::

        store = MemoryPlacementStore(max_conversations=10_000)
        with store.lock("conv-1"):
            previous = store.get("conv-1")
            result = policy.place(config.model_copy(update={"previous_state": previous}))
            store.put("conv-1", result.new_state)

    参数:
        max_conversations: 最多保留的会话数，超出时淘汰最久未访问的会话。None 表示不限制。
    """

    def __init__(self, max_conversations: int | None = None) -> None:
        if max_conversations is not None and max_conversations <= 0:
            raise ValueError(f"max_conversations 必须为正数，实际为 {max_conversations}。")
        self._max_conversations = max_conversations
        self._states: OrderedDict[str, PlacementState] = OrderedDict()
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, conversation_id: str) -> PlacementState:
        with self._guard:
            state = self._states.get(conversation_id)
            if state is None:
                return PlacementState()
            self._states.move_to_end(conversation_id)
            return state

    def put(self, conversation_id: str, state: PlacementState) -> None:
        with self._guard:
            self._states[conversation_id] = state
            self._states.move_to_end(conversation_id)
            self._evict()

    def delete(self, conversation_id: str) -> None:
        with self._guard:
            self._states.pop(conversation_id, None)

    def lock(self, conversation_id: str) -> threading.Lock:
        """
        返回会话专属的锁。

        锁在存储的整个生命周期内保留：delete() 和 LRU 淘汰只移除状态，
        同一会话 ID 始终得到同一把锁（包括已交出但尚未 acquire 的锁）。
        """
        with self._guard:
            conversation_lock = self._locks.get(conversation_id)
            if conversation_lock is None:
                conversation_lock = threading.Lock()
                self._locks[conversation_id] = conversation_lock
            return conversation_lock

    def __contains__(self, conversation_id: object) -> bool:
        with self._guard:
            return conversation_id in self._states

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)

    def _evict(self) -> None:
        if self._max_conversations is None:
            return
        while len(self._states) > self._max_conversations:
            evicted, _ = self._states.popitem(last=False)
            logger.debug("淘汰会话 '%s' 的断点状态。", evicted)
