"""
入力トリガーのデバウンス

グループ毎に保留中タイマーは最大1つ。新しい入力のたびに前のタイマーを取り消し、
静止期間の経過後に評価コールバックを1回だけ呼び出す。
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

from ..group.registry import GroupRegistry

logger = logging.getLogger(__name__)


class TriggerScheduler:
    """グループ単位のデバウンスタイマー管理"""

    def __init__(self, registry: GroupRegistry, callback: Callable[[str], Any], delay_ms: int = 250):
        self.registry = registry
        self.callback = callback
        self.delay_ms = delay_ms
        # 評価タスクの参照保持（GCで消えないように）
        self._tasks: Set["asyncio.Task[Any]"] = set()

    def schedule(self, group_id: str) -> None:
        """評価を予約する（既存の予約は取り消す）"""
        group = self.registry.get(group_id)
        if group is None:
            return

        if group.debounce_handle is not None:
            group.debounce_handle.cancel()

        loop = asyncio.get_running_loop()
        group.debounce_handle = loop.call_later(self.delay_ms / 1000.0, self._fire, group_id)

    def cancel(self, group_id: str) -> None:
        group = self.registry.get(group_id)
        if group is not None and group.debounce_handle is not None:
            group.debounce_handle.cancel()
            group.debounce_handle = None

    def is_pending(self, group_id: str) -> bool:
        group = self.registry.get(group_id)
        return bool(group is not None and group.debounce_handle is not None)

    async def drain(self) -> None:
        """起動済みの評価タスクの完了を待つ"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _fire(self, group_id: str) -> None:
        group = self.registry.get(group_id)
        if group is not None:
            group.debounce_handle = None

        result = self.callback(group_id)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error: Optional[BaseException] = task.exception()
        if error is not None:
            logger.error(f"Address evaluation failed: {type(error).__name__}: {error}")
