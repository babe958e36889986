"""
任务队列 - 延迟执行调度

TaskQueue 是框架唯一的调度原语：推入的任务一定在之后的调度轮次执行，
同一队列上的任务按推入顺序执行。没有定时器、优先级或取消。

调度器负责"之后的轮次"的具体含义：
- ManualScheduler：显式 FIFO，由调用方 run_once / run_until_idle 驱动
- AsyncioScheduler：直接使用事件循环的 call_soon
- AutoScheduler（默认）：统一 FIFO；有运行中的事件循环时自动排空，
  否则等待 run_until_idle / run_until_settled 手动排空
"""

import asyncio
from collections import deque
from typing import Callable, Deque, Optional

from .common import ExecutionMode, UnifiedLogger
from .interfaces import Dispatch, Scheduler, Task
from .types import SchedulerStalledError

DEFAULT_MAX_TICKS = 100_000


class TaskQueue:
    """单个 DeferredSlot 拥有的任务队列"""

    def __init__(self, scheduler: Scheduler):
        # 创建时绑定一次派发函数，保证同一队列的任务进入同一个 FIFO
        self._dispatch: Dispatch = scheduler.bind()
        self.pushed = 0

    def push(self, fn: Task) -> None:
        """在之后的调度轮次执行 fn"""
        self.pushed += 1
        self._dispatch(fn)


class ManualScheduler:
    """手动驱动的 FIFO 调度器"""

    def __init__(self, logger: Optional[UnifiedLogger] = None):
        self._ready: Deque[Task] = deque()
        self.logger = (logger or UnifiedLogger()).with_mode(ExecutionMode.SYNC)
        self.ticks = 0

    def bind(self) -> Dispatch:
        return self._ready.append

    @property
    def pending(self) -> int:
        """待执行任务数"""
        return len(self._ready)

    def run_once(self) -> bool:
        """执行队首任务；队列为空时返回 False"""
        if not self._ready:
            return False
        task = self._ready.popleft()
        self.ticks += 1
        try:
            task()
        except Exception as exc:
            self.logger.error(f"调度任务异常: {exc!r}")
            raise
        return True

    def run_until_idle(self, max_ticks: int = DEFAULT_MAX_TICKS) -> int:
        """执行任务直到队列为空，返回本次执行的任务数"""
        executed = 0
        while self._ready:
            if executed >= max_ticks:
                raise SchedulerStalledError(
                    f"调度器在 {max_ticks} 个 tick 内未排空，剩余 {len(self._ready)} 个任务"
                )
            self.run_once()
            executed += 1
        return executed

    def run_until(self, predicate: Callable[[], bool], max_ticks: int = DEFAULT_MAX_TICKS) -> bool:
        """执行任务直到 predicate 为真或队列为空，返回 predicate 的最终结果"""
        executed = 0
        while not predicate():
            if not self._ready:
                return False
            if executed >= max_ticks:
                raise SchedulerStalledError(
                    f"调度器在 {max_ticks} 个 tick 内未满足条件，剩余 {len(self._ready)} 个任务"
                )
            self.run_once()
            executed += 1
        return True


class AsyncioScheduler:
    """使用 asyncio 事件循环 call_soon 的调度器"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def bind(self) -> Dispatch:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_soon


class AutoScheduler(ManualScheduler):
    """默认调度器

    所有任务进入同一个 FIFO。推入任务时若存在运行中的事件循环，
    则在该循环上安排一次排空；否则任务留在队列中，由 run_until_idle 驱动。
    """

    def __init__(self, logger: Optional[UnifiedLogger] = None):
        super().__init__(logger)
        self._drain_loop: Optional[asyncio.AbstractEventLoop] = None

    def bind(self) -> Dispatch:
        return self._dispatch

    def _dispatch(self, fn: Task) -> None:
        self._ready.append(fn)
        self._ensure_drain()

    def _ensure_drain(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._drain_loop is loop:
            return
        self._drain_loop = loop
        loop.call_soon(self._drain)

    def _drain(self) -> None:
        self._drain_loop = None
        # 每轮只执行排空开始时已有的任务，给事件循环上的其他回调让出机会
        batch = len(self._ready)
        try:
            for _ in range(batch):
                if not self.run_once():
                    break
        finally:
            if self._ready:
                self._ensure_drain()


_auto_scheduler: Optional[AutoScheduler] = None


def get_auto_scheduler() -> AutoScheduler:
    """获取进程级默认调度器"""
    global _auto_scheduler
    if _auto_scheduler is None:
        _auto_scheduler = AutoScheduler()
    return _auto_scheduler


__all__ = [
    "DEFAULT_MAX_TICKS",
    "TaskQueue",
    "ManualScheduler",
    "AsyncioScheduler",
    "AutoScheduler",
    "get_auto_scheduler",
]
