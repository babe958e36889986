"""
同步/异步适配器

- run_until_settled()：在同步上下文中手动驱动调度器，直到 FutureValue 结算
- await_future()：在 asyncio 协程中等待 FutureValue
- from_awaitable()：把 asyncio 协程/awaitable 包装为 FutureValue
"""

import asyncio
from typing import Any, Awaitable, Optional

from .future import FutureValue
from .task_queue import DEFAULT_MAX_TICKS, ManualScheduler
from .types import PendingFutureError, as_exception


def run_until_settled(
    future: FutureValue,
    scheduler: Optional[ManualScheduler] = None,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> Any:
    """
    驱动调度器直到 future 结算

    Args:
        future: 目标 FutureValue
        scheduler: 手动调度器，默认使用 future 配置中的调度器
        max_ticks: 最多执行的任务数，超出时抛出 SchedulerStalledError

    Returns:
        兑现值；被拒绝时抛出拒绝原因（非异常原因包装为 RejectionError）

    结算后队列中剩余的任务保持原样，不会被执行。
    """
    if scheduler is None:
        scheduler = future.config.scheduler
    if not isinstance(scheduler, ManualScheduler):
        raise ValueError(
            f"run_until_settled 需要手动调度器，当前为 {type(scheduler).__name__}；"
            "请在协程中使用 await_future()"
        )

    scheduler.run_until(lambda: not future.is_pending(), max_ticks)

    if future.is_pending():
        raise PendingFutureError("任务队列已排空，FutureValue 仍未结算", future=future)
    if future.is_fulfilled():
        return future.value
    raise as_exception(future.reason, future)


async def await_future(future: FutureValue) -> Any:
    """在运行中的事件循环上等待 future"""
    return await future


def from_awaitable(awaitable: Awaitable[Any], *, config: Any = None) -> FutureValue:
    """
    在运行中的事件循环上调度 awaitable，返回反映其结果的 FutureValue

    没有运行中的事件循环时抛出 RuntimeError；awaitable 被取消时以
    CancelledError 拒绝。
    """
    loop = asyncio.get_running_loop()

    def executor(resolve, reject) -> None:
        task = asyncio.ensure_future(awaitable, loop=loop)

        def on_done(done: "asyncio.Future[Any]") -> None:
            if done.cancelled():
                reject(asyncio.CancelledError())
                return
            exc = done.exception()
            if exc is not None:
                reject(exc)
            else:
                resolve(done.result())

        task.add_done_callback(on_done)

    return FutureValue(executor, config=config)


__all__ = ["run_until_settled", "await_future", "from_awaitable"]
