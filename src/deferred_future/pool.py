"""
有界并发任务包装 - 限制同一回调式任务同时运行的实例数

核心模块不依赖本模块；它是 FutureValue 的外部协作者。
"""

import contextvars
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Optional

from .common import UnifiedLogger
from .future import FutureValue
from .interfaces import AsyncTask, TaskCallback


@dataclass
class PoolStats:
    """任务池运行统计"""
    active: int = 0               # 正在运行的实例数
    queued: int = 0               # 排队等待的实例数
    completed: int = 0            # 已完成的实例数


def wrap_pool(task: AsyncTask, num_workers: int, *, logger: Optional[UnifiedLogger] = None) -> AsyncTask:
    """
    包装回调式任务，使同时运行的实例数不超过 num_workers

    超出上限的调用按 FIFO 排队；某个实例回调时先启动下一个排队实例，
    再调用原调用方的 callback。callback 在调用 wrap 后任务时的
    contextvars 上下文中执行。

    Args:
        task: ``task(input, callback)``，完成时调用 ``callback(err, output)``
        num_workers: 最大并发实例数，必须大于0

    Returns:
        签名相同的包装任务，附带 ``stats`` 属性（PoolStats）
    """
    if num_workers < 1:
        raise ValueError("num_workers 必须大于0")

    log = logger or UnifiedLogger()
    stats = PoolStats()
    waiting: Deque[Callable[[], None]] = deque()

    def pooled(input: Any, callback: TaskCallback) -> None:
        context = contextvars.copy_context()

        def execute() -> None:
            stats.active += 1
            finished = False

            def on_done(err: Optional[BaseException], output: Any = None) -> None:
                nonlocal finished
                if finished:
                    log.warning("任务重复调用 callback，已忽略")
                    return
                finished = True
                stats.active -= 1
                stats.completed += 1
                if waiting:
                    stats.queued -= 1
                    waiting.popleft()()
                context.run(callback, err, output)

            try:
                task(input, on_done)
            except Exception as exc:
                # 同步抛出的异常同样释放名额，并通过 callback 传递
                on_done(exc)

        if stats.active < num_workers:
            execute()
        else:
            stats.queued += 1
            waiting.append(execute)
            log.debug(f"任务池已满({num_workers})，排队等待: {stats.queued}")

    pooled.stats = stats
    return pooled


def pooled_future(task: AsyncTask, input: Any, *, config: Any = None) -> FutureValue:
    """调用回调式任务并返回反映其结果的 FutureValue"""

    def executor(resolve, reject) -> None:
        def callback(err: Optional[BaseException], output: Any = None) -> None:
            if err is not None:
                reject(err)
            else:
                resolve(output)

        task(input, callback)

    return FutureValue(executor, config=config)


__all__ = ["PoolStats", "wrap_pool", "pooled_future"]
