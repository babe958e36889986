"""
DeferredSlot 与 TaskQueue 测试
"""

import asyncio

import pytest

from deferred_future import (
    DeferredSlot,
    TaskQueue,
    ManualScheduler,
    AsyncioScheduler,
    AutoScheduler,
    SchedulerStalledError,
)
from future_helpers import FlakyScheduler


def test_settle_defers_pending_callbacks():
    """结算后回调延迟到下一轮执行"""
    scheduler = ManualScheduler()
    slot = DeferredSlot(scheduler)
    calls = []

    slot.on_settle(calls.append)
    assert slot.settle(1) is True
    assert calls == []
    assert scheduler.pending == 1

    scheduler.run_until_idle()
    assert calls == [1]


def test_on_settle_after_settlement_is_still_deferred():
    """已结算时注册的回调也不会同步执行"""
    scheduler = ManualScheduler()
    slot = DeferredSlot(scheduler)
    slot.settle("v")
    scheduler.run_until_idle()

    calls = []
    slot.on_settle(calls.append)
    assert calls == []

    scheduler.run_until_idle()
    assert calls == ["v"]


def test_settle_once():
    """值一旦设置不会被覆盖"""
    scheduler = ManualScheduler()
    slot = DeferredSlot(scheduler)

    assert slot.settle(1) is True
    assert slot.settle(2) is False
    assert slot.value == 1
    assert slot.is_settled


def test_unset_value_raises():
    slot = DeferredSlot(ManualScheduler())
    assert not slot.is_settled
    with pytest.raises(LookupError):
        slot.value


def test_callbacks_fire_in_registration_order():
    """同一槽上的回调按注册顺序执行，且只占用一个 tick"""
    scheduler = ManualScheduler()
    slot = DeferredSlot(scheduler)
    order = []

    for tag in ("a", "b", "c"):
        slot.on_settle(lambda value, tag=tag: order.append((tag, value)))

    slot.settle(7)
    assert scheduler.run_until_idle() == 1
    assert order == [("a", 7), ("b", 7), ("c", 7)]
    assert slot.pending_count == 0


def test_peer_veto():
    """peer 先结算后，本槽既不能结算也不接受新回调"""
    scheduler = ManualScheduler()
    fulfilled = DeferredSlot(scheduler)
    rejected = DeferredSlot(scheduler)
    fulfilled.set_peers([rejected])
    rejected.set_peers([fulfilled])

    seen = []
    fulfilled.on_settle(lambda v: seen.append(("fulfilled", v)))
    rejected.on_settle(lambda r: seen.append(("rejected", r)))

    assert fulfilled.settle("ok") is True
    # 失败方的待执行回调被清空
    assert rejected.pending_count == 0
    assert rejected.settle("boom") is False
    assert not rejected.is_settled

    rejected.on_settle(lambda r: seen.append(("late", r)))
    assert rejected.pending_count == 0

    scheduler.run_until_idle()
    assert seen == [("fulfilled", "ok")]


def test_set_peers_replaces_peer_list():
    scheduler = ManualScheduler()
    slot = DeferredSlot(scheduler)
    other = DeferredSlot(scheduler)

    slot.set_peers([other])
    other.settle(1)
    assert slot.settle(2) is False

    slot.set_peers([])
    assert slot.settle(2) is True
    assert slot.value == 2


def test_task_queue_fifo_and_deferred():
    """TaskQueue 推入的任务按顺序在之后执行"""
    scheduler = ManualScheduler()
    queue = TaskQueue(scheduler)
    order = []

    for i in range(3):
        queue.push(lambda i=i: order.append(i))

    assert order == []
    assert queue.pushed == 3
    scheduler.run_until_idle()
    assert order == [0, 1, 2]


def test_manual_scheduler_stall_guard():
    """无限自我调度的任务触发 tick 上限"""
    scheduler = ManualScheduler()
    queue = TaskQueue(scheduler)

    def forever():
        queue.push(forever)

    queue.push(forever)
    with pytest.raises(SchedulerStalledError):
        scheduler.run_until_idle(max_ticks=50)
    assert scheduler.pending == 1


def test_manual_scheduler_reraises_task_errors(caplog):
    """任务异常记录日志后原样抛出"""
    scheduler = ManualScheduler()
    queue = TaskQueue(scheduler)

    def broken():
        raise ValueError("broken task")

    queue.push(broken)
    queue.push(lambda: None)

    with pytest.raises(ValueError):
        scheduler.run_once()
    assert any("broken task" in record.getMessage() for record in caplog.records)
    assert scheduler.pending == 1
    assert scheduler.run_once() is True
    assert scheduler.run_once() is False


def test_asyncio_scheduler_uses_call_soon():
    """AsyncioScheduler 的任务在事件循环的下一轮执行"""

    async def runner():
        queue = TaskQueue(AsyncioScheduler())
        order = []
        queue.push(lambda: order.append("first"))
        queue.push(lambda: order.append("second"))
        assert order == []
        await asyncio.sleep(0)
        return order

    assert asyncio.run(runner()) == ["first", "second"]


def test_auto_scheduler_drains_inside_running_loop():
    """AutoScheduler 在运行中的事件循环上自动排空"""
    scheduler = AutoScheduler()

    async def runner():
        queue = TaskQueue(scheduler)
        order = []
        queue.push(lambda: order.append(1))
        queue.push(lambda: queue.push(lambda: order.append(3)))
        queue.push(lambda: order.append(2))
        for _ in range(5):
            await asyncio.sleep(0)
        return order

    assert asyncio.run(runner()) == [1, 2, 3]
    assert scheduler.pending == 0


def test_auto_scheduler_without_loop_waits_for_manual_drain():
    """没有事件循环时，AutoScheduler 的任务等待手动排空"""
    scheduler = AutoScheduler()
    queue = TaskQueue(scheduler)
    calls = []

    queue.push(lambda: calls.append("ran"))
    assert calls == []
    assert scheduler.pending == 1

    scheduler.run_until_idle()
    assert calls == ["ran"]


def test_failed_bind_leaves_slot_unset():
    """调度器绑定失败时槽保持未结算，之后仍可正常结算"""
    scheduler = FlakyScheduler(failures=1)
    slot = DeferredSlot(scheduler)
    peer = DeferredSlot(scheduler)
    slot.set_peers([peer])
    peer.set_peers([slot])
    calls = []
    slot.on_settle(calls.append)

    with pytest.raises(RuntimeError):
        slot.settle("first")

    assert not slot.is_settled
    assert slot.pending_count == 1

    assert slot.settle("second") is True
    scheduler.run_until_idle()
    assert calls == ["second"]


def test_asyncio_scheduler_without_loop_does_not_half_settle():
    """没有运行中的事件循环时，settle 抛出错误且不留下半结算状态"""
    slot = DeferredSlot(AsyncioScheduler())
    calls = []

    with pytest.raises(RuntimeError):
        slot.settle(1)

    assert not slot.is_settled
    # 未结算的槽只登记回调，不会访问不存在的任务队列
    slot.on_settle(calls.append)
    assert slot.pending_count == 1
    assert calls == []
