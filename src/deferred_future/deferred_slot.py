"""Single-settlement value holder with peer veto."""

from __future__ import annotations

from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from .interfaces import Scheduler
from .task_queue import TaskQueue

T = TypeVar("T")

_UNSET: Any = object()


class DeferredSlot(Generic[T]):
    """Holds one eventual value, assigned at most once.

    A slot may have peers. As soon as any peer has settled, this slot will
    never settle: ``settle`` becomes a no-op and callbacks registered through
    ``on_settle`` are dropped. A FutureValue wires its fulfillment and
    rejection slots as each other's peers.

    Callbacks never run synchronously. They are pushed onto the slot's
    TaskQueue, which is created when the slot settles.
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._value: Any = _UNSET
        self._pending: List[Callable[[T], None]] = []
        self._peers: List["DeferredSlot[Any]"] = []
        self._task_queue: Optional[TaskQueue] = None

    @property
    def is_settled(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> T:
        if self._value is _UNSET:
            raise LookupError("slot has not settled")
        return self._value

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def on_settle(self, fn: Callable[[T], None]) -> None:
        """Register ``fn`` to be called with the settled value.

        If the slot already holds a value, ``fn`` is queued right away (still
        deferred). If a peer settled first, ``fn`` is discarded.
        """

        if self._peer_settled():
            return
        if self._value is not _UNSET:
            value = self._value
            self._task_queue.push(lambda: fn(value))
        else:
            self._pending.append(fn)

    def settle(self, value: T) -> bool:
        """Assign the value and queue every pending callback.

        Returns ``False`` without side effects when the slot already holds a
        value or a peer settled first. If the scheduler cannot bind or
        dispatch (for example an asyncio scheduler with no running loop), the
        error propagates and the slot stays unset.
        """

        if self._value is not _UNSET or self._peer_settled():
            return False
        task_queue = TaskQueue(self._scheduler)
        task_queue.push(lambda: self._fire(value))
        self._value = value
        self._task_queue = task_queue
        # Callbacks on peers can never fire now.
        for peer in self._peers:
            peer._pending.clear()
        return True

    def set_peers(self, peers: Sequence["DeferredSlot[Any]"]) -> None:
        self._peers = list(peers)

    def _fire(self, value: T) -> None:
        callbacks = self._pending
        self._pending = []
        for fn in callbacks:
            fn(value)

    def _peer_settled(self) -> bool:
        return any(peer._value is not _UNSET for peer in self._peers)

    def __repr__(self) -> str:
        if self._value is _UNSET:
            return f"DeferredSlot(unset, pending={len(self._pending)})"
        return f"DeferredSlot(value={self._value!r})"
