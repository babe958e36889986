"""
FutureValue - 可链式变换的延迟值

每个 FutureValue 由两个 DeferredSlot 组成：兑现槽与拒绝槽，互为 peer。
结算的唯一权威是显式的 SettleState 标签，所有结算都经过 _settle，
先到者胜出；两个槽负责保存回调并把回调推入各自的 TaskQueue。

resolve 的处理流程（thenable 解析过程）：
1. 以自身结算 -> 以 SelfResolutionError 拒绝
2. 本引擎的 FutureValue -> 采纳其最终状态
3. 暴露可调用 then 的外部 thenable -> 调用 then，传入一对"首次调用有效"的
   resolve/reject，递归解包直至得到普通值；外部 thenable 是否最终结算由调用方负责
4. 其他值 -> 直接兑现
读取或调用 then 时抛出的异常一律转为拒绝，不向外传播。
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from typing import Any, Callable, Generic, Iterable, Optional, Tuple, TypeVar

from .common import FutureConfig, convert_config
from .deferred_slot import DeferredSlot
from .types import (
    SettleState,
    ThenableKind,
    SelfResolutionError,
    InvalidStateError,
    PendingFutureError,
    as_exception,
)

T = TypeVar("T")

Resolve = Callable[..., None]
Reject = Callable[[Any], None]
Executor = Callable[[Resolve, Reject], Any]

_ids = itertools.count(1)
_MISSING = object()


def classify_thenable(value: Any) -> Tuple[ThenableKind, Optional[Callable[..., Any]]]:
    """
    对 resolve 的输入做封闭分类

    Returns:
        (kind, then)：仅当 kind 为 FOREIGN 时 then 为外部对象的 then 方法

    读取 then 属性时抛出的异常原样向上传播，由调用方转为拒绝。
    """
    if isinstance(value, FutureValue):
        return ThenableKind.NATIVE, None
    if value is None:
        return ThenableKind.PLAIN, None
    try:
        then = getattr(value, "then")
    except AttributeError:
        # 仅在确实没有 then 属性时视为普通值；getter 内部的 AttributeError 照常传播
        if inspect.getattr_static(value, "then", _MISSING) is not _MISSING:
            raise
        return ThenableKind.PLAIN, None
    if callable(then):
        return ThenableKind.FOREIGN, then
    return ThenableKind.PLAIN, None


class FutureValue(Generic[T]):
    """延迟值

    Args:
        executor: ``executor(resolve, reject)``，在构造函数返回前同步调用；
            其中抛出的异常转为拒绝
        config: FutureConfig、字典或 None（使用进程级默认配置）
    """

    def __init__(self, executor: Executor, *, config: Any = None):
        self._config: FutureConfig = convert_config(config)
        self._logger = self._config.logger
        self._id = next(_ids)

        # 结算状态
        self._state = SettleState.PENDING
        self._outcome: Any = None

        # 兑现/拒绝两个通道，互为 peer
        scheduler = self._config.scheduler
        self._resolved: DeferredSlot[T] = DeferredSlot(scheduler)
        self._rejected: DeferredSlot[Any] = DeferredSlot(scheduler)
        self._resolved.set_peers([self._rejected])
        self._rejected.set_peers([self._resolved])

        resolve, reject = self._make_resolvers()
        try:
            executor(resolve, reject)
        except Exception as exc:
            reject(exc)

    # ------------------------------------------------------------------
    # 结算
    # ------------------------------------------------------------------
    def _make_resolvers(self) -> Tuple[Resolve, Reject]:
        """创建一对共享"首次调用有效"标志的 resolve/reject"""
        called = False

        def resolve(value: Any = None) -> None:
            nonlocal called
            if called:
                self._logger.debug(f"FutureValue#{self._id}: 忽略重复的 resolve 调用")
                return
            called = True
            try:
                self._resolve_value(value)
            except Exception:
                # 调度器无法接收任务时未能结算，重新开放 resolve/reject
                called = self._state is not SettleState.PENDING
                raise

        def reject(reason: Any = None) -> None:
            nonlocal called
            if called:
                self._logger.debug(f"FutureValue#{self._id}: 忽略重复的 reject 调用")
                return
            called = True
            try:
                self._settle(SettleState.REJECTED, reason)
            except Exception:
                called = self._state is not SettleState.PENDING
                raise

        return resolve, reject

    def _resolve_value(self, value: Any) -> None:
        if value is self:
            self._settle(
                SettleState.REJECTED,
                SelfResolutionError("FutureValue 不能以自身结算", future=self),
            )
            return

        try:
            kind, then = classify_thenable(value)
        except Exception as exc:
            self._settle(SettleState.REJECTED, exc)
            return

        if kind is ThenableKind.PLAIN:
            self._settle(SettleState.FULFILLED, value)
            return

        resolve, reject = self._make_resolvers()
        if kind is ThenableKind.NATIVE:
            value._subscribe(resolve, reject)
            return

        self._logger.debug(f"FutureValue#{self._id}: 解包外部 thenable {type(value).__name__}")
        try:
            then(resolve, reject)
        except Exception as exc:
            # resolve/reject 已被调用过时，此处的 reject 无效
            reject(exc)

    def _settle(self, state: SettleState, outcome: Any) -> bool:
        if self._state is not SettleState.PENDING:
            return False
        slot = self._resolved if state is SettleState.FULFILLED else self._rejected
        if not slot.settle(outcome):
            return False
        self._state = state
        self._outcome = outcome
        self._logger.debug(f"FutureValue#{self._id}: {state.value}")
        return True

    def _subscribe(self, on_value: Callable[[T], None], on_reason: Callable[[Any], None]) -> None:
        """直接在两个槽上注册回调（不经过作用域包装）"""
        self._resolved.on_settle(on_value)
        self._rejected.on_settle(on_reason)

    # ------------------------------------------------------------------
    # 链式调用
    # ------------------------------------------------------------------
    def then(
        self,
        on_resolve: Optional[Callable[[T], Any]] = None,
        on_reject: Optional[Callable[[Any], Any]] = None,
    ) -> "FutureValue[Any]":
        """注册兑现/拒绝处理函数，返回由处理结果驱动的新 FutureValue

        缺省的处理函数按原样透传对应通道的结算结果。
        """
        wrap = self._config.scope_wrapper
        if callable(on_resolve):
            on_resolve = wrap(on_resolve)
        if callable(on_reject):
            on_reject = wrap(on_reject)

        def executor(resolve: Resolve, reject: Reject) -> None:
            def add_handler(slot: DeferredSlot[Any], handler: Callable[[Any], Any]) -> None:
                def run(value: Any) -> None:
                    try:
                        pending = handler(value)
                        if pending is result:
                            reject(SelfResolutionError(
                                "then 处理函数返回了自身的结果对象", future=result
                            ))
                            return
                    except Exception as exc:
                        reject(exc)
                        return
                    resolve(pending)

                slot.on_settle(run)

            if callable(on_resolve):
                add_handler(self._resolved, on_resolve)
            else:
                self._resolved.on_settle(resolve)
            if callable(on_reject):
                add_handler(self._rejected, on_reject)
            else:
                self._rejected.on_settle(reject)

        result: FutureValue[Any] = FutureValue(executor, config=self._config)
        return result

    def catch(self, on_reject: Optional[Callable[[Any], Any]] = None) -> "FutureValue[Any]":
        """等价于 then(None, on_reject)"""
        return self.then(None, on_reject)

    def finally_(self, on_settle: Callable[[], Any]) -> "FutureValue[T]":
        """无论结果如何都调用 on_settle()，并透传原结算结果

        on_settle 抛出异常或返回被拒绝的 thenable 时，以该原因拒绝。
        """
        config = self._config

        def on_value(value: T) -> Any:
            return FutureValue.resolve(on_settle(), config=config).then(lambda _: value)

        def on_reason(reason: Any) -> Any:
            def rethrow(_: Any) -> Any:
                return FutureValue.reject(reason, config=config)

            return FutureValue.resolve(on_settle(), config=config).then(rethrow)

        return self.then(on_value, on_reason)

    # ------------------------------------------------------------------
    # 状态查询
    # ------------------------------------------------------------------
    @property
    def config(self) -> FutureConfig:
        return self._config

    @property
    def state(self) -> SettleState:
        return self._state

    def is_pending(self) -> bool:
        return self._state is SettleState.PENDING

    def is_fulfilled(self) -> bool:
        return self._state is SettleState.FULFILLED

    def is_rejected(self) -> bool:
        return self._state is SettleState.REJECTED

    @property
    def value(self) -> T:
        """兑现值；PENDING 或已拒绝时抛出异常"""
        if self._state is SettleState.PENDING:
            raise PendingFutureError(f"FutureValue#{self._id} 尚未结算", future=self)
        if self._state is SettleState.REJECTED:
            raise InvalidStateError(f"FutureValue#{self._id} 已被拒绝", future=self)
        return self._outcome

    @property
    def reason(self) -> Any:
        """拒绝原因；PENDING 或已兑现时抛出异常"""
        if self._state is SettleState.PENDING:
            raise PendingFutureError(f"FutureValue#{self._id} 尚未结算", future=self)
        if self._state is SettleState.FULFILLED:
            raise InvalidStateError(f"FutureValue#{self._id} 已兑现", future=self)
        return self._outcome

    # ------------------------------------------------------------------
    # asyncio 桥接
    # ------------------------------------------------------------------
    def __await__(self):
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        def on_value(value: T) -> None:
            if not waiter.done():
                waiter.set_result(value)

        def on_reason(reason: Any) -> None:
            if not waiter.done():
                waiter.set_exception(as_exception(reason, self))

        self._subscribe(on_value, on_reason)
        return (yield from waiter.__await__())

    # ------------------------------------------------------------------
    # 组合子
    # ------------------------------------------------------------------
    @staticmethod
    def resolve(value: Any = None, *, config: Any = None) -> "FutureValue[Any]":
        from .combinators import resolve
        return resolve(value, config=config)

    @staticmethod
    def reject(reason: Any, *, config: Any = None) -> "FutureValue[Any]":
        from .combinators import reject
        return reject(reason, config=config)

    @staticmethod
    def all(futures: Iterable[Any], *, config: Any = None) -> "FutureValue[Any]":
        from .combinators import all_of
        return all_of(futures, config=config)

    @staticmethod
    def race(futures: Iterable[Any], *, config: Any = None) -> "FutureValue[Any]":
        from .combinators import race
        return race(futures, config=config)

    def __repr__(self) -> str:
        if self._state is SettleState.PENDING:
            return f"FutureValue#{self._id}(pending)"
        if self._state is SettleState.FULFILLED:
            return f"FutureValue#{self._id}(fulfilled, value={self._outcome!r})"
        return f"FutureValue#{self._id}(rejected, reason={self._outcome!r})"


__all__ = ["FutureValue", "classify_thenable", "Executor", "Resolve", "Reject"]
