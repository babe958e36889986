"""
协作者接口定义
"""

from typing import Protocol, runtime_checkable, Any, Callable, Optional

Task = Callable[[], None]
Dispatch = Callable[[Task], None]
TaskCallback = Callable[..., None]


@runtime_checkable
class Scheduler(Protocol):
    """调度器协议

    ``bind`` 在 TaskQueue 创建时调用一次，返回一个派发函数；
    同一个派发函数上推入的任务必须按推入顺序、在之后的调度轮次中执行。
    """

    def bind(self) -> Dispatch:
        ...


@runtime_checkable
class ScopeWrapper(Protocol):
    """作用域包装钩子：接收一个处理函数，返回签名与行为一致的处理函数"""

    def __call__(self, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
        ...


@runtime_checkable
class Thenable(Protocol):
    """外部 thenable 协议"""

    def then(
        self,
        on_resolve: Optional[Callable[[Any], Any]] = None,
        on_reject: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        ...


@runtime_checkable
class AsyncTask(Protocol):
    """回调风格的异步任务

    任务完成时调用 ``callback(err, output)``；成功时 err 为 None。
    """

    def __call__(self, input: Any, callback: TaskCallback) -> None:
        ...
