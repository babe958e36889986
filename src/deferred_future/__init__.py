"""
Deferred Future - 单线程协作式延迟值框架

从零实现的延迟值（future/promise）抽象，回调永远在注册之后的调度轮次执行。

主要功能:
- FutureValue 链式变换（then/catch）与错误传播
- 外部 thenable 递归解包，防止重复结算
- 聚合组合子 all/race/resolve/reject
- 可注入的作用域包装钩子与调度器
- asyncio 桥接与同步驱动适配器
"""

# 主要API导出
from .future import FutureValue, classify_thenable
from .deferred_slot import DeferredSlot
from .task_queue import (
    TaskQueue,
    ManualScheduler,
    AsyncioScheduler,
    AutoScheduler,
    get_auto_scheduler,
)
from .combinators import resolve, reject, all_of, race
from .adapter import Deferred, resolved, rejected, deferred
from .common import (
    FutureConfig,
    ExecutionMode,
    UnifiedLogger,
    convert_config,
    get_default_config,
    set_default_config,
)
from .interfaces import Scheduler, ScopeWrapper, Thenable, AsyncTask
from .scope import identity_scope, context_scope_wrapper
from .sync_adapter import run_until_settled, await_future, from_awaitable
from .pool import PoolStats, wrap_pool, pooled_future
from .types import (
    SettleState,
    ThenableKind,
    FutureValueError,
    SelfResolutionError,
    InvalidStateError,
    PendingFutureError,
    RejectionError,
    SchedulerStalledError,
)

__version__ = "1.0.0"
__author__ = "Deferred Future Team"

# 主要接口
__all__ = [
    # 核心类型
    "FutureValue",
    "DeferredSlot",
    "TaskQueue",
    "classify_thenable",

    # 组合子
    "resolve",
    "reject",
    "all_of",
    "race",

    # 一致性测试钩子
    "Deferred",
    "resolved",
    "rejected",
    "deferred",

    # 调度器
    "ManualScheduler",
    "AsyncioScheduler",
    "AutoScheduler",
    "get_auto_scheduler",

    # 配置与日志
    "FutureConfig",
    "ExecutionMode",
    "UnifiedLogger",
    "convert_config",
    "get_default_config",
    "set_default_config",

    # 协议接口
    "Scheduler",
    "ScopeWrapper",
    "Thenable",
    "AsyncTask",

    # 作用域包装
    "identity_scope",
    "context_scope_wrapper",

    # 适配器
    "run_until_settled",
    "await_future",
    "from_awaitable",

    # 任务池
    "PoolStats",
    "wrap_pool",
    "pooled_future",

    # 枚举
    "SettleState",
    "ThenableKind",

    # 异常
    "FutureValueError",
    "SelfResolutionError",
    "InvalidStateError",
    "PendingFutureError",
    "RejectionError",
    "SchedulerStalledError",
]


def get_version() -> str:
    """获取版本信息"""
    return __version__
