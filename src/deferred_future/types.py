"""
核心类型定义

包含延迟值框架的状态枚举、thenable 分类以及异常层级。
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Optional


class SettleState(Enum):
    """FutureValue 结算状态"""
    PENDING = "pending"           # 尚未结算
    FULFILLED = "fulfilled"       # 已兑现
    REJECTED = "rejected"         # 已拒绝


class ThenableKind(Enum):
    """resolve 时对传入值的封闭分类"""
    PLAIN = "plain"               # 普通值，直接兑现
    NATIVE = "native"             # 本引擎的 FutureValue，直接采纳其状态
    FOREIGN = "foreign"           # 暴露可调用 then 的外部 thenable


class FutureValueError(RuntimeError):
    """延迟值错误基类"""

    def __init__(self, message: str, *, future: Optional[Any] = None):
        super().__init__(message)
        self.future = future


class SelfResolutionError(FutureValueError, TypeError):
    """FutureValue 以自身结算（then 回调返回了自己的结果对象）"""


class InvalidStateError(FutureValueError):
    """在错误的状态下读取结算结果"""


class PendingFutureError(InvalidStateError):
    """FutureValue 仍处于 PENDING 状态"""


class RejectionError(FutureValueError):
    """包装非异常类型的拒绝原因，便于以异常形式抛出"""

    def __init__(self, reason: Any, *, future: Optional[Any] = None):
        super().__init__(f"FutureValue 被拒绝: {reason!r}", future=future)
        self.reason = reason


class SchedulerStalledError(FutureValueError):
    """手动调度器在 tick 上限内未能排空"""


def as_exception(reason: Any, future: Optional[Any] = None) -> BaseException:
    """将拒绝原因转换为可抛出的异常"""
    # asyncio 不接受 StopIteration 作为异常结果
    if isinstance(reason, BaseException) and not isinstance(reason, StopIteration):
        return reason
    return RejectionError(reason, future=future)
