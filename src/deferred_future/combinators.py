"""
聚合组合子 - 完全基于 FutureValue 的公开接口实现

- resolve / reject：立即结算的 FutureValue
- all_of：按输入顺序收集兑现值，任一输入拒绝即拒绝
- race：转发最先结算的输入；同一轮次内已结算的输入按迭代顺序决胜
"""

from typing import Any, Iterable, List

from .common import FutureConfig, convert_config
from .future import FutureValue


def _as_future(item: Any, config: FutureConfig) -> FutureValue:
    """非 FutureValue 输入（普通值、外部 thenable）先经 resolve 包装"""
    if isinstance(item, FutureValue):
        return item
    return resolve(item, config=config)


def resolve(value: Any = None, *, config: Any = None) -> FutureValue:
    """以 value 解析的 FutureValue（value 为 thenable 时会被解包）"""
    return FutureValue(lambda res, rej: res(value), config=config)


def reject(reason: Any, *, config: Any = None) -> FutureValue:
    """以 reason 拒绝的 FutureValue"""
    return FutureValue(lambda res, rej: rej(reason), config=config)


def all_of(futures: Iterable[Any], *, config: Any = None) -> FutureValue:
    """
    等待全部输入兑现

    兑现值按输入的原始顺序排列，与各输入的完成先后无关；
    第一个拒绝原因即为聚合结果的拒绝原因，其余结算被忽略。
    空输入立即以空列表兑现。
    """
    config = convert_config(config)
    items = list(futures)

    def executor(res, rej) -> None:
        if not items:
            res([])
            return

        results: List[Any] = [None] * len(items)
        remaining = len(items)

        def collect(index: int):
            def on_value(value: Any) -> None:
                nonlocal remaining
                results[index] = value
                remaining -= 1
                if remaining == 0:
                    res(results)
            return on_value

        for index, item in enumerate(items):
            _as_future(item, config).then(collect(index), rej)

    return FutureValue(executor, config=config)


def race(futures: Iterable[Any], *, config: Any = None) -> FutureValue:
    """
    转发最先结算的输入（兑现或拒绝）

    若调用时多个输入已经结算，结果与迭代顺序中第一个已结算的输入一致。
    空输入永远保持 PENDING。
    """
    config = convert_config(config)
    items = list(futures)

    def executor(res, rej) -> None:
        for item in items:
            _as_future(item, config).then(res, rej)

    return FutureValue(executor, config=config)


__all__ = ["resolve", "reject", "all_of", "race"]
