"""Factory hooks used by Promises/A+-style conformance suites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .combinators import reject, resolve
from .future import FutureValue, Reject, Resolve


@dataclass
class Deferred:
    """A pending FutureValue together with the functions that settle it."""

    future: FutureValue
    resolve: Resolve
    reject: Reject


def resolved(value: Any, *, config: Any = None) -> FutureValue:
    return resolve(value, config=config)


def rejected(reason: Any, *, config: Any = None) -> FutureValue:
    return reject(reason, config=config)


def deferred(*, config: Any = None) -> Deferred:
    """Create a pending FutureValue whose resolve/reject are exposed."""

    captured = {}

    def executor(res: Resolve, rej: Reject) -> None:
        captured["resolve"] = res
        captured["reject"] = rej

    future = FutureValue(executor, config=config)
    return Deferred(future=future, resolve=captured["resolve"], reject=captured["reject"])


__all__ = ["Deferred", "resolved", "rejected", "deferred"]
