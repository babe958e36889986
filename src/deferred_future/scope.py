"""Scope wrappers applied to ``then`` handlers.

A scope wrapper receives a handler when ``then`` is called and returns a
handler with the same signature and behavior. The core only ever calls the
configured wrapper; it knows nothing about what the wrapper records.
"""

from __future__ import annotations

import contextvars
import functools
from typing import Any, Callable

Handler = Callable[[Any], Any]


def identity_scope(fn: Handler) -> Handler:
    """Default wrapper: return the handler unchanged."""

    return fn


def context_scope_wrapper(fn: Handler) -> Handler:
    """Run ``fn`` inside the ``contextvars`` context captured at wrap time.

    Handlers execute in a later scheduler turn, possibly after the caller has
    changed its context variables. Wrapping with this function makes the
    handler observe the values that were current when ``then`` was called.
    """

    context = contextvars.copy_context()

    @functools.wraps(fn)
    def scoped(value: Any) -> Any:
        # Context.run is not reentrant, so each call runs in its own copy.
        return context.copy().run(fn, value)

    return scoped


__all__ = ["Handler", "identity_scope", "context_scope_wrapper"]
