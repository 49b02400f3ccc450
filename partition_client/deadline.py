"""Ambient call scopes and the per-call deadline policy.

A ``CallScope`` plays the role of the caller's context: it may carry its own
deadline and may be cancelled. Every client call derives its timeout from the
configured budget and the innermost active scope, and is cancelled together
with that scope or any of its ancestors.
"""
from __future__ import annotations

import asyncio
import contextvars
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from partition_client.exceptions import CallCancelledError, DeadlineExceededError


_scope_var: contextvars.ContextVar[Optional["CallScope"]] = contextvars.ContextVar(
    "partition_call_scope", default=None
)


class CallScope:
    def __init__(self, deadline: Optional[float] = None, parent: Optional["CallScope"] = None) -> None:
        # time.monotonic() based
        self._deadline = deadline
        self._parent = parent
        self._cancelled = False
        # tasks with a call in flight under this scope or a descendant
        self._tasks: set[asyncio.Task] = set()

    def cancel(self) -> None:
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def deadline(self) -> Optional[float]:
        parent_deadline = self._parent.deadline if self._parent is not None else None
        if self._deadline is None:
            return parent_deadline
        if parent_deadline is None:
            return self._deadline
        return min(self._deadline, parent_deadline)

    def remaining(self) -> Optional[float]:
        deadline = self.deadline
        if deadline is None:
            return None
        return deadline - time.monotonic()

    def _lineage(self) -> list["CallScope"]:
        scopes = []
        scope: Optional[CallScope] = self
        while scope is not None:
            scopes.append(scope)
            scope = scope._parent
        return scopes


def current_scope() -> Optional[CallScope]:
    return _scope_var.get()


@contextmanager
def call_scope(timeout: Optional[float] = None) -> Iterator[CallScope]:
    """Open a scope nested in the current one.

    The scope ends on exit; it is cancelled when it or any ancestor is
    cancelled, and its deadline never exceeds its parent's.
    """
    deadline = time.monotonic() + timeout if timeout is not None else None
    scope = CallScope(deadline=deadline, parent=_scope_var.get())
    token = _scope_var.set(scope)
    try:
        yield scope
    finally:
        _scope_var.reset(token)


def derive_timeout(budget: float) -> float:
    """Return the timeout for one call, or raise if the scope is already over."""
    scope = _scope_var.get()
    if scope is None:
        return budget
    if scope.cancelled:
        raise CallCancelledError("call scope cancelled")
    remaining = scope.remaining()
    if remaining is None:
        return budget
    if remaining <= 0:
        raise DeadlineExceededError("call scope deadline exceeded")
    return min(budget, remaining)


@contextmanager
def guard_call() -> Iterator[None]:
    """Bind the running task to the current scope for one call.

    Cancelling the scope cancels the call; the resulting ``CancelledError``
    is turned into ``CallCancelledError``. Other task cancellations pass
    through untouched.
    """
    scope = _scope_var.get()
    task = asyncio.current_task()
    if scope is None or task is None:
        yield
        return

    lineage = scope._lineage()
    for s in lineage:
        s._tasks.add(task)
    try:
        yield
    except asyncio.CancelledError:
        if not scope.cancelled:
            raise
        task.uncancel()
        raise CallCancelledError("call scope cancelled") from None
    finally:
        for s in lineage:
            s._tasks.discard(task)
