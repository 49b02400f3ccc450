"""Thread one ``PartitionClient`` through request-scoped code.

The registry only associates; it never creates or closes the client.
"""
from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from partition_client.client import PartitionClient


_client_var: contextvars.ContextVar[Optional["PartitionClient"]] = contextvars.ContextVar(
    "partition_client", default=None
)


def attach(client: "PartitionClient", ctx: Optional[contextvars.Context] = None) -> contextvars.Context:
    """Return a copy of ``ctx`` (default: the current context) carrying ``client``.

    ``ctx`` itself is left untouched. Run code in the result with
    ``new_ctx.run(...)`` or ``asyncio.create_task(..., context=new_ctx)``.
    """
    base = ctx if ctx is not None else contextvars.copy_context()
    derived = base.copy()
    derived.run(_client_var.set, client)
    return derived


def retrieve(ctx: Optional[contextvars.Context] = None) -> Optional["PartitionClient"]:
    if ctx is None:
        return _client_var.get()
    return ctx.get(_client_var)


@contextmanager
def use_client(client: "PartitionClient") -> Iterator["PartitionClient"]:
    """Bind ``client`` in the current context for the duration of the block."""
    token = _client_var.set(client)
    try:
        yield client
    finally:
        _client_var.reset(token)
