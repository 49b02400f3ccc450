"""Partition client exceptions.

Only conditions detected by the client itself are modelled here. Errors
returned by the service are raised as ``grpc.aio.AioRpcError`` unchanged.
"""
from __future__ import annotations

from typing import Any, Sequence

import grpc


# Remote failures are never wrapped; this alias documents the contract.
RemoteError = grpc.RpcError


class PartitionClientError(Exception):
    """Base partition client exception."""
    pass


class ClientConnectionError(PartitionClientError, ConnectionError):
    """The channel could not be established at construction time."""

    def __init__(self, endpoint: str, message: str) -> None:
        self.endpoint = endpoint
        self.message = message
        super().__init__(f"{message} | Endpoint: {endpoint}")


class ClientClosedError(PartitionClientError):
    """The client was already closed."""
    pass


class CallScopeError(PartitionClientError):
    """The ambient call scope ended before the call was issued."""
    pass


class DeadlineExceededError(CallScopeError, TimeoutError):
    """The ambient call scope deadline has already passed."""
    pass


class CallCancelledError(CallScopeError):
    """The ambient call scope was cancelled."""
    pass


class StreamError(PartitionClientError):
    """A list stream failed after ``items`` had been received.

    The original ``grpc.RpcError`` is available as ``__cause__``; ``items``
    must be treated as incomplete.
    """

    def __init__(self, method: str, items: Sequence[Any]) -> None:
        self.method = method
        self.items = list(items)
        super().__init__(f"Stream {method} failed after {len(self.items)} item(s)")

    @property
    def code(self) -> grpc.StatusCode | None:
        cause = self.__cause__
        if isinstance(cause, grpc.RpcError) and hasattr(cause, "code"):
            return cause.code()
        return None
