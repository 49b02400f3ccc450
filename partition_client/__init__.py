"""Asyncio client for the partition service.

This package hosts:
- Wire messages and the RPC stub (`messages`, `service`).
- The client facade and its call deadline policy (`client`, `deadline`).
- Helpers to carry one client through request-scoped code (`context`).
- Client interceptors for logging and request-id propagation.
"""

from partition_client.client import PartitionClient, RemovableEntity
from partition_client.context import attach, retrieve, use_client
from partition_client.deadline import CallScope, call_scope, current_scope
from partition_client.exceptions import (
    CallCancelledError,
    CallScopeError,
    ClientClosedError,
    ClientConnectionError,
    DeadlineExceededError,
    PartitionClientError,
    RemoteError,
    StreamError,
)

__all__ = [
    "PartitionClient",
    "RemovableEntity",
    "attach",
    "retrieve",
    "use_client",
    "CallScope",
    "call_scope",
    "current_scope",
    "PartitionClientError",
    "ClientConnectionError",
    "ClientClosedError",
    "CallScopeError",
    "CallCancelledError",
    "DeadlineExceededError",
    "StreamError",
    "RemoteError",
]
