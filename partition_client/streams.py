from __future__ import annotations

from typing import Any, Protocol

import grpc

from partition_client.exceptions import StreamError


class ResponseStream(Protocol):
    async def read(self) -> Any: ...


async def collect_stream(stream: ResponseStream, method: str = "") -> list[Any]:
    """Drain a server stream into a list, in receive order.

    End of stream (``grpc.aio.EOF``) completes normally, even with no items.
    A receive failure raises ``StreamError`` holding the items read so far.
    """
    items: list[Any] = []
    try:
        while True:
            message = await stream.read()
            if message is grpc.aio.EOF:
                return items
            items.append(message)
    except grpc.RpcError as exc:
        raise StreamError(method, items) from exc
