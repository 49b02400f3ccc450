from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Iterator

import grpc


REQUEST_ID_META_KEY = "x-request-id"
_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("grpc_request_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


@contextmanager
def bind_request_id(request_id: str) -> Iterator[str]:
    """Send ``request_id`` with every call made inside the block."""
    token = _request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        _request_id_var.reset(token)


def with_request_id(client_call_details: grpc.aio.ClientCallDetails) -> grpc.aio.ClientCallDetails:
    request_id = get_request_id()
    if not request_id:
        return client_call_details
    pairs = [(k, v) for k, v in (client_call_details.metadata or ()) if k != REQUEST_ID_META_KEY]
    pairs.append((REQUEST_ID_META_KEY, request_id))
    return client_call_details._replace(metadata=grpc.aio.Metadata(*pairs))


# grpc.aio files each interceptor under a single call kind, so one class per kind
class UnaryUnaryRequestIdInterceptor(grpc.aio.UnaryUnaryClientInterceptor):
    async def intercept_unary_unary(self, continuation, client_call_details, request):
        return await continuation(with_request_id(client_call_details), request)


class UnaryStreamRequestIdInterceptor(grpc.aio.UnaryStreamClientInterceptor):
    async def intercept_unary_stream(self, continuation, client_call_details, request):
        return await continuation(with_request_id(client_call_details), request)
