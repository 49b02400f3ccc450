from __future__ import annotations

import asyncio
import time

import grpc

from core.logging_config import get_logger
from partition_client.interceptors.request_id import get_request_id


logger = get_logger(__name__)


def _method_name(client_call_details: grpc.aio.ClientCallDetails) -> str:
    method = client_call_details.method
    if isinstance(method, bytes):
        return method.decode("utf-8")
    return method


class UnaryUnaryLoggingInterceptor(grpc.aio.UnaryUnaryClientInterceptor):
    async def intercept_unary_unary(self, continuation, client_call_details, request):
        method = _method_name(client_call_details)
        start = time.perf_counter()
        logger.info("grpc_client_call", method=method, timeout=client_call_details.timeout, request_id=get_request_id())
        code = grpc.StatusCode.OK
        try:
            call = await continuation(client_call_details, request)
            # Completes the call here so the status is known; the caller's await returns the cached response
            await call
            return call
        except grpc.aio.AioRpcError as exc:
            code = exc.code()
            raise
        except asyncio.CancelledError:
            code = grpc.StatusCode.CANCELLED
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "grpc_client_call_done",
                method=method,
                code=code.name,
                elapsed_ms=round(elapsed_ms, 2),
                request_id=get_request_id(),
            )


class UnaryStreamLoggingInterceptor(grpc.aio.UnaryStreamClientInterceptor):
    async def intercept_unary_stream(self, continuation, client_call_details, request):
        method = _method_name(client_call_details)
        start = time.perf_counter()
        request_id = get_request_id()
        logger.info("grpc_client_call", method=method, timeout=client_call_details.timeout, request_id=request_id)
        call = await continuation(client_call_details, request)

        def _done(c) -> None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "grpc_client_call_done",
                method=method,
                cancelled=c.cancelled(),
                elapsed_ms=round(elapsed_ms, 2),
                request_id=request_id,
            )

        call.add_done_callback(_done)
        return call
