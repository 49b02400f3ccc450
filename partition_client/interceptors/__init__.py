from partition_client.interceptors.logging import UnaryStreamLoggingInterceptor, UnaryUnaryLoggingInterceptor
from partition_client.interceptors.request_id import (
    REQUEST_ID_META_KEY,
    UnaryStreamRequestIdInterceptor,
    UnaryUnaryRequestIdInterceptor,
    bind_request_id,
    get_request_id,
)


def default_interceptors() -> list:
    """Request-id then logging, for both unary and server-streaming calls."""
    return [
        UnaryUnaryRequestIdInterceptor(),
        UnaryStreamRequestIdInterceptor(),
        UnaryUnaryLoggingInterceptor(),
        UnaryStreamLoggingInterceptor(),
    ]


__all__ = [
    "UnaryUnaryLoggingInterceptor",
    "UnaryStreamLoggingInterceptor",
    "UnaryUnaryRequestIdInterceptor",
    "UnaryStreamRequestIdInterceptor",
    "REQUEST_ID_META_KEY",
    "bind_request_id",
    "get_request_id",
    "default_interceptors",
]
