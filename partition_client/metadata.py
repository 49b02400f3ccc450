from __future__ import annotations

import platform

import grpc


CLIENT_NAME = "partition"
CLIENT_VERSION = "1.0.0"
PROTOCOL_VERSION = "v1"

CLIENT_INFO_META_KEY = "x-ai-api-client"


def client_info_header(*keyval: str) -> str:
    """Format ``name/version`` pairs as a space separated header value."""
    if len(keyval) % 2:
        raise ValueError("client_info_header expects an even number of arguments")
    return " ".join(f"{k}/{v}" for k, v in zip(keyval[::2], keyval[1::2]))


def client_metadata(*keyval: str) -> tuple[tuple[str, str], ...]:
    kv = [
        "gl-python", platform.python_version(),
        CLIENT_NAME, CLIENT_VERSION,
        "proto", PROTOCOL_VERSION,
        *keyval,
        "grpc", grpc.__version__,
    ]
    return ((CLIENT_INFO_META_KEY, client_info_header(*kv)),)
