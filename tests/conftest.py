"""Pytest bootstrap configuration.

Point the default client options at a local, plaintext endpoint before any
module reads application settings.
"""
import os

os.environ.setdefault("PARTITION__ENDPOINT", "127.0.0.1:7005")
os.environ.setdefault("PARTITION__TLS__ENABLED", "false")

from typing import Any

import grpc
import pytest


class FakeStream:
    """Server stream double: yields ``items`` then EOF, or raises ``error``."""

    def __init__(self, items, error: Exception | None = None):
        self._items = list(items)
        self._error = error
        self.reads = 0

    async def read(self):
        self.reads += 1
        if self._items:
            return self._items.pop(0)
        if self._error is not None:
            raise self._error
        return grpc.aio.EOF


class RecordingStub:
    """Stub double that records every call and echoes the request back."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, dict]] = []
        self.responses: dict[str, Any] = {}
        self.streams: dict[str, FakeStream] = {}

    def __getattr__(self, name: str):
        if name.startswith("_") or not name[:1].isupper():
            raise AttributeError(name)

        if name in ("ListTenants", "ListPartitions"):
            def _stream(request, **kwargs):
                self.calls.append((name, request, kwargs))
                return self.streams.get(name, FakeStream([]))
            return _stream

        async def _unary(request, **kwargs):
            self.calls.append((name, request, kwargs))
            return self.responses.get(name, request)
        return _unary

    @property
    def last(self) -> tuple[str, Any, dict]:
        return self.calls[-1]


class FakeChannel:
    def __init__(self) -> None:
        self.close_count = 0

    async def close(self, grace=None) -> None:
        self.close_count += 1


class FakeRpcError(grpc.RpcError):
    def __init__(self, code: grpc.StatusCode, details: str = ""):
        super().__init__(details)
        self._code = code
        self._details = details

    def code(self) -> grpc.StatusCode:
        return self._code

    def details(self) -> str:
        return self._details


@pytest.fixture
def make_stream():
    return FakeStream


@pytest.fixture
def rpc_error():
    return FakeRpcError


@pytest.fixture
def stub() -> RecordingStub:
    return RecordingStub()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def client(channel, stub):
    from partition_client import PartitionClient

    return PartitionClient.wrap(channel, stub)
