"""RPC bindings for ``partition.v1.PartitionService``.

Messages travel as JSON encoded pydantic models inside regular gRPC frames,
so no generated code is needed on either side. The codec is not wire
compatible with protobuf servers of the same service name.
"""
from __future__ import annotations

from typing import Any, Callable, NamedTuple, Type

import grpc
from pydantic import BaseModel

from partition_client import messages as m


SERVICE_NAME = "partition.v1.PartitionService"

UNARY = "unary_unary"
SERVER_STREAM = "unary_stream"


class RpcMethod(NamedTuple):
    kind: str
    request: Type[BaseModel]
    response: Type[BaseModel]


METHODS: dict[str, RpcMethod] = {
    "CreateTenant": RpcMethod(UNARY, m.TenantRequest, m.TenantObject),
    "ListTenants": RpcMethod(SERVER_STREAM, m.SearchRequest, m.TenantObject),
    "CreatePartition": RpcMethod(UNARY, m.PartitionCreateRequest, m.PartitionObject),
    "GetPartition": RpcMethod(UNARY, m.PartitionGetRequest, m.PartitionObject),
    "UpdatePartition": RpcMethod(UNARY, m.PartitionUpdateRequest, m.PartitionObject),
    "ListPartitions": RpcMethod(SERVER_STREAM, m.SearchRequest, m.PartitionObject),
    "CreatePartitionRole": RpcMethod(UNARY, m.PartitionRoleCreateRequest, m.PartitionRoleObject),
    "RemovePartitionRole": RpcMethod(UNARY, m.PartitionRoleRemoveRequest, m.RemoveResponse),
    "ListPartitionRoles": RpcMethod(UNARY, m.PartitionRoleListRequest, m.PartitionRoleListResponse),
    "CreatePage": RpcMethod(UNARY, m.PageCreateRequest, m.PageObject),
    "GetPage": RpcMethod(UNARY, m.PageGetRequest, m.PageObject),
    "CreateAccess": RpcMethod(UNARY, m.AccessCreateRequest, m.AccessObject),
    "GetAccess": RpcMethod(UNARY, m.AccessGetRequest, m.AccessObject),
    "RemoveAccess": RpcMethod(UNARY, m.AccessRemoveRequest, m.RemoveResponse),
    "CreateAccessRole": RpcMethod(UNARY, m.AccessRoleCreateRequest, m.AccessRoleObject),
    "RemoveAccessRole": RpcMethod(UNARY, m.AccessRoleRemoveRequest, m.RemoveResponse),
    "ListAccessRoles": RpcMethod(UNARY, m.AccessRoleListRequest, m.AccessRoleListResponse),
}


def full_method_name(name: str) -> str:
    return f"/{SERVICE_NAME}/{name}"


def serialize(message: BaseModel) -> bytes:
    return message.model_dump_json().encode("utf-8")


def deserializer(model: Type[BaseModel]) -> Callable[[bytes], Any]:
    def _deserialize(data: bytes) -> Any:
        return model.model_validate_json(data)
    return _deserialize


class PartitionServiceStub:
    """Client stub: one callable attribute per RPC, named as in ``METHODS``."""

    def __init__(self, channel: grpc.aio.Channel) -> None:
        for name, rpc in METHODS.items():
            factory = getattr(channel, rpc.kind)
            setattr(
                self,
                name,
                factory(
                    full_method_name(name),
                    request_serializer=serialize,
                    response_deserializer=deserializer(rpc.response),
                ),
            )


class PartitionServiceServicer:
    """Base class for server implementations.

    Define an async method per RPC (an async generator for streaming ones);
    RPCs left undefined answer UNIMPLEMENTED.
    """


def _unimplemented(name: str):
    async def _handler(request, context: grpc.aio.ServicerContext):
        await context.abort(grpc.StatusCode.UNIMPLEMENTED, f"{name} not implemented")
    return _handler


def add_PartitionServiceServicer_to_server(servicer: PartitionServiceServicer, server: grpc.aio.Server) -> None:
    handlers = {}
    for name, rpc in METHODS.items():
        behavior = getattr(servicer, name, None) or _unimplemented(name)
        if rpc.kind == SERVER_STREAM:
            build = grpc.unary_stream_rpc_method_handler
        else:
            build = grpc.unary_unary_rpc_method_handler
        handlers[name] = build(
            behavior,
            request_deserializer=deserializer(rpc.request),
            response_serializer=serialize,
        )
    server.add_generic_rpc_handlers((grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),))
