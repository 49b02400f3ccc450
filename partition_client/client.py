"""Partition service client.

The service that an application uses to access and manipulate tenant,
partition, access and page information.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence

import grpc
from pydantic import BaseModel

from core.config import ClientOptions, TlsOptions, settings
from core.logging_config import get_logger
from partition_client.exceptions import ClientClosedError, ClientConnectionError
from partition_client.deadline import derive_timeout, guard_call
from partition_client.interceptors import default_interceptors
from partition_client.metadata import client_metadata
from partition_client.service import PartitionServiceStub
from partition_client.streams import collect_stream
from partition_client.messages import (
    AccessCreateRequest,
    AccessGetRequest,
    AccessObject,
    AccessRemoveRequest,
    AccessRoleCreateRequest,
    AccessRoleListRequest,
    AccessRoleObject,
    AccessRoleRemoveRequest,
    PageCreateRequest,
    PageGetRequest,
    PageObject,
    PartitionCreateRequest,
    PartitionGetRequest,
    PartitionObject,
    PartitionRoleCreateRequest,
    PartitionRoleListRequest,
    PartitionRoleObject,
    PartitionRoleRemoveRequest,
    PartitionUpdateRequest,
    RemoveResponse,
    SearchRequest,
    TenantObject,
    TenantRequest,
)


logger = get_logger(__name__)

Properties = Optional[Mapping[str, str]]


class RemovableEntity(str, Enum):
    PARTITION_ROLE = "partition_role"
    ACCESS = "access"
    ACCESS_ROLE = "access_role"


_REMOVE_RPCS: dict[RemovableEntity, tuple[str, Callable[[str], BaseModel]]] = {
    RemovableEntity.PARTITION_ROLE: (
        "RemovePartitionRole", lambda entity_id: PartitionRoleRemoveRequest(partition_role_id=entity_id)
    ),
    RemovableEntity.ACCESS: ("RemoveAccess", lambda entity_id: AccessRemoveRequest(access_id=entity_id)),
    RemovableEntity.ACCESS_ROLE: (
        "RemoveAccessRole", lambda entity_id: AccessRoleRemoveRequest(access_role_id=entity_id)
    ),
}


def _props(properties: Properties) -> dict[str, str]:
    return dict(properties or {})


def _read_file(path: Optional[str]) -> Optional[bytes]:
    if not path:
        return None
    with open(path, "rb") as f:
        return f.read()


def _channel_credentials(tls: TlsOptions) -> grpc.ChannelCredentials:
    return grpc.ssl_channel_credentials(
        root_certificates=_read_file(tls.ca),
        private_key=_read_file(tls.key),
        certificate_chain=_read_file(tls.cert),
    )


def _create_channel(options: ClientOptions, interceptors: Sequence[Any]) -> grpc.aio.Channel:
    channel_options = options.channel_options()
    if options.tls.enabled:
        return grpc.aio.secure_channel(
            options.endpoint,
            _channel_credentials(options.tls),
            options=channel_options,
            interceptors=interceptors,
        )
    return grpc.aio.insecure_channel(options.endpoint, options=channel_options, interceptors=interceptors)


class PartitionClient:
    """Client for interacting with the partition service API.

    Methods, except ``close``, may be called concurrently; the client keeps
    no per-call state. Options and call metadata are fixed at construction.
    Closing while calls are in flight is left to the caller: those calls may
    fail with a gRPC error.
    """

    def __init__(
        self,
        channel: grpc.aio.Channel,
        stub: Any,
        options: Optional[ClientOptions] = None,
    ) -> None:
        self._channel = channel
        self._stub = stub
        self._options = options or settings.partition
        # x-ai-api-client header sent with each request
        self._metadata = client_metadata()
        self._closed = False

    @classmethod
    async def connect(
        cls,
        options: Optional[ClientOptions] = None,
        *,
        interceptors: Optional[Sequence[Any]] = None,
        **overrides: Any,
    ) -> "PartitionClient":
        """Dial the service and return a ready client.

        ``overrides`` are ``ClientOptions`` fields applied over ``options``
        (default: ``settings.partition``). Raises ``ClientConnectionError``
        when the channel cannot be set up; no retries are attempted.

        Messages are JSON encoded (see ``partition_client.service``), so the
        peer must speak that codec. The protobuf ``partition.v1`` deployment
        at the default endpoint does not; point ``endpoint`` at a service
        built with ``add_PartitionServiceServicer_to_server``.
        """
        base = options or settings.partition
        opts = ClientOptions.model_validate({**base.model_dump(), **overrides}) if overrides else base
        if interceptors is None:
            interceptors = default_interceptors()

        logger.info("partition_client_connecting", endpoint=opts.endpoint, tls=opts.tls.enabled)
        channel = None
        try:
            channel = _create_channel(opts, interceptors)
            if opts.wait_for_ready:
                await asyncio.wait_for(channel.channel_ready(), timeout=opts.connect_timeout)
        except Exception as exc:
            logger.error("partition_client_connect_failed", endpoint=opts.endpoint, error=str(exc))
            if channel is not None:
                await channel.close()
            raise ClientConnectionError(opts.endpoint, f"Failed to connect to partition service: {exc!r}") from exc
        except BaseException:
            # cancelled while waiting for readiness
            if channel is not None:
                await channel.close()
            raise

        logger.info("partition_client_connected", endpoint=opts.endpoint)
        return cls(channel, PartitionServiceStub(channel), opts)

    @classmethod
    def wrap(cls, channel: grpc.aio.Channel, stub: Any = None, options: Optional[ClientOptions] = None) -> "PartitionClient":
        """Adopt an established channel (and optionally a stub) without dialing."""
        if stub is None:
            stub = PartitionServiceStub(channel)
        return cls(channel, stub, options)

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def metadata(self) -> tuple[tuple[str, str], ...]:
        return self._metadata

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Close the connection to the service.

        Call once, when the client is no longer required. For a wrapped
        client, only call it if this client owns the channel.
        """
        if self._closed:
            raise ClientClosedError("partition client already closed")
        self._closed = True
        await self._channel.close()
        logger.info("partition_client_closed")

    async def __aenter__(self) -> "PartitionClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._closed:
            await self.close()

    async def _unary(self, name: str, request: BaseModel) -> Any:
        timeout = derive_timeout(self._options.call_timeout)
        rpc = getattr(self._stub, name)
        with guard_call():
            return await rpc(request, timeout=timeout, metadata=self._metadata)

    async def _server_stream(self, name: str, request: BaseModel) -> list[Any]:
        timeout = derive_timeout(self._options.call_timeout)
        rpc = getattr(self._stub, name)
        with guard_call():
            return await collect_stream(rpc(request, timeout=timeout, metadata=self._metadata), name)

    # Tenants

    async def create_tenant(self, name: str, description: str, properties: Properties = None) -> TenantObject:
        """Create a tenant.

        Tenants give an almost physical data separation and are created
        rarely; partitions are the everyday isolation unit.
        """
        request = TenantRequest(name=name, description=description, properties=_props(properties))
        return await self._unary("CreateTenant", request)

    async def list_tenants(self, query: str = "", count: int = 0, page: int = 0) -> list[TenantObject]:
        request = SearchRequest(query=query, count=count, page=page)
        return await self._server_stream("ListTenants", request)

    # Partitions

    async def create_partition(
        self,
        tenant_id: str,
        name: str,
        description: str = "",
        properties: Properties = None,
        parent_id: str = "",
    ) -> PartitionObject:
        """Create a partition, a softer isolation level inside a tenant.

        The separation is enforced by the applications consuming the API.
        An empty ``parent_id`` makes a root partition.
        """
        request = PartitionCreateRequest(
            tenant_id=tenant_id,
            parent_id=parent_id,
            name=name,
            description=description,
            properties=_props(properties),
        )
        return await self._unary("CreatePartition", request)

    async def create_child_partition(
        self,
        tenant_id: str,
        parent_id: str,
        name: str,
        description: str = "",
        properties: Properties = None,
    ) -> PartitionObject:
        """Create a partition under ``parent_id``, e.g. a branch of a bank."""
        return await self.create_partition(tenant_id, name, description, properties, parent_id=parent_id)

    async def get_partition(self, partition_id: str) -> PartitionObject:
        return await self._unary("GetPartition", PartitionGetRequest(partition_id=partition_id))

    async def update_partition(
        self,
        partition_id: str,
        name: str,
        description: str = "",
        properties: Properties = None,
    ) -> PartitionObject:
        """Update a partition; ``properties`` replaces the stored mapping."""
        request = PartitionUpdateRequest(
            partition_id=partition_id,
            name=name,
            description=description,
            properties=_props(properties),
        )
        return await self._unary("UpdatePartition", request)

    async def list_partitions(self, query: str = "", count: int = 0, page: int = 0) -> list[PartitionObject]:
        request = SearchRequest(query=query, count=count, page=page)
        return await self._server_stream("ListPartitions", request)

    # Partition roles

    async def create_partition_role(
        self, partition_id: str, name: str, properties: Properties = None
    ) -> PartitionRoleObject:
        request = PartitionRoleCreateRequest(partition_id=partition_id, name=name, properties=_props(properties))
        return await self._unary("CreatePartitionRole", request)

    async def remove_partition_role(self, partition_role_id: str) -> RemoveResponse:
        return await self.remove(RemovableEntity.PARTITION_ROLE, partition_role_id)

    async def list_partition_roles(self, partition_id: str) -> list[PartitionRoleObject]:
        response = await self._unary("ListPartitionRoles", PartitionRoleListRequest(partition_id=partition_id))
        return list(response.role)

    # Pages

    async def create_page(self, partition_id: str, name: str, html: str) -> PageObject:
        """Store a custom page (signup, branding, ...) for later display to users."""
        request = PageCreateRequest(partition_id=partition_id, name=name, html=html)
        return await self._unary("CreatePage", request)

    async def get_page(self, partition_id: str, name: str) -> PageObject:
        return await self._unary("GetPage", PageGetRequest(partition_id=partition_id, name=name))

    # Access

    async def create_access(self, partition_id: str, profile_id: str) -> AccessObject:
        request = AccessCreateRequest(partition_id=partition_id, profile_id=profile_id)
        return await self._unary("CreateAccess", request)

    async def remove_access(self, access_id: str) -> RemoveResponse:
        return await self.remove(RemovableEntity.ACCESS, access_id)

    async def get_access(self, partition_id: str, profile_id: str) -> AccessObject:
        """Look up the grant of ``profile_id`` on ``partition_id``."""
        request = AccessGetRequest(partition_id=partition_id, profile_id=profile_id)
        return await self._unary("GetAccess", request)

    async def get_access_by_id(self, access_id: str) -> AccessObject:
        return await self._unary("GetAccess", AccessGetRequest(access_id=access_id))

    # Access roles

    async def create_access_role(self, access_id: str, partition_role_id: str) -> AccessRoleObject:
        request = AccessRoleCreateRequest(access_id=access_id, partition_role_id=partition_role_id)
        return await self._unary("CreateAccessRole", request)

    async def remove_access_role(self, access_role_id: str) -> RemoveResponse:
        return await self.remove(RemovableEntity.ACCESS_ROLE, access_role_id)

    async def list_access_roles(self, access_id: str) -> list[AccessRoleObject]:
        response = await self._unary("ListAccessRoles", AccessRoleListRequest(access_id=access_id))
        return list(response.role)

    async def remove(self, kind: RemovableEntity, entity_id: str) -> RemoveResponse:
        """Remove a partition role, access or access role by id."""
        name, build = _REMOVE_RPCS[RemovableEntity(kind)]
        return await self._unary(name, build(entity_id))
