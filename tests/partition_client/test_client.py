import asyncio

import grpc
import pytest

from partition_client import (
    CallCancelledError,
    ClientClosedError,
    ClientConnectionError,
    DeadlineExceededError,
    PartitionClient,
    RemovableEntity,
    StreamError,
    call_scope,
)
from partition_client import messages as m
from partition_client.metadata import CLIENT_INFO_META_KEY


async def test_create_partition_maps_every_field(client, stub):
    req = await client.create_partition("t1", "Branch A", "", {}, parent_id="")

    name, sent, kwargs = stub.last
    assert name == "CreatePartition"
    assert isinstance(sent, m.PartitionCreateRequest)
    assert sent.tenant_id == "t1"
    assert sent.parent_id == ""
    assert sent.name == "Branch A"
    assert sent.description == ""
    assert sent.properties == {}
    assert req is sent


async def test_create_child_partition_sets_parent(client, stub):
    await client.create_child_partition("t1", "p0", "Branch B", "second", {"region": "east"})

    _, sent, _ = stub.last
    assert (sent.tenant_id, sent.parent_id, sent.name) == ("t1", "p0", "Branch B")
    assert sent.description == "second"
    assert sent.properties == {"region": "east"}


async def test_create_tenant_and_update_partition(client, stub):
    await client.create_tenant("Acme", "bank", {"country": "KE"})
    _, sent, _ = stub.last
    assert sent == m.TenantRequest(name="Acme", description="bank", properties={"country": "KE"})

    props = {"a": "1"}
    await client.update_partition("p1", "renamed", "desc", props)
    name, sent, _ = stub.last
    assert name == "UpdatePartition"
    assert sent == m.PartitionUpdateRequest(partition_id="p1", name="renamed", description="desc", properties=props)
    # the caller's mapping is copied, not shared
    assert sent.properties is not props


@pytest.mark.parametrize(
    "call, args, rpc, expected",
    [
        ("get_partition", ("p1",), "GetPartition", m.PartitionGetRequest(partition_id="p1")),
        ("create_partition_role", ("p1", "admin", {"k": "v"}), "CreatePartitionRole",
         m.PartitionRoleCreateRequest(partition_id="p1", name="admin", properties={"k": "v"})),
        ("create_page", ("p1", "signup", "<h1>hi</h1>"), "CreatePage",
         m.PageCreateRequest(partition_id="p1", name="signup", html="<h1>hi</h1>")),
        ("get_page", ("p1", "signup"), "GetPage", m.PageGetRequest(partition_id="p1", name="signup")),
        ("create_access", ("p1", "prof-9"), "CreateAccess",
         m.AccessCreateRequest(partition_id="p1", profile_id="prof-9")),
        ("get_access", ("p1", "prof-9"), "GetAccess", m.AccessGetRequest(partition_id="p1", profile_id="prof-9")),
        ("get_access_by_id", ("acc-1",), "GetAccess", m.AccessGetRequest(access_id="acc-1")),
        ("create_access_role", ("acc-1", "role-1"), "CreateAccessRole",
         m.AccessRoleCreateRequest(access_id="acc-1", partition_role_id="role-1")),
        ("remove_partition_role", ("role-1",), "RemovePartitionRole",
         m.PartitionRoleRemoveRequest(partition_role_id="role-1")),
        ("remove_access", ("acc-1",), "RemoveAccess", m.AccessRemoveRequest(access_id="acc-1")),
        ("remove_access_role", ("ar-1",), "RemoveAccessRole", m.AccessRoleRemoveRequest(access_role_id="ar-1")),
    ],
)
async def test_request_mapping(client, stub, call, args, rpc, expected):
    await getattr(client, call)(*args)

    name, sent, _ = stub.last
    assert name == rpc
    assert sent == expected


async def test_generic_remove_returns_acknowledgement(client, stub):
    stub.responses["RemoveAccessRole"] = m.RemoveResponse(succeeded=True)

    ack = await client.remove(RemovableEntity.ACCESS_ROLE, "ar-7")

    assert ack.succeeded is True
    assert stub.last[1] == m.AccessRoleRemoveRequest(access_role_id="ar-7")
    # plain strings are accepted as kind
    await client.remove("access", "acc-2")
    assert stub.last[0] == "RemoveAccess"


async def test_list_partition_roles_unwraps_response(client, stub):
    roles = [m.PartitionRoleObject(partition_role_id="r1", name="admin"), m.PartitionRoleObject(partition_role_id="r2")]
    stub.responses["ListPartitionRoles"] = m.PartitionRoleListResponse(role=roles)

    result = await client.list_partition_roles("p1")

    assert [r.partition_role_id for r in result] == ["r1", "r2"]
    assert stub.last[1] == m.PartitionRoleListRequest(partition_id="p1")


async def test_list_access_roles_unwraps_response(client, stub):
    stub.responses["ListAccessRoles"] = m.AccessRoleListResponse(
        role=[m.AccessRoleObject(access_role_id="ar1", access_id="acc-1", partition_role_id="r1")]
    )

    result = await client.list_access_roles("acc-1")

    assert len(result) == 1 and result[0].partition_role_id == "r1"


async def test_list_partitions_empty_stream(client, stub):
    result = await client.list_partitions(query="", count=0, page=0)

    assert result == []
    name, sent, _ = stub.last
    assert name == "ListPartitions"
    assert sent == m.SearchRequest(query="", count=0, page=0)


async def test_list_tenants_preserves_order(client, stub, make_stream):
    tenants = [m.TenantObject(tenant_id=str(i)) for i in range(5)]
    stub.streams["ListTenants"] = make_stream(tenants)

    result = await client.list_tenants("acme", count=5, page=2)

    assert [t.tenant_id for t in result] == ["0", "1", "2", "3", "4"]
    assert stub.last[1] == m.SearchRequest(query="acme", count=5, page=2)


async def test_list_partitions_mid_stream_error(client, stub, make_stream, rpc_error):
    parts = [m.PartitionObject(partition_id="a"), m.PartitionObject(partition_id="b")]
    stub.streams["ListPartitions"] = make_stream(parts, error=rpc_error(grpc.StatusCode.UNAVAILABLE, "gone"))

    with pytest.raises(StreamError) as ei:
        await client.list_partitions()

    assert [p.partition_id for p in ei.value.items] == ["a", "b"]
    assert ei.value.code == grpc.StatusCode.UNAVAILABLE
    assert ei.value.method == "ListPartitions"


async def test_remote_errors_pass_through(channel, rpc_error):
    class FailingStub:
        async def GetPartition(self, request, **kwargs):
            raise rpc_error(grpc.StatusCode.NOT_FOUND, "no such partition")

    client = PartitionClient.wrap(channel, FailingStub())

    with pytest.raises(grpc.RpcError) as ei:
        await client.get_partition("missing")
    assert ei.value.code() == grpc.StatusCode.NOT_FOUND


async def test_calls_carry_timeout_and_client_header(client, stub):
    await client.get_partition("p1")

    _, _, kwargs = stub.last
    assert kwargs["timeout"] == pytest.approx(client.options.call_timeout)
    md = dict(kwargs["metadata"])
    assert CLIENT_INFO_META_KEY in md
    assert md[CLIENT_INFO_META_KEY].startswith("gl-python/")
    assert "grpc/" in md[CLIENT_INFO_META_KEY]


async def test_call_timeout_is_configurable(channel, stub):
    from core.config import ClientOptions

    client = PartitionClient.wrap(channel, stub, ClientOptions(call_timeout=1.5))
    await client.list_partitions()

    assert stub.last[2]["timeout"] == pytest.approx(1.5)


async def test_scope_deadline_shortens_timeout(client, stub):
    with call_scope(timeout=0.5):
        await client.get_page("p1", "signup")

    assert stub.last[2]["timeout"] <= 0.5


@pytest.mark.parametrize(
    "call, args",
    [
        ("create_tenant", ("n", "d")),
        ("list_tenants", ()),
        ("list_partitions", ()),
        ("create_partition", ("t1", "n")),
        ("get_access_by_id", ("acc-1",)),
        ("remove_access", ("acc-1",)),
    ],
)
async def test_cancelled_scope_fails_before_stub(client, stub, call, args):
    with call_scope() as scope:
        scope.cancel()
        with pytest.raises(CallCancelledError):
            await getattr(client, call)(*args)

    assert stub.calls == []


async def test_expired_scope_fails_before_stub(client, stub):
    with call_scope(timeout=0):
        with pytest.raises(DeadlineExceededError):
            await client.create_access("p1", "prof-1")

    assert stub.calls == []


async def test_scope_cancel_reaches_in_flight_call(channel):
    started = asyncio.Event()

    class SlowStub:
        async def GetPartition(self, request, **kwargs):
            started.set()
            await asyncio.sleep(30)

    client = PartitionClient.wrap(channel, SlowStub())

    with call_scope() as outer:
        with call_scope():
            task = asyncio.create_task(client.get_partition("p1"))
        await started.wait()
        outer.cancel()

        with pytest.raises(CallCancelledError):
            await task
    assert not task.cancelled()


async def test_task_cancellation_passes_through(channel):
    started = asyncio.Event()

    class SlowStub:
        async def GetPartition(self, request, **kwargs):
            started.set()
            await asyncio.sleep(30)

    client = PartitionClient.wrap(channel, SlowStub())

    with call_scope():
        task = asyncio.create_task(client.get_partition("p1"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


async def test_close_exactly_once(client, channel):
    await client.close()
    assert client.closed
    assert channel.close_count == 1

    with pytest.raises(ClientClosedError):
        await client.close()
    assert channel.close_count == 1


async def test_async_context_manager_closes(channel, stub):
    async with PartitionClient.wrap(channel, stub) as client:
        await client.get_partition("p1")

    assert client.closed
    assert channel.close_count == 1


async def test_connect_failure_raises_connection_error():
    # nothing listens on port 1; readiness times out
    with pytest.raises(ClientConnectionError) as ei:
        await PartitionClient.connect(endpoint="127.0.0.1:1", connect_timeout=0.2, tls={"enabled": False})

    assert ei.value.endpoint == "127.0.0.1:1"
    assert isinstance(ei.value, ConnectionError)


async def test_connect_failure_on_missing_ca_file(tmp_path):
    missing = str(tmp_path / "missing-ca.pem")
    with pytest.raises(ClientConnectionError):
        await PartitionClient.connect(tls={"enabled": True, "ca": missing})


class StalledChannel:
    """Channel whose readiness never resolves."""

    def __init__(self) -> None:
        self.close_count = 0
        self.waiting = asyncio.Event()

    async def channel_ready(self) -> None:
        self.waiting.set()
        await asyncio.Event().wait()

    async def close(self, grace=None) -> None:
        self.close_count += 1


async def test_cancelled_connect_closes_channel(monkeypatch):
    channel = StalledChannel()
    monkeypatch.setattr("partition_client.client._create_channel", lambda opts, interceptors: channel)

    task = asyncio.create_task(PartitionClient.connect(connect_timeout=30))
    await channel.waiting.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert channel.close_count == 1


async def test_connect_timeout_closes_channel(monkeypatch):
    channel = StalledChannel()
    monkeypatch.setattr("partition_client.client._create_channel", lambda opts, interceptors: channel)

    with pytest.raises(ClientConnectionError):
        await PartitionClient.connect(connect_timeout=0.05)

    assert channel.close_count == 1
