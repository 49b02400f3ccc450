import asyncio
import contextvars

from partition_client import PartitionClient, attach, retrieve, use_client


def test_retrieve_without_attachment_is_none():
    assert retrieve() is None
    assert retrieve(contextvars.Context()) is None


def test_attach_returns_new_context(channel, stub):
    client = PartitionClient.wrap(channel, stub)
    base = contextvars.copy_context()

    ctx = attach(client, base)

    assert retrieve(ctx) is client
    assert retrieve(base) is None
    assert retrieve() is None
    assert ctx.run(retrieve) is client


def test_attach_shadows_for_descendants_only(channel, stub):
    first = PartitionClient.wrap(channel, stub)
    second = PartitionClient.wrap(channel, stub)

    outer = attach(first)
    inner = attach(second, outer)

    assert retrieve(outer) is first
    assert retrieve(inner) is second
    # contexts copied from an attached one inherit the client
    assert retrieve(outer.run(contextvars.copy_context)) is first


async def test_tasks_inherit_attached_client(channel, stub):
    client = PartitionClient.wrap(channel, stub)

    async def handler():
        found = retrieve()
        await found.get_partition("p1")
        return found

    with use_client(client):
        found = await asyncio.create_task(handler())

    assert found is client
    assert stub.last[0] == "GetPartition"
    assert retrieve() is None
