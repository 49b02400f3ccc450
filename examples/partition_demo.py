from __future__ import annotations

import argparse
import asyncio
import uuid

from core.config import settings
from core.logging_config import configure_logging, get_logger
from partition_client import PartitionClient, call_scope, retrieve, use_client
from partition_client.interceptors import bind_request_id


logger = get_logger("partition_demo")


async def _bootstrap_tenant(name: str) -> None:
    client = retrieve()
    tenant = await client.create_tenant(name, f"{name} demo tenant", {"source": "demo"})
    root = await client.create_partition(tenant.tenant_id, f"{name} HQ")
    branch = await client.create_child_partition(tenant.tenant_id, root.partition_id, f"{name} Branch")
    role = await client.create_partition_role(branch.partition_id, "teller")
    logger.info(
        "demo_created",
        tenant_id=tenant.tenant_id,
        partition_id=root.partition_id,
        branch_id=branch.partition_id,
        role_id=role.partition_role_id,
    )

    for partition in await client.list_partitions(query=name, count=20, page=0):
        logger.info("demo_partition", partition_id=partition.partition_id, name=partition.name, parent_id=partition.parent_id)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Partition service client demo")
    parser.add_argument("--endpoint", default=settings.partition.endpoint)
    parser.add_argument("--insecure", action="store_true", help="plaintext connection (local servers)")
    parser.add_argument("--tenant", default="acme")
    parser.add_argument("--budget", type=float, default=30.0, help="overall seconds for the demo")
    args = parser.parse_args()
    configure_logging()

    overrides = {"endpoint": args.endpoint}
    if args.insecure:
        overrides["tls"] = {"enabled": False}

    async with await PartitionClient.connect(**overrides) as client:
        with use_client(client), call_scope(timeout=args.budget), bind_request_id(str(uuid.uuid4())):
            await _bootstrap_tenant(args.tenant)


if __name__ == "__main__":
    asyncio.run(main())
