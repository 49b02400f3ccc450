"""Wire messages of ``partition.v1.PartitionService``.

Requests are plain pydantic models; responses ignore unknown fields so that
newer servers stay readable by older clients.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Message(BaseModel):
    model_config = ConfigDict(extra="ignore")


# Entities

class TenantObject(_Message):
    tenant_id: str = ""
    name: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class PartitionObject(_Message):
    partition_id: str = ""
    tenant_id: str = ""
    # Empty for a root partition of the tenant
    parent_id: str = ""
    name: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class PartitionRoleObject(_Message):
    partition_role_id: str = ""
    partition_id: str = ""
    name: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class AccessObject(_Message):
    access_id: str = ""
    partition_id: str = ""
    profile_id: str = ""


class AccessRoleObject(_Message):
    access_role_id: str = ""
    access_id: str = ""
    partition_role_id: str = ""


class PageObject(_Message):
    page_id: str = ""
    partition_id: str = ""
    name: str = ""
    html: str = ""


class RemoveResponse(_Message):
    succeeded: bool = False


# Tenants

class TenantRequest(_Message):
    name: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class SearchRequest(_Message):
    query: str = ""
    page: int = 0
    count: int = 0


# Partitions

class PartitionCreateRequest(_Message):
    tenant_id: str = ""
    parent_id: str = ""
    name: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class PartitionGetRequest(_Message):
    partition_id: str = ""


class PartitionUpdateRequest(_Message):
    partition_id: str = ""
    name: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


# Partition roles

class PartitionRoleCreateRequest(_Message):
    partition_id: str = ""
    name: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class PartitionRoleRemoveRequest(_Message):
    partition_role_id: str = ""


class PartitionRoleListRequest(_Message):
    partition_id: str = ""


class PartitionRoleListResponse(_Message):
    role: list[PartitionRoleObject] = Field(default_factory=list)


# Pages

class PageCreateRequest(_Message):
    partition_id: str = ""
    name: str = ""
    html: str = ""


class PageGetRequest(_Message):
    partition_id: str = ""
    name: str = ""


# Access

class AccessCreateRequest(_Message):
    partition_id: str = ""
    profile_id: str = ""


class AccessGetRequest(_Message):
    """Lookup by ``access_id`` or by ``partition_id`` + ``profile_id``."""

    access_id: str = ""
    partition_id: str = ""
    profile_id: str = ""


class AccessRemoveRequest(_Message):
    access_id: str = ""


# Access roles

class AccessRoleCreateRequest(_Message):
    access_id: str = ""
    partition_role_id: str = ""


class AccessRoleRemoveRequest(_Message):
    access_role_id: str = ""


class AccessRoleListRequest(_Message):
    access_id: str = ""


class AccessRoleListResponse(_Message):
    role: list[AccessRoleObject] = Field(default_factory=list)
