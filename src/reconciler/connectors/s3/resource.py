"""
S3 resource documents.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ...resource import FrozenModel, ResourceModel, TagMap, sort_models


class Grant(FrozenModel):
    grantee_id: str
    permission: str


class Acl(ResourceModel):
    owner_id: str
    grants: List[Grant] = Field(default_factory=list)

    @field_validator("grants")
    @classmethod
    def _sort_grants(cls, value: List[Grant]) -> List[Grant]:
        return sort_models(value)


class PublicAccessBlock(ResourceModel):
    block_public_acls: bool = False
    ignore_public_acls: bool = False
    block_public_policy: bool = False
    restrict_public_buckets: bool = False


class Bucket(ResourceModel):
    policy: Optional[Dict[str, Any]] = None
    public_access_block: Optional[PublicAccessBlock] = None
    # None leaves the ACL AWS assigns at creation untouched
    acl: Optional[Acl] = None
    tags: TagMap = Field(default_factory=dict)
