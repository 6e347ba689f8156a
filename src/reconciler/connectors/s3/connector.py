"""
S3 Connector Module.
"""

from typing import Any, List, Optional, Tuple

from ...address import ResourceAddress
from ...connector import Connector
from ...errors import InvalidOpError
from ...op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse, skeleton
from ...resource import ResourceModel
from ...tags import describe_tag_diff
from ...types import Outputs, S3Client
from . import fetch, op_impl
from .addr import S3_ADDRESS_TYPES, BucketAddress
from .op import (
    S3_OPS,
    CreateBucket,
    DeleteBucket,
    UpdateBucketAcl,
    UpdateBucketPolicy,
    UpdateBucketPublicAccessBlock,
    UpdateBucketTags,
)
from .resource import Bucket, PublicAccessBlock


class S3Connector(Connector):
    NAME = "s3"
    SERVICE = "s3"

    ADDRESS_TYPES = S3_ADDRESS_TYPES
    RESOURCE_TYPES = {BucketAddress: Bucket}
    OPS = S3_OPS

    def do_list(self, client: S3Client, region: str) -> List[ResourceAddress]:
        return fetch.list_buckets(client, region)

    def do_get(self, client: S3Client, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        if not isinstance(addr, BucketAddress):
            return None
        bucket = fetch.get_bucket(client, addr.region, addr.name)
        if bucket is None:
            return None
        return bucket, {"bucket_arn": fetch.bucket_arn(addr.name)}

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        return [CreateBucket(bucket=new).plan(f"Create new S3 bucket {addr.name} in region {addr.region}")]

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        return [DeleteBucket().plan(f"DELETE S3 bucket {addr.name} in region {addr.region}")]

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops: List[PlanResponseElement] = []

        if old.policy != new.policy:
            message = (
                f"Remove policy for S3 bucket `{addr.name}`"
                if new.policy is None
                else f"Update policy for S3 bucket `{addr.name}`"
            )
            ops.append(UpdateBucketPolicy(old=old.policy, new=new.policy).plan(message))

        if old.public_access_block != new.public_access_block:
            ops.append(
                UpdateBucketPublicAccessBlock(public_access_block=new.public_access_block).plan(
                    f"Update public access block for S3 bucket `{addr.name}`"
                )
            )

        # An ACL cannot be removed, only replaced
        if new.acl is not None and old.acl != new.acl:
            ops.append(UpdateBucketAcl(old=old.acl, new=new.acl).plan(f"Update ACL for S3 bucket `{addr.name}`"))

        if old.tags != new.tags:
            ops.append(
                UpdateBucketTags(old=old.tags, new=new.tags).plan(
                    f"Modify tags for S3 bucket `{addr.name}`\n{describe_tag_diff(old.tags, new.tags)}"
                )
            )

        return ops

    def do_op_exec(self, client: S3Client, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp) -> OpExecResponse:
        if isinstance(addr, BucketAddress):
            if isinstance(op, CreateBucket):
                return op_impl.create_bucket(client, addr.region, addr.name, op.bucket)
            if isinstance(op, UpdateBucketPolicy):
                return op_impl.update_bucket_policy(client, addr.name, op.new)
            if isinstance(op, UpdateBucketPublicAccessBlock):
                return op_impl.update_bucket_public_access_block(client, addr.name, op.public_access_block)
            if isinstance(op, UpdateBucketAcl):
                return op_impl.update_bucket_acl(client, addr.name, op.new)
            if isinstance(op, UpdateBucketTags):
                return op_impl.update_bucket_tags(client, addr.name, op.new)
            if isinstance(op, DeleteBucket):
                return op_impl.delete_bucket(client, addr.name)
        raise InvalidOpError(addr.to_path(), op.tag())

    def get_skeletons(self) -> List[SkeletonResponse]:
        return [
            skeleton(
                BucketAddress("[region]", "[bucket_name]"),
                Bucket(
                    public_access_block=PublicAccessBlock(
                        block_public_acls=True,
                        ignore_public_acls=True,
                        block_public_policy=True,
                        restrict_public_buckets=True,
                    ),
                    tags={"Name": "[bucket_name]"},
                ),
            )
        ]
