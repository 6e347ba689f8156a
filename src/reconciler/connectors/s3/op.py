"""
S3 operations.
"""

from typing import Any, Dict, Optional

from ...op import ConnectorOp, op_registry
from ...resource import TagMap
from .resource import Acl, Bucket, PublicAccessBlock


class CreateBucket(ConnectorOp):
    bucket: Bucket


class UpdateBucketPolicy(ConnectorOp):
    old: Optional[Dict[str, Any]] = None
    new: Optional[Dict[str, Any]] = None


class UpdateBucketPublicAccessBlock(ConnectorOp):
    public_access_block: Optional[PublicAccessBlock] = None


class UpdateBucketAcl(ConnectorOp):
    old: Optional[Acl] = None
    new: Acl


class UpdateBucketTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteBucket(ConnectorOp):
    pass


S3_OPS = op_registry(
    CreateBucket,
    UpdateBucketPolicy,
    UpdateBucketPublicAccessBlock,
    UpdateBucketAcl,
    UpdateBucketTags,
    DeleteBucket,
)
