"""
ECR operations.
"""

from typing import Any, Dict, Optional

from ...op import ConnectorOp, op_registry
from ...resource import TagMap
from .resource import Repository


class CreateRepository(ConnectorOp):
    repository: Repository


class UpdateRepositoryTags(ConnectorOp):
    old: TagMap
    new: TagMap


class UpdateImageTagMutability(ConnectorOp):
    image_tag_mutability: str


class UpdateImageScanningConfiguration(ConnectorOp):
    scan_on_push: bool


class DeleteRepository(ConnectorOp):
    # Delete even if the repository still holds images
    force: bool = True


class SetRepositoryPolicy(ConnectorOp):
    policy_document: Dict[str, Any]


class DeleteRepositoryPolicy(ConnectorOp):
    pass


class SetLifecyclePolicy(ConnectorOp):
    lifecycle_policy_text: Dict[str, Any]


class DeleteLifecyclePolicy(ConnectorOp):
    pass


class CreatePullThroughCacheRule(ConnectorOp):
    upstream_registry_url: str
    credential_arn: Optional[str] = None


class DeletePullThroughCacheRule(ConnectorOp):
    pass


ECR_OPS = op_registry(
    CreateRepository,
    UpdateRepositoryTags,
    UpdateImageTagMutability,
    UpdateImageScanningConfiguration,
    DeleteRepository,
    SetRepositoryPolicy,
    DeleteRepositoryPolicy,
    SetLifecyclePolicy,
    DeleteLifecyclePolicy,
    CreatePullThroughCacheRule,
    DeletePullThroughCacheRule,
)
