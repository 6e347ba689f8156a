"""
ECR resource documents.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from ...resource import ResourceModel, TagMap


class EncryptionConfiguration(ResourceModel):
    # AES256 or KMS
    encryption_type: str = "AES256"
    # ARN of the KMS key when encryption_type is KMS
    kms_key: Optional[str] = None


class ImageScanningConfiguration(ResourceModel):
    scan_on_push: bool = False


class Repository(ResourceModel):
    encryption_configuration: Optional[EncryptionConfiguration] = None
    # MUTABLE or IMMUTABLE
    image_tag_mutability: Optional[str] = None
    image_scanning_configuration: Optional[ImageScanningConfiguration] = None
    tags: TagMap = Field(default_factory=dict)


class RepositoryPolicy(ResourceModel):
    policy_document: Dict[str, Any]


class LifecyclePolicy(ResourceModel):
    lifecycle_policy_text: Dict[str, Any]


class PullThroughCacheRule(ResourceModel):
    upstream_registry_url: str
    credential_arn: Optional[str] = None
