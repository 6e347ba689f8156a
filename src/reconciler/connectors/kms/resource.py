"""
KMS resource documents.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from ...resource import ResourceModel, TagMap


class Key(ResourceModel):
    description: str = ""
    # ENCRYPT_DECRYPT, SIGN_VERIFY or GENERATE_VERIFY_MAC
    key_usage: str = "ENCRYPT_DECRYPT"
    key_spec: str = "SYMMETRIC_DEFAULT"
    multi_region: bool = False
    enabled: bool = True
    # Only symmetric encryption keys rotate; None leaves rotation unmanaged
    key_rotation_enabled: Optional[bool] = None
    # The "default" key policy; None leaves the policy AWS assigned
    policy: Optional[Dict[str, Any]] = None
    tags: TagMap = Field(default_factory=dict)


class Alias(ResourceModel):
    # Repository name of a key under the same region, or a physical key id
    target_key_id: str
