"""
IAM resource documents.

Attached policies are referenced by the name of a policy in this repository,
by the name of an AWS managed policy, or by full ARN.
"""

from typing import Any, Dict

from pydantic import Field

from ...resource import ResourceModel, StringSet, TagMap


class User(ResourceModel):
    attached_policies: StringSet = Field(default_factory=set)
    tags: TagMap = Field(default_factory=dict)


class Role(ResourceModel):
    """
    An IAM role is an identity with permission policies that can be assumed by
    anyone the assume-role policy document allows.
    """

    assume_role_policy_document: Dict[str, Any]
    attached_policies: StringSet = Field(default_factory=set)
    tags: TagMap = Field(default_factory=dict)


class Policy(ResourceModel):
    policy_document: Dict[str, Any]
    tags: TagMap = Field(default_factory=dict)
