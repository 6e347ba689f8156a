"""
IAM address variants. IAM is a global service, so addresses carry no region.

    aws/iam/users/<name>.json
    aws/iam/roles/<name>.json
    aws/iam/policies/<name>.json
"""

from dataclasses import dataclass

from ...address import ResourceAddress


@dataclass(frozen=True)
class UserAddress(ResourceAddress):
    TEMPLATE = "aws/iam/users/{name}.json"

    name: str


@dataclass(frozen=True)
class RoleAddress(ResourceAddress):
    TEMPLATE = "aws/iam/roles/{name}.json"

    name: str


@dataclass(frozen=True)
class PolicyAddress(ResourceAddress):
    TEMPLATE = "aws/iam/policies/{name}.json"

    name: str


IAM_ADDRESS_TYPES = (UserAddress, RoleAddress, PolicyAddress)
