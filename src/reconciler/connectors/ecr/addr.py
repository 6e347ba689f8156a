"""
ECR address variants.

    aws/ecr/<region>/repositories/<name>.json
    aws/ecr/<region>/repositories/<name>/policy.json
    aws/ecr/<region>/repositories/<name>/lifecycle_policy.json
    aws/ecr/<region>/pull_through_cache_rules/<prefix>.json
"""

from dataclasses import dataclass
from typing import Optional

from ...address import ResourceAddress


@dataclass(frozen=True)
class RepositoryAddress(ResourceAddress):
    TEMPLATE = "aws/ecr/{region}/repositories/{name}.json"

    region: str
    name: str


@dataclass(frozen=True)
class RepositoryPolicyAddress(ResourceAddress):
    TEMPLATE = "aws/ecr/{region}/repositories/{name}/policy.json"

    region: str
    name: str

    def parent(self) -> Optional[ResourceAddress]:
        return RepositoryAddress(self.region, self.name)


@dataclass(frozen=True)
class LifecyclePolicyAddress(ResourceAddress):
    TEMPLATE = "aws/ecr/{region}/repositories/{name}/lifecycle_policy.json"

    region: str
    name: str

    def parent(self) -> Optional[ResourceAddress]:
        return RepositoryAddress(self.region, self.name)


@dataclass(frozen=True)
class PullThroughCacheRuleAddress(ResourceAddress):
    TEMPLATE = "aws/ecr/{region}/pull_through_cache_rules/{prefix}.json"

    region: str
    prefix: str


ECR_ADDRESS_TYPES = (RepositoryAddress, RepositoryPolicyAddress, LifecyclePolicyAddress, PullThroughCacheRuleAddress)
