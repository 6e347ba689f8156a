"""
VPC resource documents.
"""

from typing import Iterable, List, Optional

from pydantic import Field, field_validator

from ...resource import FrozenModel, ResourceModel, StringSet, TagMap, sort_models


class Vpc(ResourceModel):
    cidr_block: str
    instance_tenancy: str = "default"
    enable_dns_support: bool = True
    enable_dns_hostnames: bool = False
    tags: TagMap = Field(default_factory=dict)


class Subnet(ResourceModel):
    cidr_block: str
    availability_zone: str
    map_public_ip_on_launch: bool = False
    tags: TagMap = Field(default_factory=dict)


class InternetGateway(ResourceModel):
    # Name of a VPC in this repository, or a physical vpc-... id
    vpc_id: Optional[str] = None
    tags: TagMap = Field(default_factory=dict)


class Route(FrozenModel):
    destination_cidr_block: Optional[str] = None
    destination_ipv6_cidr_block: Optional[str] = None
    gateway_id: Optional[str] = None
    instance_id: Optional[str] = None
    nat_gateway_id: Optional[str] = None


class RouteTable(ResourceModel):
    routes: List[Route] = Field(default_factory=list)
    # Subnet names within the same VPC, or physical subnet-... ids
    associations: StringSet = Field(default_factory=set)
    tags: TagMap = Field(default_factory=dict)

    @field_validator("routes")
    @classmethod
    def _sort_routes(cls, value: List[Route]) -> List[Route]:
        return sort_models(value)


class SecurityGroupRule(FrozenModel):
    protocol: str
    from_port: Optional[int] = None
    to_port: Optional[int] = None
    cidr_blocks: List[str] = Field(default_factory=list)
    security_group_ids: List[str] = Field(default_factory=list)

    @field_validator("cidr_blocks", "security_group_ids")
    @classmethod
    def _sort_values(cls, value: List[str]) -> List[str]:
        return sorted(value)


def flatten_rules(rules: Iterable[SecurityGroupRule]) -> List[SecurityGroupRule]:
    """
    Split rules into one rule per source, deduplicated and sorted.

    EC2 merges sources that share a protocol and port range into a single
    permission, so rules are compared one source at a time.
    """
    atoms: List[SecurityGroupRule] = []
    for rule in rules:
        ports = {"protocol": rule.protocol, "from_port": rule.from_port, "to_port": rule.to_port}
        split = [SecurityGroupRule(cidr_blocks=[cidr], **ports) for cidr in rule.cidr_blocks]
        split.extend(SecurityGroupRule(security_group_ids=[group_id], **ports) for group_id in rule.security_group_ids)
        for atom in split or [rule]:
            if atom not in atoms:
                atoms.append(atom)
    return sort_models(atoms)


class SecurityGroup(ResourceModel):
    description: str
    ingress_rules: List[SecurityGroupRule] = Field(default_factory=list)
    egress_rules: List[SecurityGroupRule] = Field(default_factory=list)
    tags: TagMap = Field(default_factory=dict)

    @field_validator("ingress_rules", "egress_rules")
    @classmethod
    def _flatten_rules(cls, value: List[SecurityGroupRule]) -> List[SecurityGroupRule]:
        return flatten_rules(value)
