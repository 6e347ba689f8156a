"""
VPC address variants.

    aws/vpc/<region>/vpcs/<vpc_id>.json
    aws/vpc/<region>/vpcs/<vpc_id>/subnets/<subnet_id>.json
    aws/vpc/<region>/vpcs/<vpc_id>/route_tables/<rt_id>.json
    aws/vpc/<region>/vpcs/<vpc_id>/security_groups/<sg_id>.json
    aws/vpc/<region>/internet_gateways/<igw_id>.json
"""

from dataclasses import dataclass
from typing import List

from ...address import PhyKey, ResourceAddress


@dataclass(frozen=True)
class VpcAddress(ResourceAddress):
    TEMPLATE = "aws/vpc/{region}/vpcs/{vpc_id}.json"

    region: str
    vpc_id: str

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("vpc_id", self, "vpc_id")]


@dataclass(frozen=True)
class SubnetAddress(ResourceAddress):
    TEMPLATE = "aws/vpc/{region}/vpcs/{vpc_id}/subnets/{subnet_id}.json"

    region: str
    vpc_id: str
    subnet_id: str

    @property
    def vpc(self) -> VpcAddress:
        return VpcAddress(self.region, self.vpc_id)

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("vpc_id", self.vpc, "vpc_id"), PhyKey("subnet_id", self, "subnet_id")]


@dataclass(frozen=True)
class InternetGatewayAddress(ResourceAddress):
    TEMPLATE = "aws/vpc/{region}/internet_gateways/{igw_id}.json"

    region: str
    igw_id: str

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("igw_id", self, "internet_gateway_id")]


@dataclass(frozen=True)
class RouteTableAddress(ResourceAddress):
    TEMPLATE = "aws/vpc/{region}/vpcs/{vpc_id}/route_tables/{rt_id}.json"

    region: str
    vpc_id: str
    rt_id: str

    @property
    def vpc(self) -> VpcAddress:
        return VpcAddress(self.region, self.vpc_id)

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("vpc_id", self.vpc, "vpc_id"), PhyKey("rt_id", self, "route_table_id")]


@dataclass(frozen=True)
class SecurityGroupAddress(ResourceAddress):
    TEMPLATE = "aws/vpc/{region}/vpcs/{vpc_id}/security_groups/{sg_id}.json"

    region: str
    vpc_id: str
    sg_id: str

    @property
    def vpc(self) -> VpcAddress:
        return VpcAddress(self.region, self.vpc_id)

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("vpc_id", self.vpc, "vpc_id"), PhyKey("sg_id", self, "security_group_id")]


VPC_ADDRESS_TYPES = (VpcAddress, SubnetAddress, InternetGatewayAddress, RouteTableAddress, SecurityGroupAddress)
