"""
VPC operations.
"""

from typing import Optional

from ...op import ConnectorOp, op_registry
from ...resource import TagMap
from .resource import InternetGateway, Route, RouteTable, SecurityGroup, SecurityGroupRule, Subnet, Vpc


class CreateVpc(ConnectorOp):
    vpc: Vpc


class UpdateVpcTags(ConnectorOp):
    old: TagMap
    new: TagMap


class UpdateVpcAttributes(ConnectorOp):
    enable_dns_support: Optional[bool] = None
    enable_dns_hostnames: Optional[bool] = None


class DeleteVpc(ConnectorOp):
    pass


class CreateSubnet(ConnectorOp):
    subnet: Subnet


class UpdateSubnetTags(ConnectorOp):
    old: TagMap
    new: TagMap


class UpdateSubnetAttributes(ConnectorOp):
    map_public_ip_on_launch: Optional[bool] = None


class DeleteSubnet(ConnectorOp):
    pass


class CreateInternetGateway(ConnectorOp):
    internet_gateway: InternetGateway


class AttachInternetGateway(ConnectorOp):
    vpc_id: str


class DetachInternetGateway(ConnectorOp):
    vpc_id: str


class UpdateInternetGatewayTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteInternetGateway(ConnectorOp):
    pass


class CreateRouteTable(ConnectorOp):
    route_table: RouteTable


class CreateRoute(ConnectorOp):
    route: Route


class DeleteRoute(ConnectorOp):
    route: Route


class AssociateRouteTable(ConnectorOp):
    subnet_id: str


class DisassociateRouteTable(ConnectorOp):
    subnet_id: str


class UpdateRouteTableTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteRouteTable(ConnectorOp):
    pass


class CreateSecurityGroup(ConnectorOp):
    security_group: SecurityGroup


class AuthorizeSecurityGroupIngress(ConnectorOp):
    rule: SecurityGroupRule


class AuthorizeSecurityGroupEgress(ConnectorOp):
    rule: SecurityGroupRule


class RevokeSecurityGroupIngress(ConnectorOp):
    rule: SecurityGroupRule


class RevokeSecurityGroupEgress(ConnectorOp):
    rule: SecurityGroupRule


class UpdateSecurityGroupTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteSecurityGroup(ConnectorOp):
    pass


VPC_OPS = op_registry(
    CreateVpc,
    UpdateVpcTags,
    UpdateVpcAttributes,
    DeleteVpc,
    CreateSubnet,
    UpdateSubnetTags,
    UpdateSubnetAttributes,
    DeleteSubnet,
    CreateInternetGateway,
    AttachInternetGateway,
    DetachInternetGateway,
    UpdateInternetGatewayTags,
    DeleteInternetGateway,
    CreateRouteTable,
    CreateRoute,
    DeleteRoute,
    AssociateRouteTable,
    DisassociateRouteTable,
    UpdateRouteTableTags,
    DeleteRouteTable,
    CreateSecurityGroup,
    AuthorizeSecurityGroupIngress,
    AuthorizeSecurityGroupEgress,
    RevokeSecurityGroupIngress,
    RevokeSecurityGroupEgress,
    UpdateSecurityGroupTags,
    DeleteSecurityGroup,
)
