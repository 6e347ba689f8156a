"""
VPC Resource Fetchers Module.

This module contains functions for reading VPC-related resources from EC2.
Every getter returns None when the resource does not exist.
"""

from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ....utils import is_not_found, remote_error_handler, setup_logging
from ...address import ResourceAddress
from ...tags import from_aws_tags
from ...types import EC2Client
from .addr import InternetGatewayAddress, RouteTableAddress, SecurityGroupAddress, SubnetAddress, VpcAddress
from .resource import (
    InternetGateway,
    Route,
    RouteTable,
    SecurityGroup,
    SecurityGroupRule,
    Subnet,
    Vpc,
    flatten_rules,
)

logger = setup_logging()

NOT_FOUND_CODES = (
    "InvalidVpcID.NotFound",
    "InvalidVpcID.Malformed",
    "InvalidSubnetID.NotFound",
    "InvalidSubnetID.Malformed",
    "InvalidInternetGatewayID.NotFound",
    "InvalidInternetGatewayID.Malformed",
    "InvalidRouteTableID.NotFound",
    "InvalidRouteTableID.Malformed",
    "InvalidGroup.NotFound",
    "InvalidGroupId.Malformed",
)


def _vpc_filter(vpc_id: str) -> List[Dict[str, Any]]:
    return [{"Name": "vpc-id", "Values": [vpc_id]}]


@remote_error_handler("DescribeVpcs")
def get_vpc(client: EC2Client, vpc_id: str) -> Optional[Vpc]:
    try:
        vpcs = client.describe_vpcs(VpcIds=[vpc_id]).get("Vpcs", [])
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    if not vpcs:
        return None
    vpc = vpcs[0]

    dns_support = client.describe_vpc_attribute(VpcId=vpc_id, Attribute="enableDnsSupport")
    dns_hostnames = client.describe_vpc_attribute(VpcId=vpc_id, Attribute="enableDnsHostnames")

    return Vpc(
        cidr_block=vpc["CidrBlock"],
        instance_tenancy=vpc.get("InstanceTenancy", "default"),
        enable_dns_support=dns_support.get("EnableDnsSupport", {}).get("Value", True),
        enable_dns_hostnames=dns_hostnames.get("EnableDnsHostnames", {}).get("Value", False),
        tags=from_aws_tags(vpc.get("Tags")),
    )


@remote_error_handler("DescribeSubnets")
def get_subnet(client: EC2Client, vpc_id: str, subnet_id: str) -> Optional[Subnet]:
    try:
        subnets = client.describe_subnets(SubnetIds=[subnet_id], Filters=_vpc_filter(vpc_id)).get("Subnets", [])
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    if not subnets:
        return None
    subnet = subnets[0]
    return Subnet(
        cidr_block=subnet["CidrBlock"],
        availability_zone=subnet["AvailabilityZone"],
        map_public_ip_on_launch=subnet.get("MapPublicIpOnLaunch", False),
        tags=from_aws_tags(subnet.get("Tags")),
    )


@remote_error_handler("DescribeInternetGateways")
def get_internet_gateway(client: EC2Client, igw_id: str) -> Optional[InternetGateway]:
    try:
        igws = client.describe_internet_gateways(InternetGatewayIds=[igw_id]).get("InternetGateways", [])
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    if not igws:
        return None
    igw = igws[0]
    attached = [a["VpcId"] for a in igw.get("Attachments", []) if a.get("State") in ("available", "attached")]
    return InternetGateway(
        vpc_id=attached[0] if attached else None,
        tags=from_aws_tags(igw.get("Tags")),
    )


def _route_from_aws(route: Dict[str, Any]) -> Optional[Route]:
    # The local route and routes propagated by AWS are not user-managed
    if route.get("GatewayId") == "local" or route.get("Origin") in ("CreateRouteTable", "EnableVgwRoutePropagation"):
        return None
    return Route(
        destination_cidr_block=route.get("DestinationCidrBlock"),
        destination_ipv6_cidr_block=route.get("DestinationIpv6CidrBlock"),
        gateway_id=route.get("GatewayId"),
        instance_id=route.get("InstanceId"),
        nat_gateway_id=route.get("NatGatewayId"),
    )


@remote_error_handler("DescribeRouteTables")
def get_route_table(client: EC2Client, vpc_id: str, rt_id: str) -> Optional[RouteTable]:
    try:
        tables = client.describe_route_tables(RouteTableIds=[rt_id], Filters=_vpc_filter(vpc_id)).get("RouteTables", [])
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    if not tables:
        return None
    table = tables[0]
    routes = [r for r in (_route_from_aws(route) for route in table.get("Routes", [])) if r is not None]
    associations = {a["SubnetId"] for a in table.get("Associations", []) if a.get("SubnetId")}
    return RouteTable(routes=routes, associations=associations, tags=from_aws_tags(table.get("Tags")))


def find_route_table_association(client: EC2Client, rt_id: str, subnet_id: str) -> Optional[str]:
    """Return the association id linking a route table to a subnet, if any."""
    tables = client.describe_route_tables(RouteTableIds=[rt_id]).get("RouteTables", [])
    for table in tables:
        for association in table.get("Associations", []):
            if association.get("SubnetId") == subnet_id:
                return association.get("RouteTableAssociationId")
    return None


def _rule_from_aws(permission: Dict[str, Any]) -> SecurityGroupRule:
    return SecurityGroupRule(
        protocol=permission.get("IpProtocol", "-1"),
        from_port=permission.get("FromPort"),
        to_port=permission.get("ToPort"),
        cidr_blocks=[r["CidrIp"] for r in permission.get("IpRanges", []) if "CidrIp" in r],
        security_group_ids=[p["GroupId"] for p in permission.get("UserIdGroupPairs", []) if "GroupId" in p],
    )


@remote_error_handler("DescribeSecurityGroups")
def get_security_group(client: EC2Client, vpc_id: str, sg_id: str) -> Optional[SecurityGroup]:
    try:
        groups = client.describe_security_groups(GroupIds=[sg_id], Filters=_vpc_filter(vpc_id)).get("SecurityGroups", [])
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    if not groups:
        return None
    group = groups[0]
    return SecurityGroup(
        description=group.get("Description", ""),
        ingress_rules=flatten_rules(_rule_from_aws(p) for p in group.get("IpPermissions", [])),
        egress_rules=flatten_rules(_rule_from_aws(p) for p in group.get("IpPermissionsEgress", [])),
        tags=from_aws_tags(group.get("Tags")),
    )


@remote_error_handler("ListVpcResources")
def list_vpc_resources(client: EC2Client, region: str) -> List[ResourceAddress]:
    """
    List every VPC in a region together with its subnets, route tables,
    security groups, and the region's internet gateways.

    Main route tables and default security groups are created and deleted
    with their VPC, so they are not listed.
    """
    results: List[ResourceAddress] = []
    for vpc in client.describe_vpcs().get("Vpcs", []):
        vpc_id = vpc.get("VpcId")
        if not vpc_id:
            continue
        results.append(VpcAddress(region, vpc_id))

        for subnet in client.describe_subnets(Filters=_vpc_filter(vpc_id)).get("Subnets", []):
            if subnet.get("SubnetId"):
                results.append(SubnetAddress(region, vpc_id, subnet["SubnetId"]))

        for table in client.describe_route_tables(Filters=_vpc_filter(vpc_id)).get("RouteTables", []):
            if any(a.get("Main") for a in table.get("Associations", [])):
                continue
            if table.get("RouteTableId"):
                results.append(RouteTableAddress(region, vpc_id, table["RouteTableId"]))

        for group in client.describe_security_groups(Filters=_vpc_filter(vpc_id)).get("SecurityGroups", []):
            if group.get("GroupName") == "default":
                continue
            if group.get("GroupId"):
                results.append(SecurityGroupAddress(region, vpc_id, group["GroupId"]))

    for igw in client.describe_internet_gateways().get("InternetGateways", []):
        if igw.get("InternetGatewayId"):
            results.append(InternetGatewayAddress(region, igw["InternetGatewayId"]))

    logger.debug(f"[VPC] Listed {len(results)} resource(s) in {region}")
    return results
