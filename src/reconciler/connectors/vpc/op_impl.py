"""
VPC operation implementations.

Each function performs the EC2 calls for one operation against physical ids
and returns an OpExecResponse. Creations report the new id under its output
key; deletions report the same key with None.
"""

from typing import Any, Dict, Mapping

from ....utils import partial_outputs, remote_error_handler
from ...op import OpExecResponse
from ...tags import tag_diff, to_aws_tags
from ...types import EC2Client
from .fetch import find_route_table_association
from .resource import InternetGateway, Route, RouteTable, SecurityGroup, SecurityGroupRule, Subnet, Vpc

# Egress rule every new security group is created with
DEFAULT_EGRESS_RULE = SecurityGroupRule(protocol="-1", cidr_blocks=["0.0.0.0/0"])


def _tag_specifications(resource_type: str, tags: Mapping[str, str]) -> Dict[str, Any]:
    if not tags:
        return {}
    return {"TagSpecifications": [{"ResourceType": resource_type, "Tags": to_aws_tags(tags)}]}


def update_tags(client: EC2Client, resource_id: str, old: Mapping[str, str], new: Mapping[str, str]) -> None:
    """Apply a tag diff to any EC2 resource."""
    keys_to_remove, pairs_to_set = tag_diff(old, new)
    if keys_to_remove:
        client.delete_tags(Resources=[resource_id], Tags=[{"Key": key} for key in sorted(keys_to_remove)])
    if pairs_to_set:
        client.create_tags(Resources=[resource_id], Tags=to_aws_tags(pairs_to_set))


def _ip_permission(rule: SecurityGroupRule) -> Dict[str, Any]:
    permission: Dict[str, Any] = {"IpProtocol": rule.protocol}
    if rule.from_port is not None:
        permission["FromPort"] = rule.from_port
    if rule.to_port is not None:
        permission["ToPort"] = rule.to_port
    if rule.cidr_blocks:
        permission["IpRanges"] = [{"CidrIp": cidr} for cidr in rule.cidr_blocks]
    if rule.security_group_ids:
        permission["UserIdGroupPairs"] = [{"GroupId": group_id} for group_id in rule.security_group_ids]
    return permission


def _route_target(route: Route) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if route.destination_cidr_block:
        params["DestinationCidrBlock"] = route.destination_cidr_block
    if route.destination_ipv6_cidr_block:
        params["DestinationIpv6CidrBlock"] = route.destination_ipv6_cidr_block
    return params


# VPC


@remote_error_handler("CreateVpc")
def create_vpc(client: EC2Client, vpc: Vpc) -> OpExecResponse:
    response = client.create_vpc(
        CidrBlock=vpc.cidr_block,
        InstanceTenancy=vpc.instance_tenancy,
        **_tag_specifications("vpc", vpc.tags),
    )
    vpc_id = response["Vpc"]["VpcId"]
    outputs = {"vpc_id": vpc_id}

    with partial_outputs("CreateVpc", outputs):
        # New VPCs have DNS support on and DNS hostnames off
        if not vpc.enable_dns_support:
            client.modify_vpc_attribute(VpcId=vpc_id, EnableDnsSupport={"Value": False})
        if vpc.enable_dns_hostnames:
            client.modify_vpc_attribute(VpcId=vpc_id, EnableDnsHostnames={"Value": True})

    return OpExecResponse(dict(outputs), f"Created VPC {vpc_id}")


@remote_error_handler("UpdateVpcTags")
def update_vpc_tags(client: EC2Client, vpc_id: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    update_tags(client, vpc_id, old, new)
    return OpExecResponse({}, f"Updated tags for VPC {vpc_id}")


@remote_error_handler("UpdateVpcAttributes")
def update_vpc_attributes(client: EC2Client, vpc_id: str, enable_dns_support: Any, enable_dns_hostnames: Any) -> OpExecResponse:
    # EC2 accepts one attribute per call
    if enable_dns_support is not None:
        client.modify_vpc_attribute(VpcId=vpc_id, EnableDnsSupport={"Value": enable_dns_support})
    if enable_dns_hostnames is not None:
        client.modify_vpc_attribute(VpcId=vpc_id, EnableDnsHostnames={"Value": enable_dns_hostnames})
    return OpExecResponse({}, f"Updated attributes for VPC {vpc_id}")


@remote_error_handler("DeleteVpc")
def delete_vpc(client: EC2Client, vpc_id: str) -> OpExecResponse:
    client.delete_vpc(VpcId=vpc_id)
    return OpExecResponse({"vpc_id": None}, f"Deleted VPC {vpc_id}")


# Subnet


@remote_error_handler("CreateSubnet")
def create_subnet(client: EC2Client, vpc_id: str, subnet: Subnet) -> OpExecResponse:
    response = client.create_subnet(
        VpcId=vpc_id,
        CidrBlock=subnet.cidr_block,
        AvailabilityZone=subnet.availability_zone,
        **_tag_specifications("subnet", subnet.tags),
    )
    subnet_id = response["Subnet"]["SubnetId"]
    outputs = {"subnet_id": subnet_id}

    with partial_outputs("CreateSubnet", outputs):
        if subnet.map_public_ip_on_launch:
            client.modify_subnet_attribute(SubnetId=subnet_id, MapPublicIpOnLaunch={"Value": True})

    return OpExecResponse(dict(outputs), f"Created subnet {subnet_id} in VPC {vpc_id}")


@remote_error_handler("UpdateSubnetTags")
def update_subnet_tags(client: EC2Client, subnet_id: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    update_tags(client, subnet_id, old, new)
    return OpExecResponse({}, f"Updated tags for subnet {subnet_id}")


@remote_error_handler("UpdateSubnetAttributes")
def update_subnet_attributes(client: EC2Client, subnet_id: str, map_public_ip_on_launch: Any) -> OpExecResponse:
    if map_public_ip_on_launch is not None:
        client.modify_subnet_attribute(SubnetId=subnet_id, MapPublicIpOnLaunch={"Value": map_public_ip_on_launch})
    return OpExecResponse({}, f"Updated attributes for subnet {subnet_id}")


@remote_error_handler("DeleteSubnet")
def delete_subnet(client: EC2Client, subnet_id: str) -> OpExecResponse:
    client.delete_subnet(SubnetId=subnet_id)
    return OpExecResponse({"subnet_id": None}, f"Deleted subnet {subnet_id}")


# Internet gateway


@remote_error_handler("CreateInternetGateway")
def create_internet_gateway(client: EC2Client, igw: InternetGateway) -> OpExecResponse:
    response = client.create_internet_gateway(**_tag_specifications("internet-gateway", igw.tags))
    igw_id = response["InternetGateway"]["InternetGatewayId"]
    return OpExecResponse({"internet_gateway_id": igw_id}, f"Created internet gateway {igw_id}")


@remote_error_handler("AttachInternetGateway")
def attach_internet_gateway(client: EC2Client, igw_id: str, vpc_id: str) -> OpExecResponse:
    client.attach_internet_gateway(InternetGatewayId=igw_id, VpcId=vpc_id)
    return OpExecResponse({}, f"Attached internet gateway {igw_id} to VPC {vpc_id}")


@remote_error_handler("DetachInternetGateway")
def detach_internet_gateway(client: EC2Client, igw_id: str, vpc_id: str) -> OpExecResponse:
    client.detach_internet_gateway(InternetGatewayId=igw_id, VpcId=vpc_id)
    return OpExecResponse({}, f"Detached internet gateway {igw_id} from VPC {vpc_id}")


@remote_error_handler("UpdateInternetGatewayTags")
def update_internet_gateway_tags(
    client: EC2Client, igw_id: str, old: Mapping[str, str], new: Mapping[str, str]
) -> OpExecResponse:
    update_tags(client, igw_id, old, new)
    return OpExecResponse({}, f"Updated tags for internet gateway {igw_id}")


@remote_error_handler("DeleteInternetGateway")
def delete_internet_gateway(client: EC2Client, igw_id: str) -> OpExecResponse:
    # A gateway must be detached before it can be deleted
    igws = client.describe_internet_gateways(InternetGatewayIds=[igw_id]).get("InternetGateways", [])
    for igw in igws:
        for attachment in igw.get("Attachments", []):
            client.detach_internet_gateway(InternetGatewayId=igw_id, VpcId=attachment["VpcId"])
    client.delete_internet_gateway(InternetGatewayId=igw_id)
    return OpExecResponse({"internet_gateway_id": None}, f"Deleted internet gateway {igw_id}")


# Route table


@remote_error_handler("CreateRouteTable")
def create_route_table(client: EC2Client, vpc_id: str, route_table: RouteTable) -> OpExecResponse:
    response = client.create_route_table(
        VpcId=vpc_id, **_tag_specifications("route-table", route_table.tags)
    )
    rt_id = response["RouteTable"]["RouteTableId"]
    return OpExecResponse({"route_table_id": rt_id}, f"Created route table {rt_id} in VPC {vpc_id}")


@remote_error_handler("CreateRoute")
def create_route(client: EC2Client, rt_id: str, route: Route) -> OpExecResponse:
    params = _route_target(route)
    if route.gateway_id:
        params["GatewayId"] = route.gateway_id
    if route.instance_id:
        params["InstanceId"] = route.instance_id
    if route.nat_gateway_id:
        params["NatGatewayId"] = route.nat_gateway_id
    client.create_route(RouteTableId=rt_id, **params)
    return OpExecResponse({}, f"Created route in route table {rt_id}")


@remote_error_handler("DeleteRoute")
def delete_route(client: EC2Client, rt_id: str, route: Route) -> OpExecResponse:
    client.delete_route(RouteTableId=rt_id, **_route_target(route))
    return OpExecResponse({}, f"Deleted route from route table {rt_id}")


@remote_error_handler("AssociateRouteTable")
def associate_route_table(client: EC2Client, rt_id: str, subnet_id: str) -> OpExecResponse:
    client.associate_route_table(RouteTableId=rt_id, SubnetId=subnet_id)
    return OpExecResponse({}, f"Associated route table {rt_id} with subnet {subnet_id}")


@remote_error_handler("DisassociateRouteTable")
def disassociate_route_table(client: EC2Client, rt_id: str, subnet_id: str) -> OpExecResponse:
    association_id = find_route_table_association(client, rt_id, subnet_id)
    if association_id is None:
        return OpExecResponse({}, f"Route table {rt_id} was not associated with subnet {subnet_id}")
    client.disassociate_route_table(AssociationId=association_id)
    return OpExecResponse({}, f"Disassociated route table {rt_id} from subnet {subnet_id}")


@remote_error_handler("UpdateRouteTableTags")
def update_route_table_tags(client: EC2Client, rt_id: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    update_tags(client, rt_id, old, new)
    return OpExecResponse({}, f"Updated tags for route table {rt_id}")


@remote_error_handler("DeleteRouteTable")
def delete_route_table(client: EC2Client, rt_id: str) -> OpExecResponse:
    # Subnet associations block deletion
    for table in client.describe_route_tables(RouteTableIds=[rt_id]).get("RouteTables", []):
        for association in table.get("Associations", []):
            if association.get("SubnetId") and association.get("RouteTableAssociationId"):
                client.disassociate_route_table(AssociationId=association["RouteTableAssociationId"])
    client.delete_route_table(RouteTableId=rt_id)
    return OpExecResponse({"route_table_id": None}, f"Deleted route table {rt_id}")


# Security group


@remote_error_handler("CreateSecurityGroup")
def create_security_group(client: EC2Client, vpc_id: str, name: str, security_group: SecurityGroup) -> OpExecResponse:
    response = client.create_security_group(
        GroupName=name,
        Description=security_group.description,
        VpcId=vpc_id,
        **_tag_specifications("security-group", security_group.tags),
    )
    sg_id = response["GroupId"]
    outputs = {"security_group_id": sg_id}

    with partial_outputs("CreateSecurityGroup", outputs):
        # Rules are added by follow-up operations; drop the implicit allow-all egress unless it is wanted
        if DEFAULT_EGRESS_RULE not in security_group.egress_rules:
            client.revoke_security_group_egress(GroupId=sg_id, IpPermissions=[_ip_permission(DEFAULT_EGRESS_RULE)])

    return OpExecResponse(dict(outputs), f"Created security group {sg_id} in VPC {vpc_id}")


@remote_error_handler("AuthorizeSecurityGroupIngress")
def authorize_security_group_ingress(client: EC2Client, sg_id: str, rule: SecurityGroupRule) -> OpExecResponse:
    client.authorize_security_group_ingress(GroupId=sg_id, IpPermissions=[_ip_permission(rule)])
    return OpExecResponse({}, f"Added ingress rule to security group {sg_id}")


@remote_error_handler("AuthorizeSecurityGroupEgress")
def authorize_security_group_egress(client: EC2Client, sg_id: str, rule: SecurityGroupRule) -> OpExecResponse:
    client.authorize_security_group_egress(GroupId=sg_id, IpPermissions=[_ip_permission(rule)])
    return OpExecResponse({}, f"Added egress rule to security group {sg_id}")


@remote_error_handler("RevokeSecurityGroupIngress")
def revoke_security_group_ingress(client: EC2Client, sg_id: str, rule: SecurityGroupRule) -> OpExecResponse:
    client.revoke_security_group_ingress(GroupId=sg_id, IpPermissions=[_ip_permission(rule)])
    return OpExecResponse({}, f"Removed ingress rule from security group {sg_id}")


@remote_error_handler("RevokeSecurityGroupEgress")
def revoke_security_group_egress(client: EC2Client, sg_id: str, rule: SecurityGroupRule) -> OpExecResponse:
    client.revoke_security_group_egress(GroupId=sg_id, IpPermissions=[_ip_permission(rule)])
    return OpExecResponse({}, f"Removed egress rule from security group {sg_id}")


@remote_error_handler("UpdateSecurityGroupTags")
def update_security_group_tags(
    client: EC2Client, sg_id: str, old: Mapping[str, str], new: Mapping[str, str]
) -> OpExecResponse:
    update_tags(client, sg_id, old, new)
    return OpExecResponse({}, f"Updated tags for security group {sg_id}")


@remote_error_handler("DeleteSecurityGroup")
def delete_security_group(client: EC2Client, sg_id: str) -> OpExecResponse:
    client.delete_security_group(GroupId=sg_id)
    return OpExecResponse({"security_group_id": None}, f"Deleted security group {sg_id}")
