"""
VPC Connector Module.

Manages VPCs, subnets, internet gateways, route tables and security groups
through the EC2 API.
"""

from typing import Any, List, Optional, Tuple

from ...address import ResourceAddress
from ...connector import Connector, changed_fields, check_immutable, set_diff
from ...errors import InvalidOpError
from ...op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse, skeleton
from ...resolver import ReadOutput
from ...resource import ResourceModel
from ...tags import describe_tag_diff
from ...types import EC2Client, Outputs
from . import fetch, op_impl
from .addr import (
    VPC_ADDRESS_TYPES,
    InternetGatewayAddress,
    RouteTableAddress,
    SecurityGroupAddress,
    SubnetAddress,
    VpcAddress,
)
from .op import (
    VPC_OPS,
    AssociateRouteTable,
    AttachInternetGateway,
    AuthorizeSecurityGroupEgress,
    AuthorizeSecurityGroupIngress,
    CreateInternetGateway,
    CreateRoute,
    CreateRouteTable,
    CreateSecurityGroup,
    CreateSubnet,
    CreateVpc,
    DeleteInternetGateway,
    DeleteRoute,
    DeleteRouteTable,
    DeleteSecurityGroup,
    DeleteSubnet,
    DeleteVpc,
    DetachInternetGateway,
    DisassociateRouteTable,
    RevokeSecurityGroupEgress,
    RevokeSecurityGroupIngress,
    UpdateInternetGatewayTags,
    UpdateRouteTableTags,
    UpdateSecurityGroupTags,
    UpdateSubnetAttributes,
    UpdateSubnetTags,
    UpdateVpcAttributes,
    UpdateVpcTags,
)
from .resource import InternetGateway, Route, RouteTable, SecurityGroup, SecurityGroupRule, Subnet, Vpc


class VpcConnector(Connector):
    NAME = "vpc"
    SERVICE = "ec2"

    ADDRESS_TYPES = VPC_ADDRESS_TYPES
    RESOURCE_TYPES = {
        VpcAddress: Vpc,
        SubnetAddress: Subnet,
        InternetGatewayAddress: InternetGateway,
        RouteTableAddress: RouteTable,
        SecurityGroupAddress: SecurityGroup,
    }
    OPS = VPC_OPS

    # Read

    def do_list(self, client: EC2Client, region: str) -> List[ResourceAddress]:
        return fetch.list_vpc_resources(client, region)

    def do_get(self, client: EC2Client, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        if isinstance(addr, VpcAddress):
            vpc = fetch.get_vpc(client, addr.vpc_id)
            return (vpc, {"vpc_id": addr.vpc_id}) if vpc else None

        if isinstance(addr, SubnetAddress):
            subnet = fetch.get_subnet(client, addr.vpc_id, addr.subnet_id)
            return (subnet, {"subnet_id": addr.subnet_id}) if subnet else None

        if isinstance(addr, InternetGatewayAddress):
            igw = fetch.get_internet_gateway(client, addr.igw_id)
            if igw is None:
                return None
            if igw.vpc_id:
                igw = igw.model_copy(update={"vpc_id": self.virt_name(VpcAddress(addr.region, igw.vpc_id), "vpc_id")})
            return igw, {"internet_gateway_id": addr.igw_id}

        if isinstance(addr, RouteTableAddress):
            table = fetch.get_route_table(client, addr.vpc_id, addr.rt_id)
            if table is None:
                return None
            table = RouteTable(
                routes=[self._virt_route(addr.region, route) for route in table.routes],
                associations={
                    self.virt_name(SubnetAddress(addr.region, addr.vpc_id, subnet_id), "subnet_id")
                    for subnet_id in table.associations
                },
                tags=table.tags,
            )
            return table, {"route_table_id": addr.rt_id}

        if isinstance(addr, SecurityGroupAddress):
            group = fetch.get_security_group(client, addr.vpc_id, addr.sg_id)
            return (group, {"security_group_id": addr.sg_id}) if group else None

        return None

    def _virt_route(self, region: str, route: Route) -> Route:
        if not route.gateway_id:
            return route
        name = self.virt_name(InternetGatewayAddress(region, route.gateway_id), "igw_id")
        return route.model_copy(update={"gateway_id": name})

    def _phy_route(self, region: str, route: Route) -> Route:
        if not route.gateway_id:
            return route
        gateway_id = self.phy_value(InternetGatewayAddress(region, route.gateway_id), "internet_gateway_id", route.gateway_id)
        return route.model_copy(update={"gateway_id": gateway_id})

    # Plan

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        if isinstance(addr, VpcAddress):
            return [CreateVpc(vpc=new).plan(f"Create new VPC {addr.vpc_id}")]

        if isinstance(addr, SubnetAddress):
            return [CreateSubnet(subnet=new).plan(f"Create new subnet {addr.subnet_id} in VPC {addr.vpc_id}")]

        if isinstance(addr, InternetGatewayAddress):
            ops = [CreateInternetGateway(internet_gateway=new).plan(f"Create new internet gateway {addr.igw_id}")]
            if new.vpc_id:
                ops.append(
                    AttachInternetGateway(vpc_id=new.vpc_id).plan(
                        f"Attach internet gateway {addr.igw_id} to VPC {new.vpc_id}"
                    )
                )
            return ops

        if isinstance(addr, RouteTableAddress):
            ops = [CreateRouteTable(route_table=new).plan(f"Create new route table {addr.rt_id} in VPC {addr.vpc_id}")]
            ops.extend(self._route_ops(addr, [], new.routes))
            ops.extend(self._association_ops(addr, set(), new.associations))
            return ops

        if isinstance(addr, SecurityGroupAddress):
            ops = [CreateSecurityGroup(security_group=new).plan(f"Create new security group {addr.sg_id} in VPC {addr.vpc_id}")]
            ops.extend(self._rule_ops(addr, [], new.ingress_rules, ingress=True))
            egress = [rule for rule in new.egress_rules if rule != op_impl.DEFAULT_EGRESS_RULE]
            ops.extend(self._rule_ops(addr, [], egress, ingress=False))
            return ops

        raise InvalidOpError(addr.to_path(), "Create")

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        if isinstance(addr, VpcAddress):
            return [DeleteVpc().plan(f"DELETE VPC {addr.vpc_id}")]
        if isinstance(addr, SubnetAddress):
            return [DeleteSubnet().plan(f"DELETE subnet {addr.subnet_id}")]
        if isinstance(addr, InternetGatewayAddress):
            return [DeleteInternetGateway().plan(f"DELETE internet gateway {addr.igw_id}")]
        if isinstance(addr, RouteTableAddress):
            return [DeleteRouteTable().plan(f"DELETE route table {addr.rt_id}")]
        if isinstance(addr, SecurityGroupAddress):
            return [DeleteSecurityGroup().plan(f"DELETE security group {addr.sg_id}")]
        raise InvalidOpError(addr.to_path(), "Delete")

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops: List[PlanResponseElement] = []

        if isinstance(addr, VpcAddress):
            check_immutable(addr, old, new, ["cidr_block", "instance_tenancy"])
            if old.tags != new.tags:
                ops.append(
                    UpdateVpcTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for VPC `{addr.vpc_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            changed = changed_fields(old, new, ["enable_dns_support", "enable_dns_hostnames"])
            if changed:
                ops.append(UpdateVpcAttributes(**changed).plan(f"Modify DNS settings for VPC `{addr.vpc_id}`"))
            return ops

        if isinstance(addr, SubnetAddress):
            check_immutable(addr, old, new, ["cidr_block", "availability_zone"])
            if old.tags != new.tags:
                ops.append(
                    UpdateSubnetTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for subnet `{addr.subnet_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            changed = changed_fields(old, new, ["map_public_ip_on_launch"])
            if changed:
                ops.append(UpdateSubnetAttributes(**changed).plan(f"Modify public IP mapping for subnet `{addr.subnet_id}`"))
            return ops

        if isinstance(addr, InternetGatewayAddress):
            if old.tags != new.tags:
                ops.append(
                    UpdateInternetGatewayTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for internet gateway `{addr.igw_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            if old.vpc_id != new.vpc_id:
                if old.vpc_id:
                    ops.append(
                        DetachInternetGateway(vpc_id=old.vpc_id).plan(
                            f"Detach internet gateway `{addr.igw_id}` from VPC `{old.vpc_id}`"
                        )
                    )
                if new.vpc_id:
                    ops.append(
                        AttachInternetGateway(vpc_id=new.vpc_id).plan(
                            f"Attach internet gateway `{addr.igw_id}` to VPC `{new.vpc_id}`"
                        )
                    )
            return ops

        if isinstance(addr, RouteTableAddress):
            if old.tags != new.tags:
                ops.append(
                    UpdateRouteTableTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for route table `{addr.rt_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            ops.extend(self._route_ops(addr, old.routes, new.routes))
            ops.extend(self._association_ops(addr, old.associations, new.associations))
            return ops

        if isinstance(addr, SecurityGroupAddress):
            check_immutable(addr, old, new, ["description"])
            if old.tags != new.tags:
                ops.append(
                    UpdateSecurityGroupTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for security group `{addr.sg_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            ops.extend(self._rule_ops(addr, old.ingress_rules, new.ingress_rules, ingress=True))
            ops.extend(self._rule_ops(addr, old.egress_rules, new.egress_rules, ingress=False))
            return ops

        raise InvalidOpError(addr.to_path(), "Update")

    def _route_ops(self, addr: RouteTableAddress, old: List[Route], new: List[Route]) -> List[PlanResponseElement]:
        added, removed = set_diff(old, new)
        ops = [DeleteRoute(route=route).plan(f"Delete route from route table `{addr.rt_id}`") for route in removed]
        ops.extend(CreateRoute(route=route).plan(f"Create route in route table `{addr.rt_id}`") for route in added)
        return ops

    def _association_ops(self, addr: RouteTableAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops = [
            DisassociateRouteTable(subnet_id=subnet).plan(f"Disassociate route table `{addr.rt_id}` from subnet `{subnet}`")
            for subnet in sorted(set(old) - set(new))
        ]
        ops.extend(
            AssociateRouteTable(subnet_id=subnet).plan(f"Associate route table `{addr.rt_id}` with subnet `{subnet}`")
            for subnet in sorted(set(new) - set(old))
        )
        return ops

    def _rule_ops(
        self, addr: SecurityGroupAddress, old: List[SecurityGroupRule], new: List[SecurityGroupRule], ingress: bool
    ) -> List[PlanResponseElement]:
        added, removed = set_diff(old, new)
        direction = "ingress" if ingress else "egress"
        revoke = RevokeSecurityGroupIngress if ingress else RevokeSecurityGroupEgress
        authorize = AuthorizeSecurityGroupIngress if ingress else AuthorizeSecurityGroupEgress
        ops = [revoke(rule=rule).plan(f"Remove {direction} rule from security group `{addr.sg_id}`") for rule in removed]
        ops.extend(authorize(rule=rule).plan(f"Add {direction} rule to security group `{addr.sg_id}`") for rule in added)
        return ops

    # Execute

    def op_dependencies(self, addr: ResourceAddress, op: ConnectorOp) -> List[ReadOutput]:
        if isinstance(op, AttachInternetGateway) and isinstance(addr, InternetGatewayAddress):
            return self.require_output(VpcAddress(addr.region, op.vpc_id), "vpc_id")
        if isinstance(op, AssociateRouteTable) and isinstance(addr, RouteTableAddress):
            return self.require_output(SubnetAddress(addr.region, addr.vpc_id, op.subnet_id), "subnet_id")
        if isinstance(op, CreateRoute) and isinstance(addr, RouteTableAddress) and op.route.gateway_id:
            return self.require_output(InternetGatewayAddress(addr.region, op.route.gateway_id), "internet_gateway_id")
        return []

    def do_op_exec(self, client: EC2Client, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp) -> OpExecResponse:
        if isinstance(addr, VpcAddress):
            vpc_id = phy.vpc_id
            if isinstance(op, CreateVpc):
                return op_impl.create_vpc(client, op.vpc)
            if isinstance(op, UpdateVpcTags):
                return op_impl.update_vpc_tags(client, vpc_id, op.old, op.new)
            if isinstance(op, UpdateVpcAttributes):
                return op_impl.update_vpc_attributes(client, vpc_id, op.enable_dns_support, op.enable_dns_hostnames)
            if isinstance(op, DeleteVpc):
                return op_impl.delete_vpc(client, vpc_id)

        elif isinstance(addr, SubnetAddress):
            subnet_id = phy.subnet_id
            if isinstance(op, CreateSubnet):
                return op_impl.create_subnet(client, phy.vpc_id, op.subnet)
            if isinstance(op, UpdateSubnetTags):
                return op_impl.update_subnet_tags(client, subnet_id, op.old, op.new)
            if isinstance(op, UpdateSubnetAttributes):
                return op_impl.update_subnet_attributes(client, subnet_id, op.map_public_ip_on_launch)
            if isinstance(op, DeleteSubnet):
                return op_impl.delete_subnet(client, subnet_id)

        elif isinstance(addr, InternetGatewayAddress):
            igw_id = phy.igw_id
            if isinstance(op, CreateInternetGateway):
                return op_impl.create_internet_gateway(client, op.internet_gateway)
            if isinstance(op, (AttachInternetGateway, DetachInternetGateway)):
                vpc_id = self.phy_value(VpcAddress(addr.region, op.vpc_id), "vpc_id", op.vpc_id)
                if isinstance(op, AttachInternetGateway):
                    return op_impl.attach_internet_gateway(client, igw_id, vpc_id)
                return op_impl.detach_internet_gateway(client, igw_id, vpc_id)
            if isinstance(op, UpdateInternetGatewayTags):
                return op_impl.update_internet_gateway_tags(client, igw_id, op.old, op.new)
            if isinstance(op, DeleteInternetGateway):
                return op_impl.delete_internet_gateway(client, igw_id)

        elif isinstance(addr, RouteTableAddress):
            rt_id = phy.rt_id
            if isinstance(op, CreateRouteTable):
                return op_impl.create_route_table(client, phy.vpc_id, op.route_table)
            if isinstance(op, CreateRoute):
                return op_impl.create_route(client, rt_id, self._phy_route(addr.region, op.route))
            if isinstance(op, DeleteRoute):
                return op_impl.delete_route(client, rt_id, self._phy_route(addr.region, op.route))
            if isinstance(op, (AssociateRouteTable, DisassociateRouteTable)):
                subnet = SubnetAddress(addr.region, addr.vpc_id, op.subnet_id)
                subnet_id = self.phy_value(subnet, "subnet_id", op.subnet_id)
                if isinstance(op, AssociateRouteTable):
                    return op_impl.associate_route_table(client, rt_id, subnet_id)
                return op_impl.disassociate_route_table(client, rt_id, subnet_id)
            if isinstance(op, UpdateRouteTableTags):
                return op_impl.update_route_table_tags(client, rt_id, op.old, op.new)
            if isinstance(op, DeleteRouteTable):
                return op_impl.delete_route_table(client, rt_id)

        elif isinstance(addr, SecurityGroupAddress):
            sg_id = phy.sg_id
            if isinstance(op, CreateSecurityGroup):
                return op_impl.create_security_group(client, phy.vpc_id, addr.sg_id, op.security_group)
            if isinstance(op, AuthorizeSecurityGroupIngress):
                return op_impl.authorize_security_group_ingress(client, sg_id, op.rule)
            if isinstance(op, AuthorizeSecurityGroupEgress):
                return op_impl.authorize_security_group_egress(client, sg_id, op.rule)
            if isinstance(op, RevokeSecurityGroupIngress):
                return op_impl.revoke_security_group_ingress(client, sg_id, op.rule)
            if isinstance(op, RevokeSecurityGroupEgress):
                return op_impl.revoke_security_group_egress(client, sg_id, op.rule)
            if isinstance(op, UpdateSecurityGroupTags):
                return op_impl.update_security_group_tags(client, sg_id, op.old, op.new)
            if isinstance(op, DeleteSecurityGroup):
                return op_impl.delete_security_group(client, sg_id)

        raise InvalidOpError(addr.to_path(), op.tag())

    def get_skeletons(self) -> List[SkeletonResponse]:
        return [
            skeleton(
                VpcAddress("[region]", "[vpc_id]"),
                Vpc(cidr_block="[cidr_block]", enable_dns_support=True, enable_dns_hostnames=False),
            ),
            skeleton(
                SubnetAddress("[region]", "[vpc_id]", "[subnet_id]"),
                Subnet(cidr_block="[cidr_block]", availability_zone="[availability_zone]"),
            ),
            skeleton(
                InternetGatewayAddress("[region]", "[igw_id]"),
                InternetGateway(vpc_id="[vpc_id]"),
            ),
            skeleton(
                RouteTableAddress("[region]", "[vpc_id]", "[route_table_id]"),
                RouteTable(
                    routes=[Route(destination_cidr_block="0.0.0.0/0", gateway_id="[igw_id]")],
                    associations={"[subnet_id]"},
                ),
            ),
            skeleton(
                SecurityGroupAddress("[region]", "[vpc_id]", "[security_group_id]"),
                SecurityGroup(
                    description="[description]",
                    ingress_rules=[SecurityGroupRule(protocol="tcp", from_port=443, to_port=443, cidr_blocks=["0.0.0.0/0"])],
                    egress_rules=[op_impl.DEFAULT_EGRESS_RULE],
                ),
            ),
        ]
