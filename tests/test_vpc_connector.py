"""
Tests for the VPC connector.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from src.reconciler.connectors.vpc.addr import InternetGatewayAddress, SecurityGroupAddress, SubnetAddress, VpcAddress
from src.reconciler.connectors.vpc.connector import VpcConnector
from src.reconciler.connectors.vpc.resource import (
    InternetGateway,
    Route,
    RouteTable,
    SecurityGroup,
    SecurityGroupRule,
    Subnet,
    Vpc,
)
from src.reconciler.errors import ImmutableFieldError
from src.reconciler.resolver import NotPresent
from tests.helpers import REGION, client_error, make_connector

VPC_PATH = "aws/vpc/us-east-1/vpcs/main.json"
SUBNET_PATH = "aws/vpc/us-east-1/vpcs/main/subnets/public.json"
RT_PATH = "aws/vpc/us-east-1/vpcs/main/route_tables/public.json"
SG_PATH = "aws/vpc/us-east-1/vpcs/main/security_groups/web.json"
IGW_PATH = "aws/vpc/us-east-1/internet_gateways/gw.json"


class TestVpcPlan(unittest.IsolatedAsyncioTestCase):
    """Test VPC plans."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.connector = make_connector(VpcConnector, Path(self.tmp.name), MagicMock())

    def tearDown(self) -> None:
        self.tmp.cleanup()

    async def test_cidr_block_is_immutable(self) -> None:
        """Changing a VPC's CIDR block is refused."""
        with self.assertRaises(ImmutableFieldError):
            await self.connector.plan(
                VPC_PATH, Vpc(cidr_block="10.0.0.0/16").to_bytes(), Vpc(cidr_block="10.1.0.0/16").to_bytes()
            )

    async def test_tag_change_is_one_operation(self) -> None:
        """Tag changes plan a single operation."""
        old = Vpc(cidr_block="10.0.0.0/16", tags={"env": "dev"})
        new = Vpc(cidr_block="10.0.0.0/16", tags={"env": "prod", "team": "infra"})

        plan = await self.connector.plan(VPC_PATH, old.to_bytes(), new.to_bytes())

        self.assertEqual([e.op_tag for e in plan], ["UpdateVpcTags"])

    async def test_dns_attributes(self) -> None:
        """Only the changed DNS attribute is sent."""
        old = Vpc(cidr_block="10.0.0.0/16")
        new = Vpc(cidr_block="10.0.0.0/16", enable_dns_hostnames=True)
        plan = await self.connector.plan(VPC_PATH, old.to_bytes(), new.to_bytes())
        self.assertEqual(plan[0].op_definition, '{"UpdateVpcAttributes":{"enable_dns_support":null,"enable_dns_hostnames":true}}')

    async def test_create_gateway_attaches_to_vpc(self) -> None:
        """A new gateway is created and attached to its VPC."""
        plan = await self.connector.plan(IGW_PATH, None, InternetGateway(vpc_id="main").to_bytes())
        self.assertEqual([e.op_tag for e in plan], ["CreateInternetGateway", "AttachInternetGateway"])

    async def test_move_gateway_detaches_first(self) -> None:
        """Moving a gateway detaches it first."""
        plan = await self.connector.plan(
            IGW_PATH, InternetGateway(vpc_id="main").to_bytes(), InternetGateway(vpc_id="other").to_bytes()
        )
        self.assertEqual([e.op_tag for e in plan], ["DetachInternetGateway", "AttachInternetGateway"])

    async def test_route_table_routes_and_associations(self) -> None:
        """Changed routes and associations are removed and added."""
        old = RouteTable(routes=[Route(destination_cidr_block="0.0.0.0/0", gateway_id="gw")], associations={"a"})
        new = RouteTable(routes=[Route(destination_cidr_block="10.8.0.0/16", gateway_id="gw")], associations={"b"})

        plan = await self.connector.plan(RT_PATH, old.to_bytes(), new.to_bytes())

        self.assertEqual(
            [e.op_tag for e in plan],
            ["DeleteRoute", "CreateRoute", "DisassociateRouteTable", "AssociateRouteTable"],
        )

    async def test_new_security_group_skips_default_egress(self) -> None:
        """The default egress rule is not authorized again."""
        rule = SecurityGroupRule(protocol="tcp", from_port=443, to_port=443, cidr_blocks=["0.0.0.0/0"])
        group = SecurityGroup(
            description="web",
            ingress_rules=[rule],
            egress_rules=[SecurityGroupRule(protocol="-1", cidr_blocks=["0.0.0.0/0"])],
        )

        plan = await self.connector.plan(SG_PATH, None, group.to_bytes())

        self.assertEqual([e.op_tag for e in plan], ["CreateSecurityGroup", "AuthorizeSecurityGroupIngress"])

    async def test_rule_order_is_not_a_change(self) -> None:
        """Rule order does not matter."""
        a = SecurityGroupRule(protocol="tcp", from_port=80, to_port=80, cidr_blocks=["0.0.0.0/0"])
        b = SecurityGroupRule(protocol="tcp", from_port=443, to_port=443, cidr_blocks=["0.0.0.0/0"])
        old = SecurityGroup(description="web", ingress_rules=[a, b]).to_bytes()
        new = SecurityGroup(description="web", ingress_rules=[b, a]).to_bytes()
        self.assertTrue(self.connector.eq(SG_PATH, old, new))

    async def test_adding_one_cidr_authorizes_only_that_cidr(self) -> None:
        """Extending a rule with another source leaves the existing source alone."""
        old = SecurityGroup(
            description="web",
            ingress_rules=[SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, cidr_blocks=["10.0.0.0/8"])],
        )
        new = SecurityGroup(
            description="web",
            ingress_rules=[
                SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, cidr_blocks=["10.0.0.0/8", "192.168.0.0/16"])
            ],
        )

        plan = await self.connector.plan(SG_PATH, old.to_bytes(), new.to_bytes())

        self.assertEqual([e.op_tag for e in plan], ["AuthorizeSecurityGroupIngress"])
        self.assertIn("192.168.0.0/16", plan[0].op_definition)
        self.assertNotIn("10.0.0.0/8", plan[0].op_definition)

    def test_rules_are_split_per_source(self) -> None:
        """A rule listing several sources is stored as one rule per source."""
        group = SecurityGroup(
            description="web",
            ingress_rules=[
                SecurityGroupRule(
                    protocol="tcp", from_port=22, to_port=22, cidr_blocks=["10.0.0.0/8"], security_group_ids=["sg-1"]
                ),
                SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, cidr_blocks=["10.0.0.0/8"]),
            ],
        )
        self.assertEqual(
            group.ingress_rules,
            [
                SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, cidr_blocks=["10.0.0.0/8"]),
                SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, security_group_ids=["sg-1"]),
            ],
        )


class TestVpcResolution(unittest.IsolatedAsyncioTestCase):
    """Test behaviour around resources that were never created."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.client = MagicMock()
        self.connector = make_connector(VpcConnector, Path(self.tmp.name), self.client)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    async def test_subnet_of_never_created_vpc(self) -> None:
        """A subnet whose VPC has no document does not exist."""
        self.assertEqual(await self.connector.plan(SUBNET_PATH, None, None), [])
        self.assertEqual(self.connector.addr_virt_to_phy(SUBNET_PATH), NotPresent())
        self.assertEqual(self.client.method_calls, [])

    async def test_get_gateway_maps_vpc_to_repository_name(self) -> None:
        """Fetched gateways name their VPC by repository path."""
        self.connector.store.put(VpcAddress(REGION, "main"), {"vpc_id": "vpc-0a1b"})
        self.client.describe_internet_gateways.return_value = {
            "InternetGateways": [{"InternetGatewayId": "igw-1", "Attachments": [{"VpcId": "vpc-0a1b", "State": "available"}]}]
        }

        response = await self.connector.get(InternetGatewayAddress(REGION, "igw-1").to_path())

        self.assertEqual(InternetGateway.from_bytes(response.resource_definition).vpc_id, "main")
        self.assertEqual(response.outputs, {"internet_gateway_id": "igw-1"})

    async def test_merged_permission_matches_separate_rules(self) -> None:
        """A live permission listing two ranges equals a document spelling them as two rules."""
        self.client.describe_security_groups.return_value = {
            "SecurityGroups": [
                {
                    "GroupId": "sg-1",
                    "Description": "web",
                    "IpPermissions": [
                        {
                            "IpProtocol": "tcp",
                            "FromPort": 22,
                            "ToPort": 22,
                            "IpRanges": [{"CidrIp": "192.168.0.0/16"}, {"CidrIp": "10.0.0.0/8"}],
                        }
                    ],
                    "IpPermissionsEgress": [],
                }
            ]
        }
        desired = SecurityGroup(
            description="web",
            ingress_rules=[
                SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, cidr_blocks=["10.0.0.0/8"]),
                SecurityGroupRule(protocol="tcp", from_port=22, to_port=22, cidr_blocks=["192.168.0.0/16"]),
            ],
        ).to_bytes()

        response = await self.connector.get(SecurityGroupAddress(REGION, "vpc-0a1b", "sg-1").to_path())

        self.assertTrue(self.connector.eq(SG_PATH, response.resource_definition, desired))
        self.assertEqual(await self.connector.plan(SG_PATH, response.resource_definition, desired), [])

    async def test_get_missing_subnet(self) -> None:
        """A missing subnet reads as absent."""
        self.client.describe_subnets.side_effect = client_error("InvalidSubnetID.NotFound", "DescribeSubnets")
        self.assertIsNone(await self.connector.get(SubnetAddress(REGION, "vpc-0a1b", "subnet-9f8e").to_path()))

    async def test_create_subnet_uses_parent_id(self) -> None:
        """A subnet is created in its VPC's recorded id."""
        self.connector.store.put(VpcAddress(REGION, "main"), {"vpc_id": "vpc-0a1b"})
        self.client.create_subnet.return_value = {"Subnet": {"SubnetId": "subnet-9f8e"}}
        plan = await self.connector.plan(
            SUBNET_PATH, None, Subnet(cidr_block="10.0.1.0/24", availability_zone="us-east-1a", map_public_ip_on_launch=True).to_bytes()
        )

        response = await self.connector.op_exec(SUBNET_PATH, plan[0].op_definition)

        self.assertEqual(response.outputs, {"subnet_id": "subnet-9f8e"})
        self.client.modify_subnet_attribute.assert_called_once_with(SubnetId="subnet-9f8e", MapPublicIpOnLaunch={"Value": True})


if __name__ == "__main__":
    unittest.main()
