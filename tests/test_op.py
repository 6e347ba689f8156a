"""
Tests for operation serialization and parsing.
"""

import unittest

from src.reconciler.connectors.apigatewayv2.op import APIGATEWAYV2_OPS, UpdateStage
from src.reconciler.connectors.ecr.op import ECR_OPS, CreatePullThroughCacheRule, DeleteRepository
from src.reconciler.connectors.vpc.op import VPC_OPS, CreateVpc, DeleteVpc, UpdateVpcTags
from src.reconciler.connectors.vpc.resource import Vpc
from src.reconciler.errors import InvalidOpError
from src.reconciler.op import describe_plan, op_registry, op_tag, parse_op


class TestConnectorOp(unittest.TestCase):
    """Test the compact string form of operations."""

    def test_to_string_is_tagged_and_compact(self) -> None:
        """Operations serialize as compact tagged JSON."""
        op = UpdateVpcTags(old={"env": "dev"}, new={"env": "prod"})
        self.assertEqual(op.to_string(), '{"UpdateVpcTags":{"old":{"env":"dev"},"new":{"env":"prod"}}}')

    def test_parse_restores_operation(self) -> None:
        """Parsing a serialized operation restores it."""
        op = CreateVpc(vpc=Vpc(cidr_block="10.0.0.0/16"))
        self.assertEqual(parse_op(op.to_string(), VPC_OPS), op)

    def test_op_tag_reads_variant_without_validating(self) -> None:
        """op_tag reads the tag of an invalid body."""
        self.assertEqual(op_tag('{"DeleteVpc":{"unexpected":1}}'), "DeleteVpc")

    def test_unknown_tag_is_invalid(self) -> None:
        """An unregistered tag is an invalid operation."""
        with self.assertRaises(InvalidOpError) as context:
            parse_op(DeleteRepository(force=True).to_string(), VPC_OPS, "aws/vpc/us-east-1/vpcs/main.json")
        self.assertEqual(context.exception.op, "DeleteRepository")

    def test_malformed_body_is_invalid(self) -> None:
        """A body that does not validate is an invalid operation."""
        with self.assertRaises(InvalidOpError):
            parse_op('{"CreatePullThroughCacheRule":{"credential_arn":null}}', ECR_OPS)

    def test_non_json_is_invalid(self) -> None:
        """Text that is not JSON is an invalid operation."""
        with self.assertRaises(InvalidOpError):
            op_tag("CreateVpc(...)")

    def test_is_delete(self) -> None:
        """Only Delete operations report is_delete."""
        self.assertTrue(DeleteVpc().is_delete)
        self.assertFalse(CreatePullThroughCacheRule(upstream_registry_url="public.ecr.aws").is_delete)

    def test_duplicate_registry_tag_is_rejected(self) -> None:
        """Two operations may not share a tag."""
        with self.assertRaises(ValueError):
            op_registry(DeleteVpc, DeleteVpc)


class TestFieldUpdateOp(unittest.TestCase):
    """Test updates that carry only their changed fields."""

    def test_unset_fields_are_omitted(self) -> None:
        """Only fields passed to the constructor appear in the string form."""
        self.assertEqual(UpdateStage(auto_deploy=True).to_string(), '{"UpdateStage":{"auto_deploy":true}}')

    def test_parse_keeps_explicit_null(self) -> None:
        """A field set to null survives parsing as a change."""
        op = parse_op('{"UpdateStage":{"description":null}}', APIGATEWAYV2_OPS)
        self.assertEqual(op.changes(), {"description": None})

    def test_changes_follow_declaration_order(self) -> None:
        """Changed fields are listed in declaration order."""
        op = UpdateStage(description="prod", auto_deploy=False)
        self.assertEqual(list(op.changes()), ["auto_deploy", "description"])


class TestPlanResponseElement(unittest.TestCase):
    """Test planned operations and their descriptions."""

    def test_plan_carries_message_and_tag(self) -> None:
        """Plan elements expose the tag of their operation."""
        element = DeleteVpc().plan("DELETE VPC main")
        self.assertEqual(element.op_tag, "DeleteVpc")
        self.assertEqual(element.friendly_message, "DELETE VPC main")

    def test_describe_plan(self) -> None:
        """A plan renders one line per operation."""
        plan = [CreateVpc(vpc=Vpc(cidr_block="10.0.0.0/16")).plan("Create new VPC main"), DeleteVpc().plan("DELETE VPC old")]
        self.assertEqual(describe_plan(plan), "CreateVpc: Create new VPC main\nDeleteVpc: DELETE VPC old")


if __name__ == "__main__":
    unittest.main()
