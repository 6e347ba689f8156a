"""
Tests for resource documents: serialization, equality and diagnostics.
"""

import json
import unittest

from src.reconciler.connectors.iam.resource import User
from src.reconciler.connectors.vpc.resource import RouteTable, SecurityGroup, SecurityGroupRule, Vpc
from src.reconciler.errors import ResourceSyntaxError
from src.reconciler.resource import check_eq, check_syntax, parse_document


class TestResourceDocuments(unittest.TestCase):
    """Test the tagged JSON document format."""

    def test_to_bytes_is_tagged_with_struct_name(self) -> None:
        """Documents are tagged with their model name."""
        vpc = Vpc(cidr_block="10.0.0.0/16", tags={"b": "2", "a": "1"})
        tree = json.loads(vpc.to_bytes())
        self.assertEqual(list(tree), ["Vpc"])
        self.assertEqual(list(tree["Vpc"]["tags"]), ["a", "b"])

    def test_parse_round_trips(self) -> None:
        """A serialized document parses back to the same model."""
        vpc = Vpc(cidr_block="10.0.0.0/16", enable_dns_hostnames=True)
        self.assertEqual(parse_document(Vpc, vpc.to_bytes()), vpc)

    def test_unknown_field_is_rejected(self) -> None:
        """Unknown fields are refused."""
        data = json.dumps({"Vpc": {"cidr_block": "10.0.0.0/16", "cidr_blok": "typo"}})
        with self.assertRaises(ResourceSyntaxError) as context:
            parse_document(Vpc, data, "aws/vpc/us-east-1/vpcs/main.json")
        self.assertIn("cidr_blok", str(context.exception))

    def test_wrong_struct_name_is_rejected(self) -> None:
        """A document tagged with another model is refused."""
        with self.assertRaises(ResourceSyntaxError) as context:
            parse_document(Vpc, json.dumps({"Subnet": {"cidr_block": "10.0.0.0/16"}}))
        self.assertIn("expected struct `Vpc`", str(context.exception))

    def test_empty_tag_value_is_preserved(self) -> None:
        """Empty tag values survive parsing."""
        vpc = parse_document(Vpc, json.dumps({"Vpc": {"cidr_block": "10.0.0.0/16", "tags": {"empty": ""}}}))
        self.assertEqual(vpc.tags, {"empty": ""})


class TestCheckEq(unittest.TestCase):
    """Test semantic equality of documents."""

    def test_formatting_differences_are_equal(self) -> None:
        """Whitespace and key order do not affect equality."""
        a = '{"Vpc": {"cidr_block": "10.0.0.0/16"}}'
        b = '{\n  "Vpc": {\n    "cidr_block": "10.0.0.0/16",\n    "instance_tenancy": "default"\n  }\n}'
        self.assertTrue(check_eq(Vpc, a, b))

    def test_set_order_is_ignored(self) -> None:
        """Set fields compare regardless of order."""
        a = json.dumps({"User": {"attached_policies": ["a", "b"]}})
        b = json.dumps({"User": {"attached_policies": ["b", "a"]}})
        self.assertTrue(check_eq(User, a, b))

    def test_rule_order_is_ignored(self) -> None:
        """Security group rules compare regardless of order."""
        http = SecurityGroupRule(protocol="tcp", from_port=80, to_port=80, cidr_blocks=["0.0.0.0/0"])
        https = SecurityGroupRule(protocol="tcp", from_port=443, to_port=443, cidr_blocks=["0.0.0.0/0"])
        a = SecurityGroup(description="web", ingress_rules=[http, https])
        b = SecurityGroup(description="web", ingress_rules=[https, http])
        self.assertEqual(a, b)

    def test_association_sets_compare_by_value(self) -> None:
        """Route table associations compare by value."""
        a = RouteTable(associations={"a", "b"})
        b = parse_document(RouteTable, json.dumps({"RouteTable": {"associations": ["b", "a", "a"]}}))
        self.assertEqual(a, b)

    def test_different_values_are_not_equal(self) -> None:
        """Documents with different values differ."""
        a = '{"Vpc": {"cidr_block": "10.0.0.0/16"}}'
        b = '{"Vpc": {"cidr_block": "10.1.0.0/16"}}'
        self.assertFalse(check_eq(Vpc, a, b))


class TestCheckSyntax(unittest.TestCase):
    """Test diagnostics for invalid documents."""

    def test_valid_document_has_no_diagnostics(self) -> None:
        """A valid document has no diagnostics."""
        self.assertIsNone(check_syntax(Vpc, Vpc(cidr_block="10.0.0.0/16").to_bytes()))

    def test_json_error_reports_line(self) -> None:
        """A JSON syntax error reports its line."""
        diagnostics = check_syntax(Vpc, '{\n  "Vpc": {\n    "cidr_block": \n}')
        self.assertIsNotNone(diagnostics)
        self.assertEqual(diagnostics.diagnostics[0].line, 4)

    def test_missing_field_reports_location(self) -> None:
        """A missing field reports where it belongs."""
        diagnostics = check_syntax(Vpc, '{"Vpc": {}}')
        self.assertIsNotNone(diagnostics)
        self.assertEqual(diagnostics.diagnostics[0].location, "cidr_block")


if __name__ == "__main__":
    unittest.main()
