"""
Tests for resource addresses and path templates.
"""

import unittest

from src.reconciler.address import normalize_path, parse_address, path_matches_filter
from src.reconciler.connectors.apigatewayv2.addr import APIGATEWAYV2_ADDRESS_TYPES, ApiAddress, RouteAddress
from src.reconciler.connectors.ecr.addr import ECR_ADDRESS_TYPES, LifecyclePolicyAddress, RepositoryAddress
from src.reconciler.connectors.s3.addr import BucketAddress
from src.reconciler.connectors.vpc.addr import VPC_ADDRESS_TYPES, SubnetAddress, VpcAddress
from src.reconciler.errors import AddressParseError


class TestParseAddress(unittest.TestCase):
    """Test conversion between repository paths and address variants."""

    def test_parse_nested_address(self) -> None:
        """A nested path parses into its variant with every field captured."""
        addr = parse_address("aws/vpc/us-east-1/vpcs/main/subnets/public.json", VPC_ADDRESS_TYPES)
        self.assertEqual(addr, SubnetAddress("us-east-1", "main", "public"))

    def test_to_path_inverts_parse(self) -> None:
        """Rendering a parsed address gives back the original path."""
        path = "aws/apigatewayv2/eu-west-1/apis/web/routes/root.json"
        addr = parse_address(path, APIGATEWAYV2_ADDRESS_TYPES)
        self.assertIsInstance(addr, RouteAddress)
        self.assertEqual(addr.to_path(), path)

    def test_sibling_documents_parse_to_distinct_variants(self) -> None:
        """A repository document and its nested policy document share a directory name."""
        repository = parse_address("aws/ecr/us-east-1/repositories/app.json", ECR_ADDRESS_TYPES)
        lifecycle = parse_address("aws/ecr/us-east-1/repositories/app/lifecycle_policy.json", ECR_ADDRESS_TYPES)
        self.assertEqual(repository, RepositoryAddress("us-east-1", "app"))
        self.assertEqual(lifecycle, LifecyclePolicyAddress("us-east-1", "app"))

    def test_unknown_path_raises(self) -> None:
        """A path no variant owns is a parse error."""
        with self.assertRaises(AddressParseError) as context:
            parse_address("aws/vpc/us-east-1/things/x.json", VPC_ADDRESS_TYPES)
        self.assertIn("aws/vpc/us-east-1/things/x.json", str(context.exception))

    def test_wrong_extension_raises(self) -> None:
        """Only .json documents are addresses."""
        with self.assertRaises(AddressParseError):
            parse_address("aws/vpc/us-east-1/vpcs/main.ron", VPC_ADDRESS_TYPES)

    def test_dot_segments_are_rejected(self) -> None:
        """Relative segments never become field values."""
        with self.assertRaises(AddressParseError):
            parse_address("aws/vpc/us-east-1/vpcs/../subnets/x.json", VPC_ADDRESS_TYPES)

    def test_backslashes_are_normalised(self) -> None:
        """Windows separators parse like forward slashes."""
        self.assertEqual(normalize_path("aws\\vpc\\us-east-1\\vpcs\\main.json"), "aws/vpc/us-east-1/vpcs/main.json")
        addr = parse_address("aws\\vpc\\us-east-1\\vpcs\\main.json", VPC_ADDRESS_TYPES)
        self.assertEqual(addr, VpcAddress("us-east-1", "main"))


class TestPhyKeys(unittest.TestCase):
    """Test the cloud-assigned segments each address declares."""

    def test_user_named_address_has_no_phy_keys(self) -> None:
        """An address named by the user needs no recorded ids."""
        bucket = BucketAddress("us-east-1", "logs")
        self.assertEqual(bucket.phy_keys(), [])
        self.assertEqual(bucket.depth(), 0)

    def test_child_address_lists_parent_as_ancestor(self) -> None:
        """A child's ancestors include the resource it lives under."""
        subnet = SubnetAddress("us-east-1", "main", "public")
        self.assertEqual(subnet.ancestors(), [VpcAddress("us-east-1", "main")])
        self.assertEqual(subnet.depth(), 1)
        self.assertEqual([pk.key for pk in subnet.phy_keys()], ["vpc_id", "subnet_id"])

    def test_nested_policy_address_has_repository_parent(self) -> None:
        """Nesting without a cloud-assigned segment still counts as containment."""
        lifecycle = LifecyclePolicyAddress("us-east-1", "app")
        self.assertEqual(lifecycle.phy_keys(), [])
        self.assertEqual(lifecycle.ancestors(), [RepositoryAddress("us-east-1", "app")])
        self.assertEqual(lifecycle.depth(), 1)

    def test_with_values_substitutes_fields(self) -> None:
        """with_values replaces only the named fields."""
        subnet = SubnetAddress("us-east-1", "main", "public")
        phy = subnet.with_values(vpc_id="vpc-123", subnet_id="subnet-456")
        self.assertEqual(phy.to_path(), "aws/vpc/us-east-1/vpcs/vpc-123/subnets/subnet-456.json")

    def test_kind_strips_suffix(self) -> None:
        """The kind is the class name without "Address"."""
        self.assertEqual(ApiAddress("us-east-1", "web").kind, "Api")


class TestPathMatchesFilter(unittest.TestCase):
    """Test component-wise subpath filtering."""

    def test_prefix_matches(self) -> None:
        """A filter that is a prefix of the path matches."""
        self.assertTrue(path_matches_filter("aws/vpc/us-east-1/vpcs/main.json", "aws/vpc"))

    def test_filter_longer_than_path_matches(self) -> None:
        """A filter reaching below a directory still selects it."""
        self.assertTrue(path_matches_filter("aws/vpc", "aws/vpc/us-east-1"))

    def test_partial_component_does_not_match(self) -> None:
        """Filters compare whole path components."""
        self.assertFalse(path_matches_filter("aws/vpc-extra/us-east-1", "aws/vpc"))


if __name__ == "__main__":
    unittest.main()
