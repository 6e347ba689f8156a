"""
Tests for virtual/physical address resolution.
"""

import tempfile
import unittest

from src.reconciler.address import parse_address
from src.reconciler.connectors.apigatewayv2.addr import APIGATEWAYV2_ADDRESS_TYPES, ApiAddress, StageAddress
from src.reconciler.connectors.s3.addr import BucketAddress
from src.reconciler.connectors.vpc.addr import VPC_ADDRESS_TYPES, SubnetAddress, VpcAddress
from src.reconciler.outputs import OutputStore
from src.reconciler.resolver import Deferred, NotPresent, Null, Present, ReadOutput, phy_to_virt, virt_to_phy


def parse_vpc(path: str):
    return parse_address(path, VPC_ADDRESS_TYPES)


class TestVirtToPhy(unittest.TestCase):
    """Test translation of virtual addresses into physical ones."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.store = OutputStore(self.tmp.name)
        self.vpc = VpcAddress("us-east-1", "main")
        self.subnet = SubnetAddress("us-east-1", "main", "public")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_address_without_assigned_ids_is_null(self) -> None:
        """An address with no assigned ids needs no translation."""
        bucket = BucketAddress("us-east-1", "logs")
        self.assertEqual(virt_to_phy(self.store, bucket), Null("aws/s3/us-east-1/buckets/logs.json"))

    def test_own_id_missing_is_not_present(self) -> None:
        """An address whose id was never recorded does not exist."""
        self.assertEqual(virt_to_phy(self.store, self.vpc), NotPresent())

    def test_own_id_recorded_is_present(self) -> None:
        """A recorded id resolves to the physical address."""
        self.store.put(self.vpc, {"vpc_id": "vpc-0a1b"})
        self.assertEqual(virt_to_phy(self.store, self.vpc), Present("aws/vpc/us-east-1/vpcs/vpc-0a1b.json"))

    def test_pending_ancestor_defers(self) -> None:
        """An ancestor that is still planned defers translation."""
        result = virt_to_phy(self.store, self.subnet)
        self.assertEqual(result, Deferred([ReadOutput("aws/vpc/us-east-1/vpcs/main.json", "vpc_id")]))

    def test_ancestor_that_will_never_exist_is_not_present(self) -> None:
        """An ancestor that is not pending and has no id never resolves."""
        result = virt_to_phy(self.store, self.subnet, is_pending=lambda addr: False)
        self.assertEqual(result, NotPresent())

    def test_resolved_ancestor_and_own_id(self) -> None:
        """Ancestor and own ids are both substituted."""
        self.store.put(self.vpc, {"vpc_id": "vpc-0a1b"})
        self.store.put(self.subnet, {"subnet_id": "subnet-9f8e"})
        self.assertEqual(
            virt_to_phy(self.store, self.subnet),
            Present("aws/vpc/us-east-1/vpcs/vpc-0a1b/subnets/subnet-9f8e.json"),
        )

    def test_resolved_ancestor_own_id_missing(self) -> None:
        """A resolved ancestor alone does not make the child present."""
        self.store.put(self.vpc, {"vpc_id": "vpc-0a1b"})
        self.assertEqual(virt_to_phy(self.store, self.subnet), NotPresent())

    def test_only_ancestor_ids_needed(self) -> None:
        """A child with a user-given name needs only its ancestor ids."""
        api = ApiAddress("us-east-1", "public")
        stage = StageAddress("us-east-1", "public", "prod")
        self.store.put(api, {"api_id": "a1b2c3"})
        self.assertEqual(
            virt_to_phy(self.store, stage),
            Present("aws/apigatewayv2/us-east-1/apis/a1b2c3/stages/prod.json"),
        )


class TestPhyToVirt(unittest.TestCase):
    """Test recovery of virtual addresses from physical ones."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.store = OutputStore(self.tmp.name)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_round_trip_through_store(self) -> None:
        """A physical address maps back to the document that recorded it."""
        vpc = VpcAddress("us-east-1", "main")
        subnet = SubnetAddress("us-east-1", "main", "public")
        self.store.put(vpc, {"vpc_id": "vpc-0a1b"})
        self.store.put(subnet, {"subnet_id": "subnet-9f8e"})

        phy = SubnetAddress("us-east-1", "vpc-0a1b", "subnet-9f8e")

        self.assertEqual(phy_to_virt(self.store, phy, parse_vpc), subnet)
        self.assertEqual(phy_to_virt(self.store, VpcAddress("us-east-1", "vpc-0a1b"), parse_vpc), vpc)

    def test_unknown_id_is_unmanaged(self) -> None:
        """An id no sidecar records has no repository path."""
        self.assertIsNone(phy_to_virt(self.store, VpcAddress("us-east-1", "vpc-ffff"), parse_vpc))

    def test_same_id_in_other_region_does_not_match(self) -> None:
        """Recorded ids only match within their region."""
        self.store.put(VpcAddress("us-west-2", "main"), {"vpc_id": "vpc-0a1b"})
        self.assertIsNone(phy_to_virt(self.store, VpcAddress("us-east-1", "vpc-0a1b"), parse_vpc))

    def test_address_without_assigned_ids_is_itself(self) -> None:
        """An address with no assigned ids maps to itself."""
        bucket = BucketAddress("us-east-1", "logs")
        self.assertEqual(phy_to_virt(self.store, bucket, parse_vpc), bucket)

    def test_ancestor_only_ids(self) -> None:
        """Ancestor ids alone are mapped back to their names."""
        self.store.put(ApiAddress("us-east-1", "public"), {"api_id": "a1b2c3"})
        phy = StageAddress("us-east-1", "a1b2c3", "prod")
        parse = lambda path: parse_address(path, APIGATEWAYV2_ADDRESS_TYPES)  # noqa: E731
        self.assertEqual(phy_to_virt(self.store, phy, parse), StageAddress("us-east-1", "public", "prod"))


if __name__ == "__main__":
    unittest.main()
