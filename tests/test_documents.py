"""
Tests that every connector's addresses and documents survive a round trip.
"""

import tempfile
import unittest
from dataclasses import fields
from pathlib import Path
from unittest.mock import MagicMock

from src.reconciler.connectors import CONNECTOR_TYPES
from tests.helpers import make_connector


class TestConnectorDocuments(unittest.TestCase):
    """Walk every registered connector's address variants and skeleton documents."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.connectors = [make_connector(cls, Path(self.tmp.name), MagicMock()) for cls in CONNECTOR_TYPES.values()]

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_every_address_variant_round_trips_through_its_path(self) -> None:
        """Parsing the path of any address gives back the same address."""
        for connector in self.connectors:
            for variant in connector.ADDRESS_TYPES:
                values = {f.name: f"{f.name}-1" for f in fields(variant)}
                addr = variant(**values)
                with self.subTest(connector=connector.name, variant=variant.__name__):
                    path = addr.to_path()
                    self.assertEqual(connector.parse_address(path), addr)
                    self.assertEqual(connector.parse_address(path).to_path(), path)

    def test_every_address_variant_has_a_skeleton(self) -> None:
        """Each variant can be started from a template document."""
        for connector in self.connectors:
            with self.subTest(connector=connector.name):
                covered = {type(s.addr) for s in connector.get_skeletons()}
                self.assertEqual(covered, set(connector.ADDRESS_TYPES))

    def test_skeleton_documents_round_trip(self) -> None:
        """Skeletons serialize canonically, compare equal to themselves and pass syntax checks."""
        for connector in self.connectors:
            for skeleton in connector.get_skeletons():
                path = skeleton.addr.to_path()
                with self.subTest(connector=connector.name, path=path):
                    self.assertEqual(connector.parse_address(path), skeleton.addr)
                    model = connector.model_for(skeleton.addr).from_bytes(skeleton.body)
                    self.assertEqual(model.to_bytes(), skeleton.body)
                    self.assertTrue(connector.eq(path, skeleton.body, skeleton.body))
                    self.assertIsNone(connector.diag(path, skeleton.body))


if __name__ == "__main__":
    unittest.main()
