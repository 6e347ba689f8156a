"""
Tests for configuration module.
"""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from src.config import DEFAULT_ENABLED_REGIONS, AwsConnectorConfig, Config, load_config, load_connector_config
from src.reconciler.errors import ConfigError


class TestConfig(unittest.TestCase):
    """Test configuration loading and validation."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.prefix = self.tmp.name

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_load_config_success(self) -> None:
        """Test successful configuration loading."""
        with patch.dict("os.environ", {"RECONCILE_PREFIX": self.prefix}, clear=True):
            config = load_config()
        self.assertIsInstance(config, Config)
        self.assertEqual(config.prefix, self.prefix)
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.max_concurrency, 8)
        self.assertFalse(config.prune)

    @patch.dict("os.environ", {}, clear=True)
    def test_load_config_missing_required(self) -> None:
        """Test that missing required config raises ConfigError."""
        with self.assertRaises(ConfigError) as context:
            load_config()
        self.assertIn("RECONCILE_PREFIX", str(context.exception))

    def test_argument_overrides_environment(self) -> None:
        """An explicit prefix wins over the environment."""
        with patch.dict("os.environ", {"RECONCILE_PREFIX": "/does/not/matter"}, clear=True):
            config = load_config(self.prefix)
        self.assertEqual(config.prefix, self.prefix)

    @patch.dict("os.environ", {}, clear=True)
    def test_prefix_must_be_a_directory(self) -> None:
        """A prefix that is not a directory is rejected."""
        with self.assertRaises(ConfigError):
            load_config(str(Path(self.prefix) / "missing"))

    def test_load_config_with_optional_values(self) -> None:
        """Test configuration loading with optional values."""
        env = {"RECONCILE_PREFIX": self.prefix, "LOG_LEVEL": "debug", "MAX_CONCURRENCY": "2", "RECONCILE_PRUNE": "true"}
        with patch.dict("os.environ", env, clear=True):
            config = load_config()
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.max_concurrency, 2)
        self.assertTrue(config.prune)

    def test_invalid_values(self) -> None:
        """Out of range settings are configuration errors."""
        for name, value in (("LOG_LEVEL", "LOUD"), ("MAX_CONCURRENCY", "0"), ("MAX_CONCURRENCY", "x"), ("RECONCILE_PRUNE", "maybe")):
            with self.subTest(name=name, value=value):
                with patch.dict("os.environ", {"RECONCILE_PREFIX": self.prefix, name: value}, clear=True):
                    with self.assertRaises(ConfigError):
                        load_config()


class TestConnectorConfig(unittest.TestCase):
    """Test per-connector configuration files."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.prefix = Path(self.tmp.name)
        (self.prefix / "aws").mkdir()

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def write(self, name: str, content: str) -> None:
        (self.prefix / "aws" / name).write_text(content, encoding="utf-8")

    def test_defaults_without_files(self) -> None:
        """Defaults apply when no config file exists."""
        config = load_connector_config(self.prefix, "vpc")
        self.assertEqual(config, AwsConnectorConfig())
        self.assertEqual(config.enabled_regions, DEFAULT_ENABLED_REGIONS)

    def test_shared_file_is_fallback(self) -> None:
        """The shared file applies when no service file exists."""
        self.write("config.json", json.dumps({"enabled_regions": ["eu-west-1"], "account_id": "123456789012"}))
        config = load_connector_config(self.prefix, "vpc")
        self.assertEqual(config.enabled_regions, ["eu-west-1"])
        self.assertEqual(config.account_id, "123456789012")

    def test_service_file_wins(self) -> None:
        """A service file takes precedence over the shared one."""
        self.write("config.json", json.dumps({"enabled_regions": ["eu-west-1"]}))
        self.write("s3.json", json.dumps({"enabled_regions": ["us-west-2"]}))
        self.assertEqual(load_connector_config(self.prefix, "s3").enabled_regions, ["us-west-2"])
        self.assertEqual(load_connector_config(self.prefix, "vpc").enabled_regions, ["eu-west-1"])

    def test_invalid_json(self) -> None:
        """A malformed config file is a configuration error."""
        self.write("config.json", "{")
        with self.assertRaises(ConfigError):
            load_connector_config(self.prefix, "vpc")

    def test_unknown_key(self) -> None:
        """Unknown keys are rejected."""
        self.write("vpc.json", json.dumps({"regions": ["eu-west-1"]}))
        with self.assertRaises(ConfigError) as context:
            load_connector_config(self.prefix, "vpc")
        self.assertIn("regions", str(context.exception))

    def test_invalid_types(self) -> None:
        """Values of the wrong type are rejected."""
        for body in ({"enabled_regions": "us-east-1"}, {"account_id": 1234}, {"max_retries": -1}, {"timeout_seconds": 0}, [1, 2]):
            with self.subTest(body=body):
                self.write("vpc.json", json.dumps(body))
                with self.assertRaises(ConfigError):
                    load_connector_config(self.prefix, "vpc")

    def test_boto_config_carries_timeouts(self) -> None:
        """Timeouts and retries reach the botocore config."""
        boto_config = AwsConnectorConfig(timeout_seconds=5, max_retries=2).boto_config()
        self.assertEqual(boto_config.connect_timeout, 5)
        self.assertEqual(boto_config.read_timeout, 5)
        self.assertEqual(boto_config.retries, {"max_attempts": 2, "mode": "standard"})

    def test_operation_timeout_covers_retries(self) -> None:
        """An operation may spend the full timeout on every attempt."""
        self.assertEqual(AwsConnectorConfig(timeout_seconds=5, max_retries=2).operation_timeout(), 15)

    def test_fractional_timeout_is_accepted(self) -> None:
        """Timeouts may be fractions of a second."""
        self.write("vpc.json", json.dumps({"timeout_seconds": 2.5}))
        self.assertEqual(load_connector_config(self.prefix, "vpc").timeout_seconds, 2.5)


if __name__ == "__main__":
    unittest.main()
