"""
Tests for the command-line interface.
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import AsyncMock, patch

from src.cli import EXIT_CONFIG, EXIT_ERRORS, EXIT_OK, build_parser, main, print_report, write_skeletons
from src.reconciler.connectors import build_connectors
from src.reconciler.errors import ConfigError, OpExecError
from src.reconciler.op import PlanResponseElement
from src.reconciler.reconcile import AddressError, ReconcileReport


class TestParser(unittest.TestCase):
    """Test argument parsing."""

    def test_plan_options(self) -> None:
        """Plan options parse into the namespace."""
        args = build_parser().parse_args(
            ["plan", "--prefix", "/infra", "--connector", "vpc", "--connector", "iam", "--prune", "--max-concurrency", "2"]
        )
        self.assertEqual(args.command, "plan")
        self.assertEqual(args.connector, ["vpc", "iam"])
        self.assertTrue(args.prune)
        self.assertEqual(args.max_concurrency, 2)
        self.assertEqual(args.subpath, "aws")

    def test_unknown_connector_is_rejected(self) -> None:
        """An unregistered connector name fails argument parsing."""
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            build_parser().parse_args(["plan", "--connector", "lambda"])

    def test_build_connectors_rejects_unknown_name(self) -> None:
        """Building an unregistered connector is a configuration error."""
        with self.assertRaises(ConfigError):
            build_connectors(["lambda"])


class TestMain(unittest.TestCase):
    """Test exit codes and output of the entry point."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.prefix = self.tmp.name

    def tearDown(self) -> None:
        self.tmp.cleanup()

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_prefix_is_a_config_error(self) -> None:
        """Without a prefix the command exits with the config code."""
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            self.assertEqual(main(["plan"]), EXIT_CONFIG)
        self.assertIn("RECONCILE_PREFIX", stderr.getvalue())

    def test_invalid_max_concurrency(self) -> None:
        """A zero concurrency limit is a configuration error."""
        with redirect_stderr(io.StringIO()):
            self.assertEqual(main(["apply", "--prefix", self.prefix, "--max-concurrency", "0"]), EXIT_CONFIG)

    def test_skeletons_as_json(self) -> None:
        """Skeletons print as JSON keyed by template path."""
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = main(["skeletons", "--prefix", self.prefix, "--connector", "kms", "--output", "json"])

        self.assertEqual(code, EXIT_OK)
        documents = json.loads(stdout.getvalue())
        self.assertIn("aws/kms/[region]/keys/[key_id].json", documents)
        self.assertIn("Key", documents["aws/kms/[region]/keys/[key_id].json"])

    def test_write_skeletons_keeps_existing_files(self) -> None:
        """Writing skeletons never overwrites an edited file."""
        connectors = build_connectors(["s3"], self.prefix)
        written = write_skeletons(Path(self.prefix), connectors)
        self.assertEqual(len(written), len(connectors[0].get_skeletons()))
        written[0].write_text("edited", encoding="utf-8")

        self.assertEqual(write_skeletons(Path(self.prefix), connectors), [])
        self.assertEqual(written[0].read_text(encoding="utf-8"), "edited")

    def test_errors_give_exit_code_one(self) -> None:
        """A report with errors exits with the error code."""
        report = ReconcileReport(dry_run=False, errors=[AddressError("aws/vpc/us-east-1/vpcs/main.json", "OpExecError", "denied")])
        stdout = io.StringIO()
        with patch("src.cli.run_pass", new=AsyncMock(return_value=report)), redirect_stdout(stdout):
            code = main(["apply", "--prefix", self.prefix, "--output", "json"])

        self.assertEqual(code, EXIT_ERRORS)
        self.assertEqual(json.loads(stdout.getvalue())["summary"]["errors"], 1)

    def test_clean_plan_prints_report(self) -> None:
        """An empty plan prints an up to date report."""
        stdout = io.StringIO()
        with patch("src.cli.run_pass", new=AsyncMock(return_value=ReconcileReport())), redirect_stdout(stdout):
            code = main(["plan", "--prefix", self.prefix])

        self.assertEqual(code, EXIT_OK)
        self.assertIn("RECONCILE PLAN", stdout.getvalue())
        self.assertIn("Everything is up to date.", stdout.getvalue())


class TestPrintReport(unittest.TestCase):
    """Test the human-readable report."""

    def test_error_shows_operation_and_causes(self) -> None:
        """A failed operation is printed with its tag and every underlying cause."""
        element = PlanResponseElement('{"DeleteVpc":{}}', "Delete VPC main")
        try:
            try:
                raise ValueError("DependencyViolation")
            except ValueError as exc:
                raise OpExecError("DeleteVpc", "Vpc", "call rejected") from exc
        except OpExecError as exc:
            error = AddressError.from_exception("aws/vpc/us-east-1/vpcs/main.json", exc, element)

        stdout = io.StringIO()
        with redirect_stdout(stdout):
            print_report(ReconcileReport(dry_run=False, errors=[error]))

        output = stdout.getvalue()
        self.assertIn("Operation: DeleteVpc: Delete VPC main", output)
        self.assertIn("Caused by: ValueError: DependencyViolation", output)

    def test_connector_error_has_no_operation_line(self) -> None:
        """Errors raised outside an operation omit the operation line."""
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            print_report(ReconcileReport(errors=[AddressError("vpc", "ConnectorInitError", "no credentials")]))

        self.assertNotIn("Operation:", stdout.getvalue())
        self.assertNotIn("Caused by:", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
