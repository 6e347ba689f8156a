"""
Command-line interface for the AWS Reconciler.

Sub-commands:

    plan        Show the operations a reconcile pass would execute
    apply       Execute a reconcile pass
    list        Enumerate live resources owned by the selected connectors
    skeletons   Print (or write) template documents for every resource type

Exit codes: 0 on success, 1 if the pass recorded errors, 2 on configuration
errors.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import Config, load_config
from .reconciler.connector import Connector
from .reconciler.connectors import CONNECTOR_TYPES, build_connectors
from .reconciler.errors import ConfigError, ReconcilerError
from .reconciler.reconcile import ReconcileReport, Reconciler
from .utils import setup_logging

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_CONFIG = 2

SKELETONS_DIR = "skeletons"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile a repository of AWS resource documents with a live account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_reconciler.py plan --prefix ./infra
  python run_reconciler.py apply --prefix ./infra --connector vpc --connector iam
  python run_reconciler.py list --prefix ./infra --connector s3 --output json
  python run_reconciler.py skeletons --prefix ./infra --write
        """,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--prefix",
        default=None,
        help="Repository root (default: $RECONCILE_PREFIX)",
    )
    common.add_argument(
        "--connector",
        action="append",
        choices=sorted(CONNECTOR_TYPES),
        help="Connector to run; repeat for several (default: all)",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    common.add_argument(
        "--output",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("plan", "Show planned operations without executing them"), ("apply", "Execute a reconcile pass")):
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument(
            "--prune",
            action="store_true",
            default=None,
            help="Delete live resources that the repository does not manage",
        )
        sub.add_argument(
            "--max-concurrency",
            type=int,
            default=None,
            help="Maximum number of addresses planned at once (default: $MAX_CONCURRENCY or 8)",
        )
        sub.add_argument(
            "--subpath",
            default="aws",
            help="Only reconcile addresses under this repository path (default: aws)",
        )

    list_parser = subparsers.add_parser("list", parents=[common], help="List live resources")
    list_parser.add_argument("--subpath", default="aws", help="Only list resources under this path (default: aws)")

    skeletons = subparsers.add_parser("skeletons", parents=[common], help="Print template documents")
    skeletons.add_argument(
        "--write",
        action="store_true",
        help=f"Write templates under <prefix>/{SKELETONS_DIR}/ instead of printing them",
    )

    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Environment configuration with command-line overrides applied."""
    config = load_config(args.prefix)
    if args.log_level:
        config.log_level = args.log_level
    if getattr(args, "prune", None):
        config.prune = True
    max_concurrency = getattr(args, "max_concurrency", None)
    if max_concurrency is not None:
        if max_concurrency < 1:
            raise ConfigError(f"--max-concurrency must be at least 1, got {max_concurrency}")
        config.max_concurrency = max_concurrency
    return config


async def run_pass(config: Config, connectors: Sequence[Connector], apply: bool, subpath: str) -> ReconcileReport:
    reconciler = Reconciler(
        config.prefix,
        connectors,
        prune=config.prune,
        max_concurrency=config.max_concurrency,
        subpath=subpath,
    )
    return await (reconciler.apply() if apply else reconciler.plan())


async def list_resources(connectors: Sequence[Connector], subpath: str) -> Dict[str, List[str]]:
    listed: Dict[str, List[str]] = {}
    for connector in connectors:
        await connector.init()
        listed[connector.name] = await connector.list(subpath)
    return listed


def write_skeletons(prefix: Path, connectors: Sequence[Connector]) -> List[Path]:
    """Write every skeleton document under <prefix>/skeletons/, keeping files that already exist."""
    written = []
    for connector in connectors:
        for skeleton in connector.get_skeletons():
            path = prefix / SKELETONS_DIR / skeleton.addr.to_path()
            if path.exists():
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(skeleton.body)
            written.append(path)
    return written


def print_report(report: ReconcileReport) -> None:
    """Print a human-readable reconcile report."""
    title = "RECONCILE PLAN" if report.dry_run else "RECONCILE REPORT"
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)

    print(f"\n=== Planned Operations ({sum(len(p.elements) for p in report.plans)}) ===")
    if report.plans:
        for plan in report.plans:
            marker = " (unmanaged)" if plan.unmanaged else ""
            print(f"\n{plan.path}{marker}")
            for element in plan.elements:
                print(f"  {element.op_tag}: {element.friendly_message}")
    else:
        print("Everything is up to date.")

    if not report.dry_run:
        print(f"\n=== Executed Operations ({len(report.executed)}) ===")
        for executed in report.executed:
            print(f"✅ {executed.path}: {executed.friendly_message}")
        for path, tag in report.skipped:
            print(f"⏭️  {path}: skipped {tag}")

    if report.unmanaged:
        print(f"\n=== Unmanaged Resources ({len(report.unmanaged)}) ===")
        for path in report.unmanaged:
            print(f"❓ {path}")
        print("\nNote: Unmanaged resources exist in AWS but not in the repository. Run with --prune to delete them.")

    print(f"\n=== Errors ({len(report.errors)}) ===")
    if report.errors:
        for i, error in enumerate(report.errors, 1):
            print(f"{i}. {error.path}")
            print(f"   Kind: {error.kind}")
            if error.op_tag:
                print(f"   Operation: {error.op_tag}: {error.description}")
            print(f"   Message: {error.message}")
            for cause in error.chain[1:]:
                print(f"   Caused by: {cause}")
    else:
        print("No errors.")

    print("\n" + "=" * 60)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
        logger = setup_logging(config.log_level)
        connectors = build_connectors(args.connector, config.prefix)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    try:
        if args.command == "skeletons":
            if args.write:
                for path in write_skeletons(Path(config.prefix), connectors):
                    logger.info(f"Wrote {path}")
                return EXIT_OK
            documents: Dict[str, Any] = {
                s.addr.to_path(): json.loads(s.body) for c in connectors for s in c.get_skeletons()
            }
            if args.output == "json":
                print(json.dumps(documents, indent=2))
            else:
                for path, body in documents.items():
                    print(f"# {path}\n{json.dumps(body, indent=4)}\n")
            return EXIT_OK

        if args.command == "list":
            listed = asyncio.run(list_resources(connectors, args.subpath))
            if args.output == "json":
                print(json.dumps(listed, indent=2))
            else:
                for name, paths in listed.items():
                    print(f"=== {name} ({len(paths)}) ===")
                    for path in paths:
                        print(path)
            return EXIT_OK

        logger.info(f"Starting reconcile {args.command} for {config.prefix}")
        report = asyncio.run(run_pass(config, connectors, args.command == "apply", args.subpath))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except ReconcilerError as e:
        logger.error(f"Error running reconciler: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERRORS

    if args.output == "json":
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)

    if report.errors:
        logger.warning(f"{len(report.errors)} error(s) recorded. Exiting with code {EXIT_ERRORS}")
        return EXIT_ERRORS
    logger.info("Reconcile finished without errors")
    return EXIT_OK
