"""
Reconcile Loop Module.

This module drives a set of connectors through one reconcile pass:

1. Initialise every connector (a failing connector is excluded from the pass)
2. Enumerate addresses: repository documents, recorded outputs and live
   resources listed by the connector, correlated through the Output Store
3. Plan every address concurrently: read the desired document, resolve and
   read the current state, diff
4. Order the plans: creations and updates parent-first, deletions child-first
5. Execute operation by operation, recording outputs as soon as each one
   returns, and re-queue operations whose prerequisites are still missing
6. Stop when every plan has run or a full pass over the queue made no progress

Per-address failures are collected into a ReconcileReport instead of
aborting the pass.
"""

import asyncio
import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..utils import setup_logging
from .address import DOCUMENT_EXTENSION, normalize_path, path_matches_filter
from .connector import Connector, FilterResponse
from .errors import MissingOutputError, OpExecError, ReconcileError, ReconcilerError, ResourceSyntaxError
from .op import PlanResponseElement
from .resolver import Deferred, NotPresent, Null, Present, ReadOutput
from .types import ReportDict

logger = setup_logging()


@dataclass
class AddressPlan:
    """The plan for one address, plus how far its execution has progressed."""

    connector: Connector
    path: str
    elements: List[PlanResponseElement]
    depth: int = 0
    unmanaged: bool = False
    next_index: int = 0
    waiting_on: List[ReadOutput] = field(default_factory=list)

    @property
    def deleting(self) -> bool:
        return bool(self.elements) and all(e.op_tag.startswith("Delete") for e in self.elements)

    @property
    def done(self) -> bool:
        return self.next_index >= len(self.elements)

    def to_dict(self) -> ReportDict:
        return {
            "connector": self.connector.name,
            "path": self.path,
            "unmanaged": self.unmanaged,
            "operations": [
                {"op": e.op_definition, "description": e.friendly_message} for e in self.elements
            ],
        }


@dataclass
class ExecutedOp:
    path: str
    op_tag: str
    friendly_message: str
    outputs: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class AddressError:
    """A failure attributed to one address (or to a connector, for init and list failures)."""

    path: str
    kind: str
    message: str
    op_tag: Optional[str] = None
    description: Optional[str] = None
    chain: List[str] = field(default_factory=list)

    @classmethod
    def from_exception(
        cls, path: str, error: BaseException, element: Optional[PlanResponseElement] = None
    ) -> "AddressError":
        chain = []
        cause: Optional[BaseException] = error
        while cause is not None:
            chain.append(f"{type(cause).__name__}: {cause}")
            cause = cause.__cause__
        return cls(
            path=path,
            kind=type(error).__name__,
            message=str(error),
            op_tag=element.op_tag if element is not None else None,
            description=element.friendly_message if element is not None else None,
            chain=chain,
        )


@dataclass
class ReconcileReport:
    """Outcome of one reconcile pass."""

    dry_run: bool = True
    plans: List[AddressPlan] = field(default_factory=list)
    executed: List[ExecutedOp] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    unmanaged: List[str] = field(default_factory=list)
    errors: List[AddressError] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def summary(self) -> ReportDict:
        return {
            "addresses_planned": len(self.plans),
            "operations_planned": sum(len(p.elements) for p in self.plans),
            "operations_executed": len(self.executed),
            "operations_skipped": len(self.skipped),
            "unmanaged_resources": len(self.unmanaged),
            "errors": len(self.errors),
        }

    def to_dict(self) -> ReportDict:
        return {
            "dry_run": self.dry_run,
            "plans": [p.to_dict() for p in self.plans],
            "executed": [
                {"path": e.path, "op": e.op_tag, "message": e.friendly_message, "outputs": e.outputs}
                for e in self.executed
            ],
            "skipped": [{"path": path, "op": tag} for path, tag in self.skipped],
            "unmanaged": list(self.unmanaged),
            "errors": [
                {
                    "path": e.path,
                    "kind": e.kind,
                    "message": e.message,
                    "op": e.op_tag,
                    "description": e.description,
                    "chain": e.chain,
                }
                for e in self.errors
            ],
            "summary": self.summary(),
            "timestamp": self.timestamp,
        }


class _Step(enum.Enum):
    DONE = "done"
    DEFERRED = "deferred"
    FAILED = "failed"


def order_plans(plans: Sequence[AddressPlan]) -> List[AddressPlan]:
    """
    Topologically order plans by structural containment.

    Plans that create or update run parent-first; plans that only delete run
    afterwards, child-first. Siblings are ordered by path.
    """
    building = sorted((p for p in plans if not p.deleting), key=lambda p: (p.depth, p.path))
    deleting = sorted((p for p in plans if p.deleting), key=lambda p: (-p.depth, p.path))
    return building + deleting


class Reconciler:
    """Runs reconcile passes over a repository with a fixed set of connectors."""

    def __init__(
        self,
        prefix: Union[str, Path],
        connectors: Sequence[Connector],
        prune: bool = False,
        max_concurrency: int = 8,
        subpath: str = "aws",
    ):
        self.prefix = Path(prefix)
        self.connectors = list(connectors)
        self.prune = prune
        self.max_concurrency = max_concurrency
        self.subpath = normalize_path(subpath)

    async def plan(self) -> ReconcileReport:
        """Dry run: initialise, enumerate and plan without executing anything."""
        report = ReconcileReport(dry_run=True)
        active = await self._init_connectors(report)
        report.plans = await self._plan_all(active, report)
        return report

    async def apply(self) -> ReconcileReport:
        """Plan and execute. Errors are collected in the returned report."""
        report = await self.plan()
        report.dry_run = False
        await self._execute(report)
        return report

    async def run(self) -> ReconcileReport:
        """
        Plan and execute a full pass.

        Raises:
            ReconcileError: If any address failed; the report is attached
        """
        report = await self.apply()
        if report.errors:
            raise ReconcileError(report)
        return report

    async def _init_connectors(self, report: ReconcileReport) -> List[Connector]:
        active = []
        for connector in self.connectors:
            try:
                await connector.init()
            except ReconcilerError as e:
                logger.error(f"Connector {connector.name} failed to initialise: {e}")
                report.errors.append(AddressError.from_exception(f"aws/{connector.name}", e))
                continue
            active.append(connector)
        return active

    def _repository_paths(self, connector: Connector, subpath: str) -> List[str]:
        root = self.prefix / subpath
        if not root.is_dir():
            return []
        paths = []
        for path in sorted(root.rglob(f"*{DOCUMENT_EXTENSION}")):
            if not path.is_file():
                continue
            relative = path.relative_to(self.prefix).as_posix()
            if connector.filter(relative) is FilterResponse.RESOURCE:
                paths.append(relative)
        return paths

    async def discover(self, connector: Connector, report: ReconcileReport) -> Dict[str, bool]:
        """
        Enumerate the addresses a connector is responsible for in this pass.

        Returns:
            Map of address path to whether the resource is unmanaged (live in
            AWS but unknown to the repository and the Output Store)
        """
        found: Dict[str, bool] = {}
        for subpath in connector.subpaths():
            if not path_matches_filter(subpath, self.subpath):
                continue

            for path in self._repository_paths(connector, subpath):
                found[path] = False

            for addr, _ in connector.store.entries(connector.parse_address):
                path = addr.to_path()
                if path_matches_filter(path, subpath) and path_matches_filter(path, self.subpath):
                    found.setdefault(path, False)

            try:
                listed = await connector.list(subpath)
            except ReconcilerError as e:
                logger.error(f"Listing {subpath} failed: {e}")
                report.errors.append(AddressError.from_exception(subpath, e))
                continue

            for phy_path in listed:
                if not path_matches_filter(phy_path, self.subpath):
                    continue
                virt_path = connector.addr_phy_to_virt(phy_path)
                if virt_path is not None and (
                    virt_path in found or connector.has_outputs(virt_path) or (self.prefix / virt_path).is_file()
                ):
                    found.setdefault(virt_path, False)
                elif phy_path not in found:
                    found[phy_path] = True
        return found

    async def _plan_all(self, connectors: Sequence[Connector], report: ReconcileReport) -> List[AddressPlan]:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = []
        for connector in connectors:
            for path, unmanaged in sorted((await self.discover(connector, report)).items()):
                if unmanaged and not self.prune:
                    logger.info(f"Unmanaged resource {path} (not deleted; enable pruning to remove it)")
                    report.unmanaged.append(path)
                    continue
                tasks.append(self._plan_address(connector, path, unmanaged, semaphore, report))

        plans = [p for p in await asyncio.gather(*tasks) if p is not None and p.elements]
        return order_plans(plans)

    async def _plan_address(
        self,
        connector: Connector,
        path: str,
        unmanaged: bool,
        semaphore: asyncio.Semaphore,
        report: ReconcileReport,
    ) -> Optional[AddressPlan]:
        async with semaphore:
            try:
                addr = connector.parse_address(path)
                document = self.prefix / path
                desired = document.read_bytes() if not unmanaged and document.is_file() else None
                if desired is not None:
                    diagnostics = connector.diag(path, desired)
                    if diagnostics is not None:
                        first = diagnostics.diagnostics[0]
                        location = f" at {first.location}" if first.location else ""
                        raise ResourceSyntaxError(path, f"{first.message}{location}", first.line, first.column)

                if unmanaged:
                    phy_path: Optional[str] = path
                else:
                    resolved = connector.addr_virt_to_phy(path)
                    phy_path = resolved.path if isinstance(resolved, (Present, Null)) else None

                current_response = await connector.get(phy_path) if phy_path is not None else None
                current = current_response.resource_definition if current_response is not None else None

                if current is not None and desired is not None and connector.eq(path, current, desired):
                    logger.debug(f"{path} is up to date")
                    return None

                elements = await connector.plan(path, current, desired)
            except ReconcilerError as e:
                logger.error(f"Planning {path} failed: {e}")
                report.errors.append(AddressError.from_exception(path, e))
                return None

        if elements:
            logger.info(f"{path}: {len(elements)} operation(s) planned")
        return AddressPlan(connector, path, elements, depth=addr.depth(), unmanaged=unmanaged)

    async def _execute(self, report: ReconcileReport) -> None:
        queue = list(report.plans)
        while queue:
            progressed = False
            remaining = []
            for item in queue:
                start = item.next_index
                step = await self._advance(item, report)
                if item.next_index > start or step is not _Step.DEFERRED:
                    progressed = True
                if step is _Step.DEFERRED:
                    remaining.append(item)
            queue = remaining

            if queue and not progressed:
                for item in queue:
                    error = MissingOutputError(item.path, item.waiting_on)
                    logger.error(str(error))
                    report.errors.append(AddressError.from_exception(item.path, error, item.elements[item.next_index]))
                return

    async def _advance(self, item: AddressPlan, report: ReconcileReport) -> _Step:
        """Execute the plan's remaining operations in order until one defers or fails."""
        connector = item.connector
        while not item.done:
            element = item.elements[item.next_index]
            try:
                if item.unmanaged:
                    resolved: Any = Present(item.path)
                else:
                    resolved = connector.op_virt_to_phy(item.path, element.op_definition)
            except ReconcilerError as e:
                report.errors.append(AddressError.from_exception(item.path, e, element))
                return _Step.FAILED

            if isinstance(resolved, Deferred):
                item.waiting_on = resolved.reads
                logger.info(
                    f"Deferring {element.op_tag} on {item.path} until "
                    + ", ".join(f"{r.path}:{r.key}" for r in resolved.reads)
                    + " is recorded"
                )
                return _Step.DEFERRED

            if isinstance(resolved, NotPresent) and element.op_tag.startswith("Delete"):
                logger.info(f"Skipping {element.op_tag} on {item.path}: resource was never created")
                report.skipped.append((item.path, element.op_tag))
                item.next_index += 1
                continue

            try:
                response = await connector.op_exec(item.path, element.op_definition)
            except OpExecError as e:
                if e.outputs:
                    connector.store.put(connector.parse_address(item.path), e.outputs)
                logger.error(f"{element.friendly_message} failed: {e}")
                report.errors.append(AddressError.from_exception(item.path, e, element))
                return _Step.FAILED
            except ReconcilerError as e:
                logger.error(f"{element.friendly_message} failed: {e}")
                report.errors.append(AddressError.from_exception(item.path, e, element))
                return _Step.FAILED

            if response.outputs:
                connector.store.put(connector.parse_address(item.path), response.outputs)
            logger.info(response.friendly_message)
            report.executed.append(ExecutedOp(item.path, element.op_tag, response.friendly_message, response.outputs))
            item.next_index += 1

        return _Step.DONE
