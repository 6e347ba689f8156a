"""
Connector Base Module.

A connector is the adapter between the engine and one AWS service. Every
connector owns a slice of the repository (its `filter` accepts a path iff the
path parses as one of its address variants) and implements the same
lifecycle:

    init -> list / get -> plan -> op_exec

Methods that talk to AWS are coroutines; the boto3 calls themselves are
synchronous and run in worker threads. `filter`, `eq`, `diag`, address parsing
and virtual/physical resolution never suspend.

Subclasses provide the service-specific parts:

- ADDRESS_TYPES / RESOURCE_TYPES / OPS: the variant sets
- do_list / do_get / do_op_exec: synchronous boto3 work
- plan_create / plan_delete / plan_update: the diff rules
- get_skeletons: templates for new documents
"""

import asyncio
import enum
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

import boto3

from ..config import AwsConnectorConfig, load_connector_config
from ..utils import remote_error_handler, setup_logging
from .address import ResourceAddress, normalize_path, parse_address, path_matches_filter
from .errors import AddressParseError, ConfigError, ImmutableFieldError, OpExecError, RemoteError
from .op import ConnectorOp, OpExecResponse, OpRegistry, PlanResponseElement, SkeletonResponse, parse_op
from .outputs import OutputStore
from .resolver import Deferred, ReadOutput, VirtToPhyResult, phy_to_virt, virt_to_phy
from .resource import DiagnosticResponse, ResourceModel, check_eq, check_syntax, parse_document
from .types import Outputs, STSClient, StoredOutputs

logger = setup_logging()

Outbox = Optional["asyncio.Queue[str]"]


class FilterResponse(enum.Enum):
    RESOURCE = "Resource"
    NONE = "None"


@dataclass
class GetResourceResponse:
    """Current state of one resource as read from AWS."""

    resource_definition: bytes
    outputs: StoredOutputs


class _ExecHandoff:
    """
    Result hand-off between `op_exec` and the worker thread running the operation.

    Once `op_exec` gives up waiting, the worker still finishes the call and is
    then responsible for recording its outputs.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.abandoned = False
        self.finished = False
        self.response: Optional[OpExecResponse] = None
        self.error: Optional[RemoteError] = None

    def finish(self, response: Optional[OpExecResponse], error: Optional[RemoteError]) -> bool:
        """Record the worker's result. Returns True if nobody is waiting for it any more."""
        with self._lock:
            self.finished = True
            self.response = response
            self.error = error
            return self.abandoned

    def abandon(self) -> bool:
        """Stop waiting. Returns True if the worker had already finished."""
        with self._lock:
            if not self.finished:
                self.abandoned = True
            return self.finished


def verify_account_id(actual: str, configured: Optional[str]) -> None:
    """
    Check the credentials belong to the configured account.

    Raises:
        ConfigError: If an account id is configured and does not match
    """
    if configured and configured != actual:
        raise ConfigError(
            f"Credentials do not match configured account id: credentials = {actual}, config = {configured}",
            {"account_id": configured},
        )


@remote_error_handler("GetCallerIdentity")
def get_caller_account_id(sts_client: STSClient) -> str:
    return str(sts_client.get_caller_identity()["Account"])


class Connector:
    """Base class for AWS service connectors."""

    # Connector name; also the path segment under aws/ and the config file name
    NAME: ClassVar[str] = ""
    # boto3 service name
    SERVICE: ClassVar[str] = ""
    # Region used for clients of global services (IAM); None for regional services
    GLOBAL_REGION: ClassVar[Optional[str]] = None

    ADDRESS_TYPES: ClassVar[Sequence[Type[ResourceAddress]]] = ()
    RESOURCE_TYPES: ClassVar[Dict[Type[ResourceAddress], Type[ResourceModel]]] = {}
    OPS: ClassVar[OpRegistry] = {}

    def __init__(
        self,
        name: Optional[str] = None,
        prefix: Union[str, Path] = ".",
        outbox: Outbox = None,
        session: Optional[Any] = None,
    ):
        self.name = name or self.NAME
        self.prefix = Path(prefix)
        self.outbox = outbox
        self.store = OutputStore(self.prefix)
        self.session = session
        self.config = AwsConnectorConfig()
        self.account_id: Optional[str] = None
        self.client_cache: Dict[str, Any] = {}
        self._client_lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()

    @classmethod
    def new(cls, name: str, prefix: Union[str, Path], outbox: Outbox = None) -> "Connector":
        return cls(name, prefix, outbox)

    # Lifecycle

    async def init(self) -> None:
        """
        Load configuration, verify credentials and reset the client cache.

        Raises:
            ConfigError: If configuration is invalid or the account does not match
            RemoteError: If the caller identity cannot be determined
        """
        async with self._init_lock:
            config = load_connector_config(self.prefix, self.name)
            if self.session is None:
                self.session = boto3.session.Session()
            sts_client = self.session.client(
                "sts",
                region_name=config.sts_region,
                endpoint_url=config.endpoint_url,
                config=config.boto_config(),
            )
            account_id = await asyncio.to_thread(get_caller_account_id, sts_client)
            verify_account_id(account_id, config.account_id)

            async with self._client_lock:
                self.client_cache = {}
            self.config = config
            self.account_id = account_id
        logger.info(f"Initialised {self.name} connector for account {account_id}")

    def filter(self, path: Union[str, Path]) -> FilterResponse:
        try:
            self.parse_address(path)
        except AddressParseError:
            return FilterResponse.NONE
        return FilterResponse.RESOURCE

    def subpaths(self) -> List[str]:
        """Repository subtrees this connector owns, one per enabled region."""
        if self.GLOBAL_REGION:
            return [f"aws/{self.name}"]
        return [f"aws/{self.name}/{region}" for region in self.config.enabled_regions]

    async def list(self, subpath: Union[str, Path] = "aws") -> List[str]:
        """
        Enumerate live resources under a subpath.

        Returns:
            Physical address paths, sorted
        """
        subpath = normalize_path(subpath)
        paths: List[str] = []
        for region in self.list_regions(subpath):
            client = await self.get_client(region)
            found = await asyncio.to_thread(self.do_list, client, region)
            paths.extend(a.to_path() for a in found if path_matches_filter(a.to_path(), subpath))
        logger.info(f"{self.name}: listed {len(paths)} resource(s) under {subpath}")
        return sorted(paths)

    async def get(self, path: Union[str, Path]) -> Optional[GetResourceResponse]:
        """Read one resource by its physical path; None if it does not exist."""
        addr = self.parse_address(path)
        client = await self.get_client(self.client_region(addr))
        found = await asyncio.to_thread(self.do_get, client, addr)
        if found is None:
            return None
        model, outputs = found
        return GetResourceResponse(model.to_bytes(), {k: v for k, v in outputs.items() if v is not None})

    async def plan(
        self, path: Union[str, Path], current: Optional[bytes], desired: Optional[bytes]
    ) -> List[PlanResponseElement]:
        """
        Diff current against desired and return the operations that reconcile them.

        Raises:
            ResourceSyntaxError: If either document does not parse
            ImmutableFieldError: If a field AWS cannot modify in place has changed
        """
        addr = self.parse_address(path)
        model = self.model_for(addr)
        old = parse_document(model, current, addr.to_path()) if current is not None else None
        new = parse_document(model, desired, addr.to_path()) if desired is not None else None

        if old is None and new is None:
            return []
        if old is None:
            return self.plan_create(addr, new)
        if new is None:
            return self.plan_delete(addr, old)
        if old == new:
            return []
        return self.plan_update(addr, old, new)

    async def op_exec(self, path: Union[str, Path], op: str) -> OpExecResponse:
        """
        Execute exactly one operation against the address at `path`.

        Raises:
            InvalidOpError: If the operation does not apply to this address
            OpExecError: If AWS rejected the operation or it timed out; carries
                the outputs collected before the failure
        """
        addr = self.parse_address(path)
        parsed = parse_op(op, self.OPS, addr.to_path())
        phy = self.resolve_phy(addr)
        client = await self.get_client(self.client_region(addr))
        logger.debug(f"{self.name}: executing {op} on {addr.to_path()}")

        handoff = _ExecHandoff()
        timeout = self.config.operation_timeout()
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self._run_op, client, addr, phy, parsed, handoff),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            if not handoff.abandon():
                raise OpExecError(
                    parsed.tag(),
                    addr.kind,
                    f"timed out after {timeout}s; outputs will be recorded if the call completes",
                )
            error = handoff.error
            if error is not None:
                raise OpExecError(parsed.tag(), addr.kind, str(error), error.outputs) from error
            response = handoff.response
        except RemoteError as e:
            raise OpExecError(parsed.tag(), addr.kind, str(e), e.outputs) from e

        await self.notify(f"{addr.to_path()}: {response.friendly_message}")
        return response

    def _run_op(
        self, client: Any, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp, handoff: _ExecHandoff
    ) -> OpExecResponse:
        try:
            response = self.do_op_exec(client, addr, phy, op)
        except RemoteError as e:
            if handoff.finish(None, e):
                self._record_late_outputs(addr, op, e.outputs)
            raise
        if handoff.finish(response, None):
            self._record_late_outputs(addr, op, response.outputs)
        return response

    def _record_late_outputs(self, addr: ResourceAddress, op: ConnectorOp, outputs: Outputs) -> None:
        """Store outputs of an operation that completed after op_exec timed out."""
        if not outputs:
            return
        self.store.put(addr, outputs)
        logger.warning(
            f"{self.name}: {op.tag()} on {addr.to_path()} completed after timing out; recorded {sorted(outputs)}"
        )

    # Resolution

    def has_document(self, addr: ResourceAddress) -> bool:
        """True if the repository holds a document for the address."""
        return (self.prefix / addr.to_path()).is_file()

    def has_outputs(self, path: Union[str, Path]) -> bool:
        return self.store.exists(self.parse_address(path))

    def addr_virt_to_phy(self, path: Union[str, Path]) -> VirtToPhyResult:
        return virt_to_phy(self.store, self.parse_address(path), self.has_document)

    def addr_phy_to_virt(self, path: Union[str, Path]) -> Optional[str]:
        virt = phy_to_virt(self.store, self.parse_address(path), self.parse_address)
        return virt.to_path() if virt is not None else None

    def op_virt_to_phy(self, path: Union[str, Path], op: str) -> VirtToPhyResult:
        """
        Resolve an address together with the managed resources its operation references.

        An attachment such as "attach this gateway to VPC main" cannot run
        before VPC main has an id, even though the gateway itself resolves.
        """
        addr = self.parse_address(path)
        result = virt_to_phy(self.store, addr, self.has_document)
        reads = self.op_dependencies(addr, parse_op(op, self.OPS, addr.to_path()))
        if not reads:
            return result
        if isinstance(result, Deferred):
            return Deferred(result.reads + [r for r in reads if r not in result.reads])
        return Deferred(reads)

    def op_dependencies(self, addr: ResourceAddress, op: ConnectorOp) -> List[ReadOutput]:
        """Outputs of other managed resources an operation needs; none by default."""
        return []

    def require_output(self, owner: ResourceAddress, key: str) -> List[ReadOutput]:
        """A pending read if `owner` is managed in the repository and has not produced `key` yet."""
        if self.store.get(owner, key) is None and self.has_document(owner):
            return [ReadOutput(owner.to_path(), key)]
        return []

    def phy_value(self, owner: ResourceAddress, key: str, fallback: str) -> str:
        """The recorded output, or `fallback` when the value is already physical."""
        value = self.store.get(owner, key)
        return value if value is not None else fallback

    def resolve_phy(self, addr: ResourceAddress) -> ResourceAddress:
        """Substitute every cloud-assigned segment that has a recorded output."""
        values = {pk.field: self.phy_value(pk.owner, pk.key, getattr(addr, pk.field)) for pk in addr.phy_keys()}
        return addr.with_values(**values) if values else addr

    def virt_name(self, phy: ResourceAddress, field: str) -> str:
        """The repository name behind a physical id, or the id itself if nothing records it."""
        virt = phy_to_virt(self.store, phy, self.parse_address)
        return getattr(virt if virt is not None else phy, field)

    # Documents

    def parse_address(self, path: Union[str, Path]) -> ResourceAddress:
        return parse_address(path, self.ADDRESS_TYPES)

    def model_for(self, addr: ResourceAddress) -> Type[ResourceModel]:
        return self.RESOURCE_TYPES[type(addr)]

    def eq(self, path: Union[str, Path], a: bytes, b: bytes) -> bool:
        addr = self.parse_address(path)
        return check_eq(self.model_for(addr), a, b, addr.to_path())

    def diag(self, path: Union[str, Path], data: bytes) -> Optional[DiagnosticResponse]:
        addr = self.parse_address(path)
        return check_syntax(self.model_for(addr), data, addr.to_path())

    def get_skeletons(self) -> List[SkeletonResponse]:
        return []

    # Clients

    def client_region(self, addr: ResourceAddress) -> str:
        return self.GLOBAL_REGION or getattr(addr, "region")

    def list_regions(self, subpath: str) -> List[str]:
        if self.GLOBAL_REGION:
            return [self.GLOBAL_REGION] if path_matches_filter(f"aws/{self.name}", subpath) else []
        return [r for r in self.config.enabled_regions if path_matches_filter(f"aws/{self.name}/{r}", subpath)]

    async def get_client(self, region: str) -> Any:
        """Return the cached boto3 client for a region, creating it on first use."""
        async with self._client_lock:
            client = self.client_cache.get(region)
            if client is None:
                if self.session is None:
                    self.session = boto3.session.Session()
                client = self.session.client(
                    self.SERVICE,
                    region_name=region,
                    endpoint_url=self.config.endpoint_url,
                    config=self.config.boto_config(),
                )
                self.client_cache[region] = client
            return client

    async def notify(self, message: str) -> None:
        if self.outbox is not None:
            await self.outbox.put(message)

    # Service-specific hooks

    def do_list(self, client: Any, region: str) -> List[ResourceAddress]:
        raise NotImplementedError

    def do_get(self, client: Any, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        raise NotImplementedError

    def do_op_exec(self, client: Any, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp) -> OpExecResponse:
        raise NotImplementedError

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        raise NotImplementedError

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        raise NotImplementedError

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        raise NotImplementedError


def check_immutable(addr: ResourceAddress, old: ResourceModel, new: ResourceModel, field_names: Sequence[str]) -> None:
    """
    Fail the plan if any field AWS cannot modify in place differs.

    Raises:
        ImmutableFieldError: For the first differing field
    """
    for name in field_names:
        before, after = getattr(old, name), getattr(new, name)
        if before != after:
            raise ImmutableFieldError(addr.to_path(), name, before, after)


def changed_fields(old: ResourceModel, new: ResourceModel, field_names: Sequence[str]) -> Dict[str, Any]:
    """The subset of `field_names` whose value differs, mapped to the new value."""
    return {name: getattr(new, name) for name in field_names if getattr(old, name) != getattr(new, name)}


def set_diff(old: Sequence[Any], new: Sequence[Any]) -> Tuple[List[Any], List[Any]]:
    """
    Elements to add and to remove for a set-shaped collection.

    Both lists keep the order of their source sequence so plans are deterministic.
    """
    removed = [item for item in old if item not in new]
    added = [item for item in new if item not in old]
    return added, removed
