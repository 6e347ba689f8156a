"""
Virtual/Physical Address Resolver Module.

Users name resources with virtual addresses. Segments that AWS assigns (VPC
ids, API ids, ...) are placeholders chosen by the user, and the real values
are looked up in the Output Store:

    aws/vpc/us-east-1/vpcs/main/subnets/public.json              virtual
    aws/vpc/us-east-1/vpcs/vpc-0a1b/subnets/subnet-9f8e.json     physical

Both directions are pure functions over a snapshot of the store and never
contact AWS.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Union

from ..utils import setup_logging

if TYPE_CHECKING:
    from .address import ResourceAddress
    from .outputs import AddressParser, OutputStore

logger = setup_logging()


@dataclass(frozen=True)
class ReadOutput:
    """A prerequisite output: `key` must be recorded for the address at `path`."""

    path: str
    key: str


@dataclass(frozen=True)
class Present:
    path: str


@dataclass(frozen=True)
class NotPresent:
    pass


@dataclass(frozen=True)
class Deferred:
    reads: List[ReadOutput] = field(default_factory=list)


@dataclass(frozen=True)
class Null:
    path: str


VirtToPhyResult = Union[Present, NotPresent, Deferred, Null]

PendingCheck = Callable[["ResourceAddress"], bool]


def virt_to_phy(
    store: "OutputStore", addr: "ResourceAddress", is_pending: Optional[PendingCheck] = None
) -> VirtToPhyResult:
    """
    Translate a virtual address into its physical form.

    Args:
        store: Output Store to read recorded ids from
        addr: Virtual address to translate
        is_pending: Tells whether an ancestor without outputs is still expected
            to produce them (typically: it has a document in the repository).
            When omitted every ancestor is assumed pending.

    Returns:
        Null if the address has no cloud-assigned segment, Deferred if an
        ancestor's id is still to be produced, NotPresent if the resource
        itself (or an ancestor that will never exist) has no id recorded,
        otherwise Present with the physical path
    """
    phy_keys = addr.phy_keys()
    if not phy_keys:
        return Null(addr.to_path())

    values: Dict[str, str] = {}
    reads: List[ReadOutput] = []
    missing = False
    for phy_key in phy_keys:
        value = store.get(phy_key.owner, phy_key.key)
        if value is not None:
            values[phy_key.field] = value
        elif phy_key.owner == addr:
            missing = True
        elif is_pending is None or is_pending(phy_key.owner):
            reads.append(ReadOutput(phy_key.owner.to_path(), phy_key.key))
        else:
            missing = True

    if reads:
        result: VirtToPhyResult = Deferred(reads)
    elif missing:
        result = NotPresent()
    else:
        result = Present(addr.with_values(**values).to_path())
    logger.debug(f"virt_to_phy {addr.to_path()} -> {result}")
    return result


def _own_field(addr: "ResourceAddress", key: str) -> Optional[str]:
    for phy_key in addr.phy_keys():
        if phy_key.owner == addr and phy_key.key == key:
            return phy_key.field
    return None


def phy_to_virt(
    store: "OutputStore", addr: "ResourceAddress", parse: "AddressParser"
) -> Optional["ResourceAddress"]:
    """
    Find the virtual address whose recorded outputs hold the ids in a physical address.

    Ancestors are resolved first; the address's own ids are then matched
    against sidecars of the same variant whose remaining fields agree.

    Args:
        store: Output Store to scan
        addr: Physical address, typically returned by a connector's list
        parse: Address parser of the owning connector

    Returns:
        The virtual address, or None if any id is unknown to the store
    """
    phy_keys = addr.phy_keys()
    if not phy_keys:
        return addr

    expected: Dict[str, str] = {}
    own_keys = []
    for phy_key in phy_keys:
        if phy_key.owner == addr:
            own_keys.append(phy_key)
            continue
        virt_owner = phy_to_virt(store, phy_key.owner, parse)
        if virt_owner is None:
            return None
        owner_field = _own_field(phy_key.owner, phy_key.key) or phy_key.field
        expected[phy_key.field] = getattr(virt_owner, owner_field)

    if not own_keys:
        return addr.with_values(**expected)

    own_fields = {phy_key.field for phy_key in own_keys}
    for candidate, outputs in store.entries(parse):
        if type(candidate) is not type(addr):
            continue
        if any(outputs.get(k.key) != getattr(addr, k.field) for k in own_keys):
            continue
        if all(
            value == expected.get(name, getattr(addr, name))
            for name, value in candidate.field_values().items()
            if name not in own_fields
        ):
            return candidate
    return None
