"""
Resource Address Module.

An address is a tagged identifier for one cloud resource. Every connector
defines its own set of address variants as frozen dataclasses; each variant
carries a path TEMPLATE so it can be converted to and from a repository path
without loss.
"""

import re
from dataclasses import dataclass, fields, replace
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, ClassVar, Dict, List, NamedTuple, Optional, Pattern, Sequence, Type, TypeVar, Union

from .errors import AddressParseError

if TYPE_CHECKING:
    from .outputs import OutputStore

DOCUMENT_EXTENSION = ".json"

PathLike = Union[str, PurePosixPath]

A = TypeVar("A", bound="ResourceAddress")

_template_cache: Dict[str, Pattern[str]] = {}


class PhyKey(NamedTuple):
    """One cloud-assigned segment of an address.

    `field` is the address field holding the segment, `owner` is the virtual
    address whose outputs record the physical value, and `key` is the output
    key it is recorded under.
    """

    field: str
    owner: "ResourceAddress"
    key: str


@dataclass(frozen=True)
class ResourceAddress:
    """Base class for every address variant."""

    TEMPLATE: ClassVar[str] = ""

    def to_path(self) -> str:
        return self.TEMPLATE.format(**self.field_values())

    def field_values(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def kind(self) -> str:
        name = type(self).__name__
        return name[: -len("Address")] if name.endswith("Address") else name

    def phy_keys(self) -> List[PhyKey]:
        """Segments substituted with cloud-assigned ids; empty if user-named."""
        return []

    def parent(self) -> Optional["ResourceAddress"]:
        """Containing resource for variants nested without a cloud-assigned segment."""
        return None

    def ancestors(self) -> List["ResourceAddress"]:
        """Every containing address, from phy key owners and the parent chain."""
        seen: List[ResourceAddress] = []
        for phy_key in self.phy_keys():
            if phy_key.owner != self and phy_key.owner not in seen:
                seen.append(phy_key.owner)
        parent = self.parent()
        if parent is not None:
            for ancestor in [parent] + parent.ancestors():
                if ancestor not in seen:
                    seen.append(ancestor)
        return seen

    def depth(self) -> int:
        return len(self.ancestors())

    def with_values(self: A, **values: str) -> A:
        return replace(self, **values)

    def get_output(self, store: "OutputStore", key: str) -> Optional[str]:
        return store.get(self, key)

    def __str__(self) -> str:
        return self.to_path()


def normalize_path(path: PathLike) -> str:
    """Return the posix form of a repository-relative path."""
    return PurePosixPath(str(path).replace("\\", "/")).as_posix()


def _compile_template(template: str) -> Pattern[str]:
    pattern = _template_cache.get(template)
    if pattern is None:
        regex = ""
        for piece in re.split(r"(\{[a-z_]+\})", template):
            if piece.startswith("{") and piece.endswith("}"):
                regex += f"(?P<{piece[1:-1]}>[^/]+)"
            else:
                regex += re.escape(piece)
        pattern = re.compile(f"^{regex}$")
        _template_cache[template] = pattern
    return pattern


def match_template(path: PathLike, template: str) -> Optional[Dict[str, str]]:
    """Match a path against an address template, returning the captured fields."""
    match = _compile_template(template).match(normalize_path(path))
    if match is None:
        return None
    values = match.groupdict()
    if any(v in (".", "..") for v in values.values()):
        return None
    return values


def parse_address(path: PathLike, variants: Sequence[Type[A]]) -> A:
    """
    Parse a repository path into the first address variant whose template matches.

    Raises:
        AddressParseError: If no variant owns the path
    """
    for variant in variants:
        values = match_template(path, variant.TEMPLATE)
        if values is not None:
            return variant(**values)
    raise AddressParseError(normalize_path(path))


def path_matches_filter(path: PathLike, subpath: PathLike) -> bool:
    """True when one path is a component-wise prefix of the other."""
    a = PurePosixPath(normalize_path(path)).parts
    b = PurePosixPath(normalize_path(subpath)).parts
    shortest = min(len(a), len(b))
    return a[:shortest] == b[:shortest]
