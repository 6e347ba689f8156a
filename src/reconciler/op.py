"""
Operation Module.

An operation is one mutation against one address. Operations are planned,
serialized to a compact string of the form

    {"CreateVpc":{"vpc":{...}}}

handed to the executor, parsed back and discarded. Each connector declares its
operation classes and builds a registry from them with `op_registry`.
"""

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import InvalidOpError
from .types import Outputs

if TYPE_CHECKING:
    from .address import ResourceAddress
    from .resource import ResourceModel

OpRegistry = Dict[str, Type["ConnectorOp"]]


class ConnectorOp(BaseModel):
    """Base class for every operation variant. The class name is the variant tag."""

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def tag(cls) -> str:
        return cls.__name__

    @property
    def is_delete(self) -> bool:
        return self.tag().startswith("Delete")

    def to_string(self) -> str:
        body = self.model_dump(mode="json")
        return json.dumps({self.tag(): body}, separators=(",", ":"))

    def plan(self, friendly_message: str) -> "PlanResponseElement":
        return PlanResponseElement(self.to_string(), friendly_message)


class FieldUpdateOp(ConnectorOp):
    """
    An update naming only the fields that changed.

    Fields are optional and only explicitly set fields are serialized, so a
    field cleared to null is still distinguishable from one left alone.
    """

    def to_string(self) -> str:
        body = self.model_dump(mode="json", exclude_unset=True)
        return json.dumps({self.tag(): body}, separators=(",", ":"))

    def changes(self) -> Dict[str, Any]:
        """The set fields and their new values, in declaration order."""
        return {name: getattr(self, name) for name in type(self).model_fields if name in self.model_fields_set}


def op_registry(*classes: Type[ConnectorOp]) -> OpRegistry:
    """Map each operation class by its variant tag."""
    registry: OpRegistry = {}
    for cls in classes:
        if cls.tag() in registry:
            raise ValueError(f"Duplicate operation tag: {cls.tag()}")
        registry[cls.tag()] = cls
    return registry


def op_tag(op: str) -> str:
    """
    Return the variant tag of a serialized operation without validating its body.

    Raises:
        InvalidOpError: If the string is not a single-key JSON object
    """
    try:
        tree = json.loads(op)
    except json.JSONDecodeError:
        raise InvalidOpError("<unknown>", op)
    if not isinstance(tree, dict) or len(tree) != 1:
        raise InvalidOpError("<unknown>", op)
    return next(iter(tree))


def parse_op(op: str, registry: OpRegistry, path: str = "<unknown>") -> ConnectorOp:
    """
    Parse a serialized operation against a connector's registry.

    Args:
        op: Operation string produced by `ConnectorOp.to_string`
        registry: Tag to class mapping of the connector
        path: Address path the operation targets, for error context

    Returns:
        The parsed operation

    Raises:
        InvalidOpError: If the tag is unknown to the connector or the body is malformed
    """
    tag = op_tag(op)
    cls = registry.get(tag)
    if cls is None:
        raise InvalidOpError(path, tag)
    try:
        return cls.model_validate(json.loads(op)[tag])
    except ValidationError:
        raise InvalidOpError(path, op)


@dataclass
class PlanResponseElement:
    """One planned operation with its human-readable description."""

    op_definition: str
    friendly_message: str

    @property
    def op_tag(self) -> str:
        return op_tag(self.op_definition)


@dataclass
class OpExecResponse:
    """Result of executing one operation. `outputs` is always present, possibly empty."""

    outputs: Outputs
    friendly_message: str


@dataclass
class SkeletonResponse:
    addr: "ResourceAddress"
    body: bytes


def skeleton(addr: "ResourceAddress", model: "ResourceModel") -> SkeletonResponse:
    return SkeletonResponse(addr, model.to_bytes())


def describe_plan(plan: List[PlanResponseElement]) -> str:
    return "\n".join(f"{element.op_tag}: {element.friendly_message}" for element in plan)
