"""
Resource Document Module.

A resource is the typed declarative form of one cloud resource. Documents are
stored as pretty-printed JSON tagged with the struct name:

    {
        "Vpc": {
            "cidr_block": "10.0.0.0/16",
            ...
        }
    }

Models reject unknown fields, so a typo in a document is a hard syntax error
rather than a silently ignored setting.
"""

import json
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional, Set, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, PlainSerializer, ValidationError

from .errors import ResourceSyntaxError

M = TypeVar("M", bound="ResourceModel")

RawDocument = Union[bytes, str]


def _sorted_mapping(value: Dict[str, str]) -> Dict[str, str]:
    return {k: value[k] for k in sorted(value)}


def _sorted_set(value: Set[str]) -> List[str]:
    return sorted(value)


# Tag maps and string sets are unordered; serialise them sorted so output is stable
TagMap = Annotated[Dict[str, str], PlainSerializer(_sorted_mapping)]
StringSet = Annotated[Set[str], PlainSerializer(_sorted_set)]


class ResourceModel(BaseModel):
    """Base class for every resource document body."""

    model_config = ConfigDict(extra="forbid")

    def to_bytes(self) -> bytes:
        body = self.model_dump(mode="json")
        return (json.dumps({type(self).__name__: body}, indent=4) + "\n").encode("utf-8")

    @classmethod
    def from_bytes(cls: Type[M], data: RawDocument, path: str = "<document>") -> M:
        return parse_document(cls, data, path)


class FrozenModel(ResourceModel):
    """Element of a set-shaped collection; compared by value."""

    model_config = ConfigDict(extra="forbid", frozen=True)


def sort_models(items: List[FrozenModel]) -> List[FrozenModel]:
    """Canonical order for a set-shaped list of models, so equality ignores order."""
    return sorted(items, key=lambda item: item.model_dump_json())


@dataclass
class Diagnostic:
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    location: Optional[str] = None


@dataclass
class DiagnosticResponse:
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _decode(data: RawDocument) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8")
    return data


def _load_tagged(model: Type[ResourceModel], data: RawDocument, path: str) -> Any:
    try:
        text = _decode(data)
    except UnicodeDecodeError as e:
        raise ResourceSyntaxError(path, f"document is not valid UTF-8: {e}")
    try:
        tree = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResourceSyntaxError(path, e.msg, e.lineno, e.colno)

    name = model.__name__
    if not isinstance(tree, dict) or len(tree) != 1:
        raise ResourceSyntaxError(path, f"expected a single top-level `{name}` struct")
    tag, body = next(iter(tree.items()))
    if tag != name:
        raise ResourceSyntaxError(path, f"expected struct `{name}`, found `{tag}`")
    return body


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "; ".join(parts)


def parse_document(model: Type[M], data: RawDocument, path: str = "<document>") -> M:
    """
    Deserialize a tagged document into the given model.

    Raises:
        ResourceSyntaxError: If the text is not JSON, is tagged with the wrong
            struct name, or fails validation (including unknown fields)
    """
    body = _load_tagged(model, data, path)
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise ResourceSyntaxError(path, _format_validation_error(e))


def check_eq(model: Type[ResourceModel], a: RawDocument, b: RawDocument, path: str = "<document>") -> bool:
    """Semantic equality: both sides parsed under the same model and compared structurally."""
    return parse_document(model, a, path) == parse_document(model, b, path)


def check_syntax(model: Type[ResourceModel], data: RawDocument, path: str = "<document>") -> Optional[DiagnosticResponse]:
    """Return diagnostics for an invalid document, or None if it parses."""
    try:
        body = _load_tagged(model, data, path)
    except ResourceSyntaxError as e:
        return DiagnosticResponse([Diagnostic(e.reason, e.line, e.column)])

    try:
        model.model_validate(body)
    except ValidationError as e:
        return DiagnosticResponse(
            [
                Diagnostic(str(item.get("msg")), location=".".join(str(p) for p in item.get("loc", ())))
                for item in e.errors()
            ]
        )
    return None
