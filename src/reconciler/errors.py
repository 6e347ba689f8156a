"""
Error Definitions for the AWS Reconciler.

Every error raised by the engine or a connector derives from ReconcilerError,
so callers can tell engine failures apart from programming errors.
"""

from typing import Any, Dict, List, Optional


class ReconcilerError(Exception):
    """Base exception class for all reconciler errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class AddressParseError(ReconcilerError):
    """Raised when a path is not owned by the connector that tried to parse it."""

    def __init__(self, path: str):
        super().__init__(f"Invalid address path: {path}", {"path": path})
        self.path = path


class ResourceSyntaxError(ReconcilerError):
    """Raised when a resource document cannot be parsed under its address."""

    def __init__(self, path: str, reason: str, line: Optional[int] = None, column: Optional[int] = None):
        details: Dict[str, Any] = {"path": path}
        if line is not None:
            details["line"] = line
            details["column"] = column
        super().__init__(f"Syntax error in {path}: {reason}", details)
        self.path = path
        self.reason = reason
        self.line = line
        self.column = column


class ImmutableFieldError(ReconcilerError):
    """Raised at plan time when a field the cloud API cannot modify has changed."""

    def __init__(self, path: str, field: str, old: Any = None, new: Any = None):
        message = (
            f"Field `{field}` of {path} cannot be changed in place. "
            f"Delete and recreate the resource to make this change."
        )
        super().__init__(message, {"field": field, "old": old, "new": new})
        self.path = path
        self.field = field


class MissingOutputError(ReconcilerError):
    """Raised when prerequisite outputs were never produced during a pass."""

    def __init__(self, path: str, prerequisites: List[Any]):
        missing = ", ".join(f"{p.path}:{p.key}" for p in prerequisites)
        super().__init__(f"Outputs required by {path} were never produced: {missing}", {"path": path})
        self.path = path
        self.prerequisites = prerequisites


class RemoteError(ReconcilerError):
    """Raised when the AWS API rejects or fails a request."""

    def __init__(
        self,
        context: str,
        cause: Optional[BaseException] = None,
        outputs: Optional[Dict[str, Optional[str]]] = None,
    ):
        message = f"{context}: {cause}" if cause is not None else context
        super().__init__(message)
        self.context = context
        self.cause = cause
        self.outputs = outputs or {}


class OpExecError(ReconcilerError):
    """Raised when executing one operation fails; carries any partial outputs."""

    def __init__(
        self,
        op_tag: str,
        resource_kind: str,
        reason: str,
        outputs: Optional[Dict[str, Optional[str]]] = None,
    ):
        super().__init__(
            f"{op_tag} failed for {resource_kind}: {reason}",
            {"op": op_tag, "kind": resource_kind},
        )
        self.op_tag = op_tag
        self.resource_kind = resource_kind
        self.reason = reason
        self.outputs = outputs or {}


class InvalidOpError(ReconcilerError):
    """Raised when an operation does not apply to the address it was sent to."""

    def __init__(self, path: str, op: str):
        super().__init__(f"Invalid operation {op} for address {path}", {"path": path})
        self.path = path
        self.op = op


class ConfigError(ReconcilerError, ValueError):
    """Raised when configuration cannot be loaded or is invalid."""


class OutputStoreError(ReconcilerError):
    """Raised when an output sidecar file is unreadable."""


class ReconcileError(ReconcilerError):
    """Raised at the end of a pass that recorded per-address errors."""

    def __init__(self, report: Any):
        errors = report.errors
        super().__init__(
            f"Reconcile pass finished with {len(errors)} error(s)",
            {"failed_addresses": len({e.path for e in errors})},
        )
        self.report = report
